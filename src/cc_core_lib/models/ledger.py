"""Ledger and wallet models.

Key Models:
- LedgerEntry: Append-only proof that a unit of work has paid out (one per user/unit)
- Wallet: Coin balance, login streak and credit conversion state
- AwardResult: Outcome of Ledger.try_award (granted or idempotent no-op)
- CompletionResult: Outcome of a completion engine action
- DailyBonusResult / ConversionResult / ConversionRecord: Coin economy outcomes
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from cc_core_lib.models.roadmap import CasePhase


class LedgerEntry(BaseModel):
    """
    Record of coins awarded for one unit of work.

    Invariant: at most one entry per (user_id, unit_id). Entries are never
    updated or deleted, reverting progress does not reclaim coins.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    unit_id: str = Field(min_length=1, description="Stage id or substage id")
    coins_awarded: int = Field(ge=0)
    awarded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Wallet(BaseModel):
    """Per-user coin wallet. Mutated only by ledger awards, daily claims and conversions."""

    user_id: str = Field(min_length=1)
    coin_balance: int = Field(default=0, ge=0)
    login_streak: int = Field(default=0, ge=0)
    last_claim_date: Optional[date] = None
    credit_balance: int = Field(default=0, ge=0, description="Credits granted by conversions")
    credits_converted_this_month: int = Field(default=0, ge=0)
    conversion_month: Optional[str] = Field(
        default=None,
        description="YYYY-MM of the month credits_converted_this_month refers to",
        pattern=r"^\d{4}-\d{2}$"
    )


class AwardResult(BaseModel):
    """Outcome of an award attempt. A repeat award is granted=False, never an error."""

    unit_id: str
    granted: bool
    coins_granted: int = Field(default=0, ge=0)
    coin_balance: Optional[int] = Field(
        default=None,
        description="Wallet balance after the award, when the backend reports it"
    )


class CompletionResult(BaseModel):
    """
    Outcome of CompleteSubstage / CompleteStage.

    coins_earned is 0 on replays; already_completed tells the UI to suppress
    celebratory feedback without treating the call as a failure.
    """

    user_id: str
    stage_id: str
    substage_id: Optional[str] = None
    coins_earned: int = Field(default=0, ge=0)
    stage_auto_completed: bool = False
    already_completed: bool = False
    phase: CasePhase
    phase_changed: bool = False
    awards: List[AwardResult] = Field(default_factory=list)


class DailyBonusResult(BaseModel):
    """Outcome of a daily bonus claim. A same-day repeat is granted=False."""

    user_id: str
    granted: bool
    coins_awarded: int = Field(default=0, ge=0)
    streak: int = Field(ge=0)
    claim_date: date
    coin_balance: int = Field(ge=0)


class ConversionRecord(BaseModel):
    """History row for a coin to credit conversion"""

    model_config = ConfigDict(frozen=True)

    user_id: str
    coins_converted: int = Field(gt=0)
    credits_granted: int = Field(gt=0)
    coins_per_credit: int = Field(gt=0)
    converted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConversionResult(BaseModel):
    """Outcome of a successful coin to credit conversion"""

    user_id: str
    credits_granted: int = Field(gt=0)
    coins_debited: int = Field(gt=0)
    coin_balance: int = Field(ge=0, description="Coins left after the debit")
    credit_balance: int = Field(ge=0)
    credits_remaining_this_month: int = Field(ge=0)
    record: ConversionRecord

"""Bonus Calculator - daily streak bonus and coin to credit conversion.

Pure logic with no storage. Ledger backends call apply_daily_claim() and
apply_conversion() inside their own atomic section and persist the returned
wallet.

Streak Logic (server UTC dates):
- First claim: streak 0 → 1
- Next calendar day: N → N+1
- Same day, or a date before the last claim: no change, no coins (no-op)
- Gap > 1 day: reset to 1

Conversion Logic:
- credits = min(floor(balance / coins_per_credit), max_monthly_credits)
- further limited by what is left of this month's cap
- exactly credits * coins_per_credit is debited, the remainder stays
"""

import logging
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from cc_core_lib.config import (
    DEFAULT_COINS_PER_CREDIT,
    DEFAULT_DAILY_BONUS_SCHEDULE,
    DEFAULT_MAX_MONTHLY_CREDITS,
    EngineSettings,
)
from cc_core_lib.exceptions import ConversionCapReachedError, InsufficientBalanceError
from cc_core_lib.models import ConversionRecord, ConversionResult, DailyBonusResult, Wallet
from cc_core_lib.models.common import month_key, utc_now, utc_today

logger = logging.getLogger(__name__)


def daily_bonus(streak_length: int, schedule: Sequence[int] = DEFAULT_DAILY_BONUS_SCHEDULE) -> int:
    """Coins for a daily claim at the given streak length.

    Streaks longer than the schedule clamp to its last (highest) value.

    Raises:
        ValueError: If streak_length < 1
    """
    if streak_length < 1:
        raise ValueError(f"streak_length must be >= 1, got {streak_length}")
    return schedule[min(streak_length, len(schedule)) - 1]


def credits_from_coins(
    coin_balance: int,
    coins_per_credit: int = DEFAULT_COINS_PER_CREDIT,
    max_credits: int = DEFAULT_MAX_MONTHLY_CREDITS,
) -> int:
    """Whole credits a balance can buy, capped at max_credits"""
    if coin_balance <= 0:
        return 0
    return min(coin_balance // coins_per_credit, max_credits)


def coins_needed_for_credits(credits: int, coins_per_credit: int = DEFAULT_COINS_PER_CREDIT) -> int:
    return credits * coins_per_credit


def next_streak(current_streak: int, last_claim_date: Optional[date], today: date) -> Tuple[int, str]:
    """Compute the streak after a claim on `today`.

    Returns:
        (new_streak, action) where action is one of
        "first_claim", "already_claimed", "incremented", "reset"
    """
    if last_claim_date is None:
        return 1, "first_claim"
    if today <= last_claim_date:
        return current_streak, "already_claimed"
    if (today - last_claim_date).days == 1:
        return current_streak + 1, "incremented"
    return 1, "reset"


class BonusCalculator:
    """Coin economy rules bound to one EngineSettings instance."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def daily_bonus(self, streak_length: int) -> int:
        return daily_bonus(streak_length, self.settings.daily_bonus_schedule)

    def credits_from_coins(self, coin_balance: int) -> int:
        return credits_from_coins(
            coin_balance, self.settings.coins_per_credit, self.settings.max_monthly_credits
        )

    def coins_needed_for_credits(self, credits: int) -> int:
        return coins_needed_for_credits(credits, self.settings.coins_per_credit)

    def credits_remaining_this_month(self, wallet: Wallet, now: datetime) -> int:
        """Credits still convertible in the month of `now`"""
        used = wallet.credits_converted_this_month if wallet.conversion_month == month_key(now) else 0
        return max(0, self.settings.max_monthly_credits - used)

    # ============================================================
    # Wallet transitions
    # ============================================================

    def apply_daily_claim(
        self, wallet: Wallet, today: Optional[date] = None
    ) -> Tuple[Wallet, DailyBonusResult]:
        """Apply a daily bonus claim to a wallet.

        Returns:
            (updated_wallet, result). On a same-day repeat, or a claim dated
            before last_claim_date, the wallet is returned unchanged and
            result.granted is False.
        """
        today = today or utc_today()
        streak, action = next_streak(wallet.login_streak, wallet.last_claim_date, today)

        if action == "already_claimed":
            logger.debug(f"Daily bonus already claimed today for user_id={wallet.user_id}")
            return wallet, DailyBonusResult(
                user_id=wallet.user_id,
                granted=False,
                coins_awarded=0,
                streak=wallet.login_streak,
                claim_date=today,
                coin_balance=wallet.coin_balance,
            )

        bonus = self.daily_bonus(streak)
        updated = wallet.model_copy(update={
            "coin_balance": wallet.coin_balance + bonus,
            "login_streak": streak,
            "last_claim_date": today,
        })
        logger.info(
            f"Daily bonus {action} for user_id={wallet.user_id}: "
            f"streak {wallet.login_streak} -> {streak}, +{bonus} coins"
        )
        return updated, DailyBonusResult(
            user_id=wallet.user_id,
            granted=True,
            coins_awarded=bonus,
            streak=streak,
            claim_date=today,
            coin_balance=updated.coin_balance,
        )

    def apply_conversion(
        self, wallet: Wallet, now: Optional[datetime] = None
    ) -> Tuple[Wallet, ConversionResult]:
        """Convert as many coins as allowed into credits.

        Raises:
            InsufficientBalanceError: Balance is below one credit's worth
            ConversionCapReachedError: This month's cap is already used up
        """
        now = now or utc_now()
        credits = self.credits_from_coins(wallet.coin_balance)
        if credits == 0:
            raise InsufficientBalanceError(
                user_id=wallet.user_id,
                coin_balance=wallet.coin_balance,
                required=self.coins_needed_for_credits(1),
            )

        remaining = self.credits_remaining_this_month(wallet, now)
        if remaining == 0:
            raise ConversionCapReachedError(
                user_id=wallet.user_id,
                coin_balance=wallet.coin_balance,
                credits_this_month=self.settings.max_monthly_credits,
                cap=self.settings.max_monthly_credits,
            )

        credits = min(credits, remaining)
        coins = self.coins_needed_for_credits(credits)
        current_month = month_key(now)
        used_this_month = (
            wallet.credits_converted_this_month if wallet.conversion_month == current_month else 0
        )

        updated = wallet.model_copy(update={
            "coin_balance": wallet.coin_balance - coins,
            "credit_balance": wallet.credit_balance + credits,
            "credits_converted_this_month": used_this_month + credits,
            "conversion_month": current_month,
        })
        record = ConversionRecord(
            user_id=wallet.user_id,
            coins_converted=coins,
            credits_granted=credits,
            coins_per_credit=self.settings.coins_per_credit,
            converted_at=now,
        )
        logger.info(
            f"Converted {coins} coins to {credits} credits for user_id={wallet.user_id}, "
            f"balance {wallet.coin_balance} -> {updated.coin_balance}"
        )
        return updated, ConversionResult(
            user_id=wallet.user_id,
            credits_granted=credits,
            coins_debited=coins,
            coin_balance=updated.coin_balance,
            credit_balance=updated.credit_balance,
            credits_remaining_this_month=self.settings.max_monthly_credits - updated.credits_converted_this_month,
            record=record,
        )

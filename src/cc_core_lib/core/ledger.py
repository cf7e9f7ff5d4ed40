"""Ledger - at-most-once coin awards per (user, unit of work).

The ledger is the single source of truth for "has this unit of work ever paid
out". Awarding is an insert-if-absent plus wallet credit, atomic per
(user_id, unit_id). A repeat award is an expected, silent no-op returning
granted=False; it never raises.

Backends:
- InMemoryLedger: in-process, asyncio locks (this module)
- RedisLedger: shared Redis, Lua script (cc_core_lib.infrastructure.redis_ledger)
- LedgerServiceClient: remote ledger service over HTTP (cc_core_lib.clients)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional

from cc_core_lib.core.bonus_calculator import BonusCalculator
from cc_core_lib.exceptions import NotFoundError
from cc_core_lib.models import (
    AwardResult,
    ConversionRecord,
    ConversionResult,
    DailyBonusResult,
    LedgerEntry,
    Wallet,
)
from cc_core_lib.models.common import utc_now

logger = logging.getLogger(__name__)


class LedgerBackend(ABC):
    """Interface every authoritative ledger implements.

    Implementations must guarantee that concurrent try_award calls for the same
    (user_id, unit_id) produce exactly one entry and one wallet credit, and must
    translate transport failures into ServiceUnavailableError.
    """

    service_name: str = "ledger"
    # Local coin economy rules; None when a remote service applies them
    bonus_calculator: Optional[BonusCalculator] = None

    @abstractmethod
    async def open_wallet(self, user_id: str) -> Wallet:
        """Create the user's wallet if missing and return it (idempotent)"""

    @abstractmethod
    async def get_wallet(self, user_id: str) -> Wallet:
        """Return the wallet. Raises NotFoundError if it was never opened."""

    @abstractmethod
    async def try_award(self, user_id: str, unit_id: str, coins: int) -> AwardResult:
        """Award coins once per (user_id, unit_id)"""

    @abstractmethod
    async def get_entry(self, user_id: str, unit_id: str) -> Optional[LedgerEntry]:
        """Return the entry for a unit, or None if it never paid out"""

    @abstractmethod
    async def list_entries(self, user_id: str) -> List[LedgerEntry]:
        """All entries for a user in award order"""

    @abstractmethod
    async def claim_daily_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonusResult:
        """Apply the daily streak bonus atomically"""

    @abstractmethod
    async def convert_to_credits(self, user_id: str, now: Optional[datetime] = None) -> ConversionResult:
        """Convert coins to credits atomically"""

    @abstractmethod
    async def conversion_history(self, user_id: str) -> List[ConversionRecord]:
        """Conversion records, newest first"""

    async def has_awarded(self, user_id: str, unit_id: str) -> bool:
        return await self.get_entry(user_id, unit_id) is not None

    async def close(self) -> None:
        """Release connections. Override if the backend holds any."""
        pass


class InMemoryLedger(LedgerBackend):
    """Process-local ledger.

    One asyncio.Lock per user serializes wallet mutations, so an award and a
    conversion for the same user cannot interleave.
    """

    service_name = "ledger-memory"

    def __init__(self, bonus_calculator: Optional[BonusCalculator] = None):
        self.bonus_calculator = bonus_calculator or BonusCalculator()
        self._wallets: Dict[str, Wallet] = {}
        self._entries: Dict[str, Dict[str, LedgerEntry]] = {}
        self._conversions: Dict[str, List[ConversionRecord]] = {}
        # One lock per user seen, never evicted; wallets are kept for the same lifetime
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _require_wallet(self, user_id: str) -> Wallet:
        try:
            return self._wallets[user_id]
        except KeyError:
            raise NotFoundError("wallet", user_id) from None

    async def open_wallet(self, user_id: str) -> Wallet:
        if not user_id:
            raise ValueError("user_id is required")
        async with self._lock(user_id):
            if user_id not in self._wallets:
                self._wallets[user_id] = Wallet(user_id=user_id)
                self._entries[user_id] = {}
                self._conversions[user_id] = []
                logger.info(f"Wallet opened for user_id={user_id}")
            return self._wallets[user_id].model_copy()

    async def get_wallet(self, user_id: str) -> Wallet:
        return self._require_wallet(user_id).model_copy()

    async def try_award(self, user_id: str, unit_id: str, coins: int) -> AwardResult:
        if coins < 0:
            raise ValueError(f"coins must be >= 0, got {coins}")

        async with self._lock(user_id):
            wallet = self._require_wallet(user_id)
            entries = self._entries[user_id]

            if unit_id in entries:
                logger.debug(f"Award skipped, already granted: user_id={user_id}, unit_id={unit_id}")
                return AwardResult(
                    unit_id=unit_id, granted=False, coins_granted=0, coin_balance=wallet.coin_balance
                )

            entries[unit_id] = LedgerEntry(user_id=user_id, unit_id=unit_id, coins_awarded=coins)
            wallet = wallet.model_copy(update={"coin_balance": wallet.coin_balance + coins})
            self._wallets[user_id] = wallet

        logger.info(
            f"Awarded {coins} coins: user_id={user_id}, unit_id={unit_id}, balance={wallet.coin_balance}"
        )
        return AwardResult(unit_id=unit_id, granted=True, coins_granted=coins, coin_balance=wallet.coin_balance)

    async def get_entry(self, user_id: str, unit_id: str) -> Optional[LedgerEntry]:
        self._require_wallet(user_id)
        return self._entries[user_id].get(unit_id)

    async def list_entries(self, user_id: str) -> List[LedgerEntry]:
        self._require_wallet(user_id)
        return list(self._entries[user_id].values())

    async def claim_daily_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonusResult:
        async with self._lock(user_id):
            wallet = self._require_wallet(user_id)
            updated, result = self.bonus_calculator.apply_daily_claim(wallet, today)
            self._wallets[user_id] = updated
        return result

    async def convert_to_credits(self, user_id: str, now: Optional[datetime] = None) -> ConversionResult:
        async with self._lock(user_id):
            wallet = self._require_wallet(user_id)
            updated, result = self.bonus_calculator.apply_conversion(wallet, now or utc_now())
            self._wallets[user_id] = updated
            self._conversions[user_id].append(result.record)
        return result

    async def conversion_history(self, user_id: str) -> List[ConversionRecord]:
        self._require_wallet(user_id)
        return list(reversed(self._conversions[user_id]))

"""Redis-backed ledger shared by every engine instance.

Key layout (prefix defaults to "cc"):
    {prefix}:wallet:{user_id}       hash   wallet fields
    {prefix}:ledger:{user_id}       hash   unit_id -> LedgerEntry JSON
    {prefix}:conversions:{user_id}  list   ConversionRecord JSON, newest first

Awards run as a Lua script so the insert-if-absent and the balance increment
are a single atomic step on the server. Daily claims and conversions reuse the
BonusCalculator rules inside an optimistic WATCH/MULTI transaction.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from cc_core_lib.core.bonus_calculator import BonusCalculator
from cc_core_lib.core.ledger import LedgerBackend
from cc_core_lib.exceptions import NotFoundError, ServiceUnavailableError
from cc_core_lib.models import (
    AwardResult,
    ConversionRecord,
    ConversionResult,
    DailyBonusResult,
    LedgerEntry,
    Wallet,
)
from cc_core_lib.models.common import utc_now, utc_today

logger = logging.getLogger(__name__)

# KEYS[1] wallet hash, KEYS[2] ledger hash
# ARGV[1] unit_id, ARGV[2] coins, ARGV[3] entry JSON
# Returns {status, balance}: 1 granted, 0 already awarded, -1 no wallet
AWARD_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return {-1, 0}
end
if redis.call('HSETNX', KEYS[2], ARGV[1], ARGV[3]) == 0 then
    return {0, tonumber(redis.call('HGET', KEYS[1], 'coin_balance') or '0')}
end
return {1, redis.call('HINCRBY', KEYS[1], 'coin_balance', ARGV[2])}
"""


def _wallet_to_hash(wallet: Wallet) -> Dict[str, str]:
    return {
        "coin_balance": str(wallet.coin_balance),
        "login_streak": str(wallet.login_streak),
        "last_claim_date": wallet.last_claim_date.isoformat() if wallet.last_claim_date else "",
        "credit_balance": str(wallet.credit_balance),
        "credits_converted_this_month": str(wallet.credits_converted_this_month),
        "conversion_month": wallet.conversion_month or "",
    }


def _wallet_from_hash(user_id: str, data: Dict[str, str]) -> Wallet:
    last_claim = data.get("last_claim_date")
    return Wallet(
        user_id=user_id,
        coin_balance=int(data.get("coin_balance") or 0),
        login_streak=int(data.get("login_streak") or 0),
        last_claim_date=date.fromisoformat(last_claim) if last_claim else None,
        credit_balance=int(data.get("credit_balance") or 0),
        credits_converted_this_month=int(data.get("credits_converted_this_month") or 0),
        conversion_month=data.get("conversion_month") or None,
    )


@contextmanager
def _redis_errors() -> Iterator[None]:
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        raise ServiceUnavailableError("redis", e) from e


class RedisLedger(LedgerBackend):
    """Ledger backend on a shared Redis instance.

    Usage:
        redis_client = await get_redis_client()
        ledger = RedisLedger(redis_client)
        engine = CompletionEngine(catalog, ledger)
    """

    service_name = "ledger-redis"

    def __init__(
        self,
        redis_client: Redis,
        bonus_calculator: Optional[BonusCalculator] = None,
        key_prefix: str = "cc",
        max_watch_retries: int = 10,
    ):
        self.redis = redis_client
        self.bonus_calculator = bonus_calculator or BonusCalculator()
        self.key_prefix = key_prefix
        self.max_watch_retries = max_watch_retries
        self._award_script = redis_client.register_script(AWARD_SCRIPT)

    def _wallet_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:wallet:{user_id}"

    def _ledger_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:ledger:{user_id}"

    def _conversions_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:conversions:{user_id}"

    async def open_wallet(self, user_id: str) -> Wallet:
        if not user_id:
            raise ValueError("user_id is required")
        with _redis_errors():
            created = await self.redis.hsetnx(self._wallet_key(user_id), "coin_balance", 0)
        if created:
            logger.info(f"Wallet opened in Redis for user_id={user_id}")
        return await self.get_wallet(user_id)

    async def get_wallet(self, user_id: str) -> Wallet:
        with _redis_errors():
            data = await self.redis.hgetall(self._wallet_key(user_id))
        if not data:
            raise NotFoundError("wallet", user_id)
        return _wallet_from_hash(user_id, data)

    async def try_award(self, user_id: str, unit_id: str, coins: int) -> AwardResult:
        if coins < 0:
            raise ValueError(f"coins must be >= 0, got {coins}")

        entry = LedgerEntry(user_id=user_id, unit_id=unit_id, coins_awarded=coins)
        with _redis_errors():
            status, balance = await self._award_script(
                keys=[self._wallet_key(user_id), self._ledger_key(user_id)],
                args=[unit_id, coins, entry.model_dump_json()],
            )

        status, balance = int(status), int(balance)
        if status < 0:
            raise NotFoundError("wallet", user_id)
        if status == 0:
            logger.debug(f"Award skipped, already granted: user_id={user_id}, unit_id={unit_id}")
            return AwardResult(unit_id=unit_id, granted=False, coins_granted=0, coin_balance=balance)

        logger.info(f"Awarded {coins} coins: user_id={user_id}, unit_id={unit_id}, balance={balance}")
        return AwardResult(unit_id=unit_id, granted=True, coins_granted=coins, coin_balance=balance)

    async def get_entry(self, user_id: str, unit_id: str) -> Optional[LedgerEntry]:
        with _redis_errors():
            raw = await self.redis.hget(self._ledger_key(user_id), unit_id)
        return LedgerEntry.model_validate_json(raw) if raw else None

    async def list_entries(self, user_id: str) -> List[LedgerEntry]:
        with _redis_errors():
            raw = await self.redis.hgetall(self._ledger_key(user_id))
        entries = [LedgerEntry.model_validate_json(value) for value in raw.values()]
        return sorted(entries, key=lambda entry: entry.awarded_at)

    async def claim_daily_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonusResult:
        today = today or utc_today()
        key = self._wallet_key(user_id)

        for attempt in range(self.max_watch_retries):
            with _redis_errors():
                async with self.redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    data = await pipe.hgetall(key)
                    if not data:
                        raise NotFoundError("wallet", user_id)

                    wallet = _wallet_from_hash(user_id, data)
                    updated, result = self.bonus_calculator.apply_daily_claim(wallet, today)
                    if not result.granted:
                        return result

                    pipe.multi()
                    pipe.hset(key, mapping=_wallet_to_hash(updated))
                    try:
                        await pipe.execute()
                    except WatchError:
                        logger.debug(f"Wallet changed during daily claim, retrying (attempt {attempt + 1})")
                        continue
                    return result

        raise ServiceUnavailableError("redis", WatchError(f"wallet {user_id} kept changing"))

    async def convert_to_credits(self, user_id: str, now: Optional[datetime] = None) -> ConversionResult:
        now = now or utc_now()
        key = self._wallet_key(user_id)

        for attempt in range(self.max_watch_retries):
            with _redis_errors():
                async with self.redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    data = await pipe.hgetall(key)
                    if not data:
                        raise NotFoundError("wallet", user_id)

                    wallet = _wallet_from_hash(user_id, data)
                    updated, result = self.bonus_calculator.apply_conversion(wallet, now)

                    pipe.multi()
                    pipe.hset(key, mapping=_wallet_to_hash(updated))
                    pipe.lpush(self._conversions_key(user_id), result.record.model_dump_json())
                    try:
                        await pipe.execute()
                    except WatchError:
                        logger.debug(f"Wallet changed during conversion, retrying (attempt {attempt + 1})")
                        continue
                    return result

        raise ServiceUnavailableError("redis", WatchError(f"wallet {user_id} kept changing"))

    async def conversion_history(self, user_id: str) -> List[ConversionRecord]:
        with _redis_errors():
            raw = await self.redis.lrange(self._conversions_key(user_id), 0, -1)
        return [ConversionRecord.model_validate_json(value) for value in raw]

    async def close(self) -> None:
        await self.redis.aclose()

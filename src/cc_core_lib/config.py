"""Engine configuration.

Settings are resolved from explicit arguments first, then environment
variables, then defaults. Invalid environment values log a warning and fall
back to the default, matching how ServiceRegistry treats bad ports.

Environment Variables:
    CC_DAILY_BONUS_SCHEDULE: Comma-separated ascending bonus table (default: "5,7,10,12,15,20,30")
    CC_COINS_PER_CREDIT: Exchange rate (default: 500)
    CC_MAX_MONTHLY_CREDITS: Monthly conversion cap (default: 7)
    CC_LEDGER_BACKEND: "memory" (default), "redis" or "service"
    CC_AWARD_RETRY_ATTEMPTS: Attempts for backend calls on ServiceUnavailableError (default: 3)
    CC_AWARD_RETRY_MAX_WAIT: Max backoff between attempts in seconds (default: 4)
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_DAILY_BONUS_SCHEDULE: Tuple[int, ...] = (5, 7, 10, 12, 15, 20, 30)
DEFAULT_COINS_PER_CREDIT = 500
DEFAULT_MAX_MONTHLY_CREDITS = 7


class LedgerBackendType(Enum):
    """Where the authoritative ledger lives"""

    MEMORY = "memory"    # In-process (tests, single-process tools)
    REDIS = "redis"      # Shared Redis, atomic Lua award
    SERVICE = "service"  # Remote ledger service over HTTP


@dataclass(frozen=True)
class EngineSettings:
    """Coin economy and backend settings for the engine."""

    daily_bonus_schedule: Tuple[int, ...] = DEFAULT_DAILY_BONUS_SCHEDULE
    coins_per_credit: int = DEFAULT_COINS_PER_CREDIT
    max_monthly_credits: int = DEFAULT_MAX_MONTHLY_CREDITS
    ledger_backend: LedgerBackendType = LedgerBackendType.MEMORY
    award_retry_attempts: int = 3
    award_retry_max_wait: float = 4.0

    def __post_init__(self):
        schedule = self.daily_bonus_schedule
        if not schedule:
            raise ValueError("daily_bonus_schedule must not be empty")
        if any(value < 0 for value in schedule):
            raise ValueError("daily_bonus_schedule values must be >= 0")
        if list(schedule) != sorted(schedule):
            raise ValueError("daily_bonus_schedule must be ascending")
        if self.coins_per_credit <= 0:
            raise ValueError("coins_per_credit must be > 0")
        if self.max_monthly_credits < 0:
            raise ValueError("max_monthly_credits must be >= 0")
        if self.award_retry_attempts < 1:
            raise ValueError("award_retry_attempts must be >= 1")

    @property
    def economy(self) -> Tuple[Tuple[int, ...], int, int]:
        """The coin economy part: (daily_bonus_schedule, coins_per_credit, max_monthly_credits)"""
        return (self.daily_bonus_schedule, self.coins_per_credit, self.max_monthly_credits)

    @classmethod
    def from_env(
        cls,
        daily_bonus_schedule: Optional[Tuple[int, ...]] = None,
        coins_per_credit: Optional[int] = None,
        max_monthly_credits: Optional[int] = None,
        ledger_backend: Optional[str] = None,
        award_retry_attempts: Optional[int] = None,
    ) -> "EngineSettings":
        """Build settings from arguments and CC_* environment variables.

        Example:
            ```python
            # docker-compose
            CC_LEDGER_BACKEND=redis
            REDIS_HOST=redis

            settings = EngineSettings.from_env()
            ```
        """
        if daily_bonus_schedule is None:
            daily_bonus_schedule = _schedule_from_env(
                "CC_DAILY_BONUS_SCHEDULE", DEFAULT_DAILY_BONUS_SCHEDULE
            )

        backend_str = ledger_backend or os.getenv("CC_LEDGER_BACKEND", "memory")
        try:
            backend = LedgerBackendType(backend_str.lower())
        except ValueError:
            logger.warning(f"Invalid CC_LEDGER_BACKEND '{backend_str}', defaulting to 'memory'")
            backend = LedgerBackendType.MEMORY

        return cls(
            daily_bonus_schedule=tuple(daily_bonus_schedule),
            coins_per_credit=(
                coins_per_credit if coins_per_credit is not None
                else _int_from_env("CC_COINS_PER_CREDIT", DEFAULT_COINS_PER_CREDIT)
            ),
            max_monthly_credits=(
                max_monthly_credits if max_monthly_credits is not None
                else _int_from_env("CC_MAX_MONTHLY_CREDITS", DEFAULT_MAX_MONTHLY_CREDITS)
            ),
            ledger_backend=backend,
            award_retry_attempts=(
                award_retry_attempts if award_retry_attempts is not None
                else _int_from_env("CC_AWARD_RETRY_ATTEMPTS", 3)
            ),
            award_retry_max_wait=_float_from_env("CC_AWARD_RETRY_MAX_WAIT", 4.0),
        )


def _int_from_env(env_key: str, default: int) -> int:
    raw = os.getenv(env_key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer in {env_key}: {raw}, using {default}")
        return default


def _float_from_env(env_key: str, default: float) -> float:
    raw = os.getenv(env_key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number in {env_key}: {raw}, using {default}")
        return default


def _schedule_from_env(env_key: str, default: Tuple[int, ...]) -> Tuple[int, ...]:
    raw = os.getenv(env_key)
    if not raw:
        return default
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        logger.warning(f"Invalid schedule in {env_key}: {raw}, using default")
        return default

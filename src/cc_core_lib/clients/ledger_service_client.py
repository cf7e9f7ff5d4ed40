"""HTTP client for the remote ledger service."""

import logging
from datetime import date, datetime
from typing import List, Optional

import httpx

from cc_core_lib.clients.base import BaseServiceClient
from cc_core_lib.core.ledger import LedgerBackend
from cc_core_lib.exceptions import (
    ConversionCapReachedError,
    InsufficientBalanceError,
    InvalidOperationError,
    NotFoundError,
)
from cc_core_lib.models import (
    AwardResult,
    ConversionRecord,
    ConversionResult,
    DailyBonusResult,
    LedgerEntry,
    Wallet,
)

logger = logging.getLogger(__name__)


class LedgerServiceClient(BaseServiceClient, LedgerBackend):
    """LedgerBackend backed by the ledger service REST API.

    The service owns atomicity: an award POST for an existing (user, unit) pair
    answers granted=false. Error responses carry a JSON body with an "error"
    code ("not_found", "insufficient_balance", "conversion_cap_reached",
    "invalid_operation") which is mapped back onto the exception taxonomy.

    Usage:
        client = LedgerServiceClient(base_url="http://cc-ledger-service:8010")
        result = await client.try_award("user-456", "cf-1", 8)
    """

    service_name = "ledger"

    def __init__(
        self,
        base_url: str = "http://cc-ledger-service:8010",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _payload(response: httpx.Response) -> dict:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def _raise_for_error(self, response: httpx.Response, user_id: str, operation: str) -> None:
        """Map 4xx responses onto the exception taxonomy"""
        if response.is_success:
            return

        payload = self._payload(response)
        code = payload.get("error")
        detail = payload.get("detail") or response.text

        if response.status_code == 404:
            raise NotFoundError(payload.get("entity", "wallet"), payload.get("entity_id", user_id))

        if response.status_code in (409, 422):
            if code == "conversion_cap_reached":
                raise ConversionCapReachedError(
                    user_id=user_id,
                    coin_balance=int(payload.get("coin_balance", 0)),
                    credits_this_month=int(payload.get("credits_this_month", 0)),
                    cap=int(payload.get("cap", 0)),
                )
            if code == "insufficient_balance":
                raise InsufficientBalanceError(
                    user_id=user_id,
                    coin_balance=int(payload.get("coin_balance", 0)),
                    required=int(payload.get("required", 0)),
                )
            raise InvalidOperationError(operation, payload.get("unit_id", user_id), str(detail))

        response.raise_for_status()

    async def open_wallet(self, user_id: str) -> Wallet:
        response = await self._request("POST", f"/api/v1/wallets/{user_id}", user_id=user_id)
        self._raise_for_error(response, user_id, "open wallet")
        return Wallet(**response.json())

    async def get_wallet(self, user_id: str) -> Wallet:
        response = await self._request("GET", f"/api/v1/wallets/{user_id}", user_id=user_id)
        self._raise_for_error(response, user_id, "get wallet")
        return Wallet(**response.json())

    async def try_award(self, user_id: str, unit_id: str, coins: int) -> AwardResult:
        """Award coins once per (user_id, unit_id).

        Returns:
            AwardResult, granted=False if the unit already paid out

        Raises:
            NotFoundError: Wallet does not exist
            ServiceUnavailableError: Service unreachable or 5xx
        """
        if coins < 0:
            raise ValueError(f"coins must be >= 0, got {coins}")

        response = await self._request(
            "POST",
            f"/api/v1/ledger/{user_id}/awards",
            user_id=user_id,
            json={"unit_id": unit_id, "coins": coins},
        )
        self._raise_for_error(response, user_id, "award")
        result = AwardResult(**response.json())
        logger.debug(f"Ledger service award: user_id={user_id}, unit_id={unit_id}, granted={result.granted}")
        return result

    async def get_entry(self, user_id: str, unit_id: str) -> Optional[LedgerEntry]:
        response = await self._request(
            "GET", f"/api/v1/ledger/{user_id}/entries/{unit_id}", user_id=user_id
        )
        if response.status_code == 404:
            return None
        self._raise_for_error(response, user_id, "get entry")
        return LedgerEntry(**response.json())

    async def list_entries(self, user_id: str) -> List[LedgerEntry]:
        response = await self._request("GET", f"/api/v1/ledger/{user_id}/entries", user_id=user_id)
        self._raise_for_error(response, user_id, "list entries")
        return [LedgerEntry(**entry) for entry in response.json()]

    async def claim_daily_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonusResult:
        response = await self._request(
            "POST",
            f"/api/v1/wallets/{user_id}/daily-claim",
            user_id=user_id,
            json={"date": today.isoformat()} if today else {},
        )
        self._raise_for_error(response, user_id, "claim daily bonus")
        return DailyBonusResult(**response.json())

    async def convert_to_credits(self, user_id: str, now: Optional[datetime] = None) -> ConversionResult:
        response = await self._request(
            "POST",
            f"/api/v1/wallets/{user_id}/conversions",
            user_id=user_id,
            json={"converted_at": now.isoformat()} if now else {},
        )
        self._raise_for_error(response, user_id, "convert coins")
        return ConversionResult(**response.json())

    async def conversion_history(self, user_id: str) -> List[ConversionRecord]:
        response = await self._request("GET", f"/api/v1/wallets/{user_id}/conversions", user_id=user_id)
        self._raise_for_error(response, user_id, "list conversions")
        return [ConversionRecord(**record) for record in response.json()]

"""Test the ledger and notification HTTP clients against httpx.MockTransport.

Coverage: LedgerServiceClient, NotificationServiceClient, BaseServiceClient error mapping
"""

import json
from datetime import date

import httpx
import pytest

from cc_core_lib.clients import LedgerServiceClient, NotificationServiceClient
from cc_core_lib.core import CompletionEngine, InMemoryLedger
from cc_core_lib.exceptions import (
    ConversionCapReachedError,
    InsufficientBalanceError,
    InvalidOperationError,
    NotFoundError,
    ServiceUnavailableError,
)
from cc_core_lib.models import CasePhase, DomainEvent, EventType
from tests.conftest import USER_ID

BASE_URL = "http://ledger.test"


def _client(handler) -> LedgerServiceClient:
    return LedgerServiceClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


class FakeLedgerService:
    """Minimal ledger service: award once per unit, report balance."""

    def __init__(self):
        self.balance = 0
        self.units = {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == f"/api/v1/wallets/{USER_ID}":
            return httpx.Response(200, json={"user_id": USER_ID, "coin_balance": self.balance})
        if request.method == "POST" and path == f"/api/v1/ledger/{USER_ID}/awards":
            body = json.loads(request.content)
            granted = body["unit_id"] not in self.units
            if granted:
                self.units[body["unit_id"]] = body["coins"]
                self.balance += body["coins"]
            return httpx.Response(200, json={
                "unit_id": body["unit_id"],
                "granted": granted,
                "coins_granted": body["coins"] if granted else 0,
                "coin_balance": self.balance,
            })
        if request.method == "GET" and path == f"/api/v1/wallets/{USER_ID}":
            return httpx.Response(200, json={"user_id": USER_ID, "coin_balance": self.balance})
        return httpx.Response(404, json={"error": "not_found", "entity": "wallet", "entity_id": USER_ID})


# ============================================================================
# Ledger service client
# ============================================================================


class TestLedgerServiceClient:
    @pytest.mark.asyncio
    async def test_award_round_trip(self):
        service = FakeLedgerService()
        client = _client(service)

        first = await client.try_award(USER_ID, "cf-1", 8)
        second = await client.try_award(USER_ID, "cf-1", 8)

        assert first.granted and not second.granted
        assert second.coin_balance == 8
        request = service.requests[0]
        assert request.headers["X-User-ID"] == USER_ID
        assert json.loads(request.content) == {"unit_id": "cf-1", "coins": 8}

    @pytest.mark.asyncio
    async def test_engine_over_http(self, example_catalog, settings):
        service = FakeLedgerService()
        engine = CompletionEngine(example_catalog, _client(service), settings=settings)
        await engine.open_account(USER_ID)

        await engine.complete_substage(USER_ID, "complaint-filed", "cf-1")
        result = await engine.complete_substage(USER_ID, "complaint-filed", "cf-2")

        assert result.coins_earned == 75
        assert result.phase == CasePhase.LITIGATION
        assert service.balance == 125

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = _client(lambda request: httpx.Response(
            404, json={"error": "not_found", "entity": "wallet", "entity_id": "ghost"}
        ))
        with pytest.raises(NotFoundError) as exc_info:
            await client.get_wallet("ghost")
        assert exc_info.value.entity_id == "ghost"

    @pytest.mark.asyncio
    async def test_missing_entry_is_none(self):
        client = _client(lambda request: httpx.Response(404, json={"error": "not_found"}))
        assert await client.get_entry(USER_ID, "cf-1") is None

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        client = _client(lambda request: httpx.Response(503, text="maintenance"))
        with pytest.raises(ServiceUnavailableError) as exc_info:
            await client.try_award(USER_ID, "cf-1", 8)
        assert exc_info.value.service == "ledger"

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnavailableError):
            await _client(handler).get_wallet(USER_ID)

    @pytest.mark.asyncio
    async def test_insufficient_balance(self):
        client = _client(lambda request: httpx.Response(
            409, json={"error": "insufficient_balance", "coin_balance": 120, "required": 500}
        ))
        with pytest.raises(InsufficientBalanceError) as exc_info:
            await client.convert_to_credits(USER_ID)
        assert exc_info.value.shortfall == 380

    @pytest.mark.asyncio
    async def test_cap_reached(self):
        client = _client(lambda request: httpx.Response(
            409, json={"error": "conversion_cap_reached", "coin_balance": 900, "credits_this_month": 7, "cap": 7}
        ))
        with pytest.raises(ConversionCapReachedError):
            await client.convert_to_credits(USER_ID)

    @pytest.mark.asyncio
    async def test_invalid_operation(self):
        client = _client(lambda request: httpx.Response(
            422, json={"error": "invalid_operation", "detail": "date in the future"}
        ))
        with pytest.raises(InvalidOperationError, match="date in the future"):
            await client.claim_daily_bonus(USER_ID, date(2030, 1, 1))

    @pytest.mark.asyncio
    async def test_daily_claim_sends_date(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "user_id": USER_ID, "granted": True, "coins_awarded": 5,
                "streak": 1, "claim_date": "2026-03-09", "coin_balance": 5,
            })

        result = await _client(handler).claim_daily_bonus(USER_ID, date(2026, 3, 9))
        assert seen["body"] == {"date": "2026-03-09"}
        assert result.claim_date == date(2026, 3, 9)


# ============================================================================
# Notification service client
# ============================================================================


class TestNotificationServiceClient:
    @pytest.mark.asyncio
    async def test_publish_posts_event(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202)

        publisher = NotificationServiceClient(base_url="http://notify.test", transport=httpx.MockTransport(handler))
        event = DomainEvent(type=EventType.PHASE_CHANGED, user_id=USER_ID, unit_id="trial", phase=CasePhase.TRIAL)
        await publisher.publish(event)

        request = seen[0]
        assert request.url.path == "/api/v1/events"
        assert request.headers["X-Correlation-ID"] == event.event_id
        assert json.loads(request.content)["type"] == "phase_changed"

    @pytest.mark.asyncio
    async def test_engine_survives_notification_outage(self, example_catalog, settings):
        publisher = NotificationServiceClient(
            base_url="http://notify.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        engine = CompletionEngine(example_catalog, InMemoryLedger(), publisher=publisher, settings=settings)
        await engine.open_account(USER_ID)

        result = await engine.complete_substage(USER_ID, "complaint-filed", "cf-2")
        assert result.coins_earned == 50
        assert engine.current_phase(USER_ID) == CasePhase.LITIGATION

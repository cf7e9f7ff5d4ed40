"""Shared fixtures for the case progress & reward ledger tests."""

# pylint: disable=redefined-outer-name

from typing import Dict, Optional

import pytest
import pytest_asyncio

from cc_core_lib.config import EngineSettings
from cc_core_lib.core import (
    Catalog,
    CompletionEngine,
    InMemoryEventBus,
    InMemoryLedger,
    ProgressStore,
    default_catalog,
)
from cc_core_lib.exceptions import ServiceUnavailableError
from cc_core_lib.models import AwardResult

USER_ID = "user-1"

# Small roadmap mirroring the production layout:
# one stage per phase plus an empty closing stage
EXAMPLE_ROADMAP = {
    "phases": [
        {"phase": "pre_litigation", "name": "Pre-Litigation"},
        {"phase": "litigation", "name": "Litigation", "transition_substage_id": "cf-2"},
        {"phase": "trial", "name": "Trial", "transition_substage_id": "trial-1"},
    ],
    "stages": [
        {
            "id": "pre-litigation", "name": "Pre-Litigation", "bonus_coins": 20,
            "phase": "pre_litigation",
            "substages": [
                {"id": "pre-1", "name": "Police Report", "coins": 10, "accepted_formats": "PDF, JPG"},
                {"id": "pre-6", "name": "Auto Insurance Company", "coins": 5, "is_data_entry": True},
            ],
        },
        {
            "id": "complaint-filed", "name": "Complaint Filed", "bonus_coins": 25,
            "phase": "litigation",
            "substages": [
                {"id": "cf-1", "name": "Draft Complaint", "coins": 50},
                {"id": "cf-2", "name": "File with Court", "coins": 50},
            ],
        },
        {
            "id": "trial", "name": "Trial", "bonus_coins": 100,
            "phase": "trial",
            "substages": [
                {"id": "trial-1", "name": "Pretrial Motions", "coins": 10},
                {"id": "trial-2", "name": "Jury Selection", "coins": 10},
            ],
        },
        {
            "id": "closing", "name": "Closing", "bonus_coins": 15,
            "phase": "trial",
            "substages": [],
        },
    ],
}


class FlakyLedger(InMemoryLedger):
    """InMemoryLedger whose awards fail with ServiceUnavailableError on demand.

    failures maps unit_id -> number of consecutive failures before succeeding.
    """

    def __init__(self, failures: Optional[Dict[str, int]] = None):
        super().__init__()
        self.failures = dict(failures or {})
        self.award_calls: Dict[str, int] = {}

    async def try_award(self, user_id: str, unit_id: str, coins: int) -> AwardResult:
        self.award_calls[unit_id] = self.award_calls.get(unit_id, 0) + 1
        if self.failures.get(unit_id, 0) > 0:
            self.failures[unit_id] -= 1
            raise ServiceUnavailableError("ledger-flaky")
        return await super().try_award(user_id, unit_id, coins)


@pytest.fixture
def catalog() -> Catalog:
    return default_catalog()


@pytest.fixture
def example_catalog() -> Catalog:
    return Catalog.from_dict(EXAMPLE_ROADMAP)


@pytest.fixture
def settings() -> EngineSettings:
    # No backoff sleeps in tests
    return EngineSettings(award_retry_attempts=3, award_retry_max_wait=0.0)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def store(example_catalog: Catalog) -> ProgressStore:
    progress = ProgressStore(example_catalog)
    progress.start_case(USER_ID)
    return progress


@pytest_asyncio.fixture
async def engine(example_catalog, ledger, bus, settings) -> CompletionEngine:
    """Engine over the example roadmap with an opened account for USER_ID"""
    roadmap_engine = CompletionEngine(
        catalog=example_catalog, ledger=ledger, publisher=bus, settings=settings
    )
    await roadmap_engine.open_account(USER_ID)
    return roadmap_engine


@pytest_asyncio.fixture
async def default_engine(catalog, settings) -> CompletionEngine:
    """Engine over the built-in litigation roadmap"""
    roadmap_engine = CompletionEngine(catalog=catalog, ledger=InMemoryLedger(), settings=settings)
    await roadmap_engine.open_account(USER_ID)
    return roadmap_engine

"""Engine wiring from EngineSettings.

Picks the ledger backend named by CC_LEDGER_BACKEND and resolves service URLs
through the ServiceRegistry, so a service only needs:

    engine = await create_engine()
"""

import logging
from typing import Optional

from cc_core_lib.config import EngineSettings, LedgerBackendType
from cc_core_lib.core import (
    BonusCalculator,
    Catalog,
    CompletionEngine,
    EventPublisher,
    InMemoryLedger,
    LedgerBackend,
    default_catalog,
)
from cc_core_lib.discovery import ServiceRegistry, get_service_registry

logger = logging.getLogger(__name__)


async def create_ledger(
    settings: EngineSettings,
    registry: Optional[ServiceRegistry] = None,
) -> LedgerBackend:
    """Build the ledger backend selected by settings.ledger_backend"""
    calculator = BonusCalculator(settings)

    if settings.ledger_backend == LedgerBackendType.REDIS:
        from cc_core_lib.infrastructure import RedisLedger, get_redis_client

        return RedisLedger(await get_redis_client(), bonus_calculator=calculator)

    if settings.ledger_backend == LedgerBackendType.SERVICE:
        from cc_core_lib.clients import LedgerServiceClient

        registry = registry or get_service_registry()
        return LedgerServiceClient(base_url=registry.get_url("ledger"))

    return InMemoryLedger(bonus_calculator=calculator)


async def create_engine(
    settings: Optional[EngineSettings] = None,
    catalog: Optional[Catalog] = None,
    publisher: Optional[EventPublisher] = None,
    registry: Optional[ServiceRegistry] = None,
) -> CompletionEngine:
    """Create a CompletionEngine with the configured ledger backend.

    Args:
        settings: Engine settings (default: EngineSettings.from_env())
        catalog: Roadmap catalog (default: the built-in litigation roadmap)
        publisher: Event publisher (default: none, events are dropped)
        registry: Service registry for HTTP backends (default: process-wide registry)
    """
    settings = settings or EngineSettings.from_env()
    ledger = await create_ledger(settings, registry)
    engine = CompletionEngine(
        catalog=catalog or default_catalog(),
        ledger=ledger,
        publisher=publisher,
        settings=settings,
    )
    logger.info(f"Engine created with {settings.ledger_backend.value} ledger backend")
    return engine

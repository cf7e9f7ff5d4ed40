"""Case Companion Core Library

Case progress roadmap, reward ledger and coin economy for the Case Companion
services.
"""

__version__ = "0.1.0"

# Export shared models and errors first (no dependencies)
from cc_core_lib.exceptions import (
    RoadmapError,
    NotFoundError,
    InvalidOperationError,
    InsufficientBalanceError,
    ConversionCapReachedError,
    ServiceUnavailableError,
)
from cc_core_lib.models import (
    CasePhase, SubstageKind, Stage, Substage, Wallet, LedgerEntry,
    CompletionResult, DailyBonusResult, ConversionResult, DomainEvent, EventType,
)
from cc_core_lib.config import EngineSettings, LedgerBackendType

from cc_core_lib.core import (
    Catalog,
    default_catalog,
    PhaseClassifier,
    ProgressStore,
    LedgerBackend,
    InMemoryLedger,
    BonusCalculator,
    InMemoryEventBus,
    CompletionEngine,
)

from cc_core_lib.discovery import (
    ServiceRegistry,
    DeploymentMode,
    get_service_registry,
    reset_service_registry,
)


# Redis and HTTP backends are imported on first access
def __getattr__(name):
    """Lazy import for backend classes and the engine factory."""
    if name in ("LedgerServiceClient", "NotificationServiceClient"):
        from cc_core_lib import clients
        return getattr(clients, name)
    if name == "RedisLedger":
        from cc_core_lib.infrastructure import RedisLedger
        return RedisLedger
    if name == "create_engine":
        from cc_core_lib.bootstrap import create_engine
        return create_engine
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Errors
    "RoadmapError", "NotFoundError", "InvalidOperationError",
    "InsufficientBalanceError", "ConversionCapReachedError", "ServiceUnavailableError",
    # Models
    "CasePhase", "SubstageKind", "Stage", "Substage", "Wallet", "LedgerEntry",
    "CompletionResult", "DailyBonusResult", "ConversionResult", "DomainEvent", "EventType",
    # Configuration
    "EngineSettings", "LedgerBackendType",
    # Engine
    "Catalog", "default_catalog", "PhaseClassifier", "ProgressStore",
    "LedgerBackend", "InMemoryLedger", "BonusCalculator", "InMemoryEventBus",
    "CompletionEngine", "create_engine",
    # Backends (lazy loaded)
    "RedisLedger", "LedgerServiceClient", "NotificationServiceClient",
    # Service Discovery
    "ServiceRegistry",
    "DeploymentMode",
    "get_service_registry",
    "reset_service_registry",
]

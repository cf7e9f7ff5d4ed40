"""
Shared data models for the case progress & reward ledger engine.

This package provides Pydantic models shared by the engine, its storage
backends and the service clients so that every layer speaks the same shapes.
"""

from cc_core_lib.models.roadmap import (
    # Phases
    CasePhase,
    PhaseDefinition,

    # Catalog definitions
    SubstageKind,
    SubstageDefinition,
    StageDefinition,

    # Per-user snapshots
    Substage,
    Stage,

    # Read models
    PhaseProgress,
    ProgressSummary,
)

from cc_core_lib.models.ledger import (
    LedgerEntry,
    Wallet,
    AwardResult,
    CompletionResult,
    DailyBonusResult,
    ConversionRecord,
    ConversionResult,
)

from cc_core_lib.models.events import (
    EventType,
    DomainEvent,
)

__all__ = [
    # Phases
    "CasePhase", "PhaseDefinition",
    # Catalog
    "SubstageKind", "SubstageDefinition", "StageDefinition",
    # Snapshots
    "Substage", "Stage",
    # Read models
    "PhaseProgress", "ProgressSummary",
    # Ledger
    "LedgerEntry", "Wallet", "AwardResult", "CompletionResult",
    "DailyBonusResult", "ConversionRecord", "ConversionResult",
    # Events
    "EventType", "DomainEvent",
]

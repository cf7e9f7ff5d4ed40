"""Core engine: catalog, phase classifier, progress store, ledger and completion engine"""

from cc_core_lib.core.bonus_calculator import (
    BonusCalculator,
    coins_needed_for_credits,
    credits_from_coins,
    daily_bonus,
    next_streak,
)
from cc_core_lib.core.catalog import Catalog
from cc_core_lib.core.completion_engine import CompletionEngine
from cc_core_lib.core.default_catalog import (
    LITIGATION_ROADMAP,
    LITIGATION_TRANSITION_SUBSTAGE_ID,
    TRIAL_TRANSITION_SUBSTAGE_ID,
    default_catalog,
)
from cc_core_lib.core.events import EventPublisher, InMemoryEventBus
from cc_core_lib.core.ledger import InMemoryLedger, LedgerBackend
from cc_core_lib.core.phase_classifier import PhaseClassifier, rounded_percentage
from cc_core_lib.core.progress_store import ProgressStore

__all__ = [
    "Catalog",
    "default_catalog",
    "LITIGATION_ROADMAP",
    "LITIGATION_TRANSITION_SUBSTAGE_ID",
    "TRIAL_TRANSITION_SUBSTAGE_ID",
    "PhaseClassifier",
    "rounded_percentage",
    "ProgressStore",
    "LedgerBackend",
    "InMemoryLedger",
    "BonusCalculator",
    "daily_bonus",
    "credits_from_coins",
    "coins_needed_for_credits",
    "next_streak",
    "EventPublisher",
    "InMemoryEventBus",
    "CompletionEngine",
]

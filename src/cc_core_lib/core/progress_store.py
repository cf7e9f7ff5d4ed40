"""Progress Store - per-user completion flags and entered content.

Single source of truth for "is this unit of work currently marked done".
It never awards coins; the CompletionEngine drives every completion flag
from the ledger's authoritative response.

Stage completion is derived on read (all substages completed). Stages with
zero substages store their completed flag explicitly. For stages with
substages, the stored flag records that the cascading completion was
confirmed by the ledger, which lets a retried completion finish a cascade
that failed half-way.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional

from cc_core_lib.core.catalog import Catalog
from cc_core_lib.exceptions import InvalidOperationError, NotFoundError
from cc_core_lib.models import Stage, Substage, SubstageKind
from cc_core_lib.models.common import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SubstageState:
    completed: bool = False
    completed_at: Optional[datetime] = None
    entered_data: Optional[str] = None
    uploaded_file_refs: List[str] = field(default_factory=list)


@dataclass
class StageState:
    completion_recorded: bool = False
    expanded: bool = False


@dataclass
class CaseProgress:
    """Mutable roadmap record for one user, created from the catalog at case start"""

    user_id: str
    stages: Dict[str, StageState] = field(default_factory=dict)
    substages: Dict[str, SubstageState] = field(default_factory=dict)
    started_at: datetime = field(default_factory=utc_now)


class ProgressStore:
    """In-process progress store keyed by user id.

    Usage:
        store = ProgressStore(catalog)
        store.start_case("user-1")
        store.set_substage_entered_data("user-1", "pre-6", "Acme Insurance")
        stage = store.get_stage("user-1", "pre-litigation")
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self._cases: Dict[str, CaseProgress] = {}

    # ============================================================
    # Case lifecycle
    # ============================================================

    def start_case(self, user_id: str) -> bool:
        """Create the user's roadmap with everything incomplete.

        Returns:
            True if a new record was created, False if it already existed
        """
        if not user_id:
            raise ValueError("user_id is required")
        if user_id in self._cases:
            return False

        progress = CaseProgress(user_id=user_id)
        for stage in self.catalog.stages:
            progress.stages[stage.id] = StageState()
            for substage in stage.substages:
                progress.substages[substage.id] = SubstageState()
        self._cases[user_id] = progress

        logger.info(f"Case progress created for user_id={user_id}")
        return True

    def has_case(self, user_id: str) -> bool:
        return user_id in self._cases

    def _case(self, user_id: str) -> CaseProgress:
        try:
            return self._cases[user_id]
        except KeyError:
            raise NotFoundError("user", user_id, detail="no case progress") from None

    def _substage_state(self, user_id: str, substage_id: str) -> SubstageState:
        progress = self._case(user_id)
        self.catalog.get_substage(substage_id)
        return progress.substages[substage_id]

    def _stage_state(self, user_id: str, stage_id: str) -> StageState:
        progress = self._case(user_id)
        self.catalog.get_stage(stage_id)
        return progress.stages[stage_id]

    # ============================================================
    # Mutations
    # ============================================================

    def set_substage_completed(self, user_id: str, substage_id: str, completed: bool) -> None:
        state = self._substage_state(user_id, substage_id)
        if state.completed == completed:
            return
        state.completed = completed
        state.completed_at = utc_now() if completed else None
        logger.debug(f"Substage {substage_id} completed={completed} for user_id={user_id}")

    def set_substage_entered_data(self, user_id: str, substage_id: str, value: Optional[str]) -> None:
        """Store free-text data for a DATA_ENTRY_REQUIRED substage"""
        definition = self.catalog.get_substage(substage_id)
        if definition.kind != SubstageKind.DATA_ENTRY_REQUIRED:
            raise InvalidOperationError(
                "enter data", substage_id, f"substage kind is {definition.kind.value}"
            )
        state = self._substage_state(user_id, substage_id)
        state.entered_data = value.strip() if value is not None else None

    def append_uploaded_file(self, user_id: str, substage_id: str, ref: str) -> None:
        """Attach an opaque evidence reference to an UPLOAD_REQUIRED substage"""
        definition = self.catalog.get_substage(substage_id)
        if definition.kind != SubstageKind.UPLOAD_REQUIRED:
            raise InvalidOperationError(
                "attach file", substage_id, f"substage kind is {definition.kind.value}"
            )
        if not ref:
            raise InvalidOperationError("attach file", substage_id, "empty file reference")
        state = self._substage_state(user_id, substage_id)
        state.uploaded_file_refs.append(ref)

    def set_stage_expanded(self, user_id: str, stage_id: str, expanded: bool) -> None:
        self._stage_state(user_id, stage_id).expanded = expanded

    def set_stage_completed(self, user_id: str, stage_id: str, completed: bool) -> None:
        """Record (or clear) the explicit stage completion flag"""
        self._stage_state(user_id, stage_id).completion_recorded = completed

    def reset_stage(self, user_id: str, stage_id: str) -> None:
        """Return a stage and its substages to the initial, empty state.

        Clears completion flags, entered data and file references.
        The expanded UI flag is kept.
        """
        stage_state = self._stage_state(user_id, stage_id)
        progress = self._case(user_id)
        stage_state.completion_recorded = False
        for substage in self.catalog.get_stage(stage_id).substages:
            progress.substages[substage.id] = SubstageState()
        logger.info(f"Stage {stage_id} reset for user_id={user_id}")

    # ============================================================
    # Reads
    # ============================================================

    def is_stage_completion_recorded(self, user_id: str, stage_id: str) -> bool:
        return self._stage_state(user_id, stage_id).completion_recorded

    def completed_substage_ids(self, user_id: str) -> FrozenSet[str]:
        progress = self._case(user_id)
        return frozenset(
            substage_id for substage_id, state in progress.substages.items() if state.completed
        )

    def completed_empty_stage_ids(self, user_id: str) -> FrozenSet[str]:
        """Stages without substages whose explicit flag is set"""
        progress = self._case(user_id)
        return frozenset(
            stage.id for stage in self.catalog.stages
            if not stage.substages and progress.stages[stage.id].completion_recorded
        )

    def get_substage(self, user_id: str, substage_id: str) -> Substage:
        definition = self.catalog.get_substage(substage_id)
        state = self._substage_state(user_id, substage_id)
        return Substage(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            coins=definition.coins,
            kind=definition.kind,
            completed=state.completed,
            completed_at=state.completed_at,
            entered_data=state.entered_data,
            uploaded_file_refs=list(state.uploaded_file_refs),
        )

    def get_stage(self, user_id: str, stage_id: str) -> Stage:
        definition = self.catalog.get_stage(stage_id)
        stage_state = self._stage_state(user_id, stage_id)
        substages = [self.get_substage(user_id, substage.id) for substage in definition.substages]

        if substages:
            completed = all(substage.completed for substage in substages)
        else:
            completed = stage_state.completion_recorded

        return Stage(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            bonus_coins=definition.bonus_coins,
            phase=definition.phase,
            substages=substages,
            completed=completed,
            expanded=stage_state.expanded,
        )

    def list_stages(self, user_id: str) -> List[Stage]:
        self._case(user_id)
        return [self.get_stage(user_id, stage.id) for stage in self.catalog.stages]

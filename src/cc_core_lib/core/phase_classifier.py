"""Phase Classifier - derive the case phase from completed substages.

Pure functions over the current completed set. The phase is recomputed on
every read, so reverting a transition substage demotes the phase again.
"""

import logging
from typing import AbstractSet, Iterable, Optional

from cc_core_lib.core.catalog import Catalog
from cc_core_lib.models import CasePhase, PhaseProgress, StageDefinition

logger = logging.getLogger(__name__)


def rounded_percentage(part: int, total: int) -> int:
    """0-100 percentage rounded half up (0 when total is 0)"""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


class PhaseClassifier:
    """Maps a completed-substage set onto a CasePhase.

    Check order matters: TRIAL is tested before LITIGATION so the highest
    reached phase wins even if an earlier transition substage is missing.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def current_phase(self, completed_substage_ids: AbstractSet[str]) -> CasePhase:
        """Return the highest phase whose transition substage is completed"""
        for phase in (CasePhase.TRIAL, CasePhase.LITIGATION):
            transition_id = self.catalog.transition_substage_id(phase)
            if transition_id is not None and transition_id in completed_substage_ids:
                return phase
        return CasePhase.PRE_LITIGATION

    def is_stage_complete(
        self,
        stage: StageDefinition,
        completed_substage_ids: AbstractSet[str],
        completed_empty_stage_ids: AbstractSet[str] = frozenset(),
    ) -> bool:
        """Derived completion: all substages done, or explicit flag for empty stages"""
        if not stage.substages:
            return stage.id in completed_empty_stage_ids
        return all(substage.id in completed_substage_ids for substage in stage.substages)

    def phase_progress(
        self,
        completed_substage_ids: AbstractSet[str],
        completed_empty_stage_ids: Optional[Iterable[str]] = None,
    ) -> PhaseProgress:
        """Stage completion within the current phase.

        Args:
            completed_substage_ids: Substages currently marked complete
            completed_empty_stage_ids: Stages without substages that were completed explicitly

        Returns:
            PhaseProgress with completed/total stage counts and a rounded percentage
        """
        empty_done = frozenset(completed_empty_stage_ids or ())
        phase = self.current_phase(completed_substage_ids)
        stages = self.catalog.stages_in_phase(phase)
        completed = sum(
            1 for stage in stages
            if self.is_stage_complete(stage, completed_substage_ids, empty_done)
        )
        return PhaseProgress(
            phase=phase,
            completed_stages=completed,
            total_stages=len(stages),
            percentage=rounded_percentage(completed, len(stages)),
        )

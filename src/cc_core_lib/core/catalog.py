"""Roadmap Catalog

Read-only reference data: stages, substages, coin values and phase membership.

Coin values are canonical here and are never supplied by callers. The engine
always resolves the amount to award from the catalog.

Catalog invariants (checked at construction):
- Stage ids and substage ids share one namespace (the ledger's unit ids),
  so every id must be unique across both
- Every stage belongs to a defined phase
- Every phase transition substage exists in the catalog
- Coin values are non-negative (enforced by the pydantic definitions)
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from cc_core_lib.exceptions import NotFoundError
from cc_core_lib.models import (
    CasePhase,
    PhaseDefinition,
    StageDefinition,
    SubstageDefinition,
    SubstageKind,
)

logger = logging.getLogger(__name__)


class Catalog:
    """Static definition of the litigation roadmap.

    Usage:
        catalog = Catalog(stages=[...], phases=[...])
        stage = catalog.get_stage("complaint-filed")
        trial_stages = catalog.stages_in_phase(CasePhase.TRIAL)
    """

    def __init__(
        self,
        stages: Sequence[StageDefinition],
        phases: Sequence[PhaseDefinition],
    ):
        self._stages: Tuple[StageDefinition, ...] = tuple(stages)
        self._phases: Dict[CasePhase, PhaseDefinition] = {}
        self._stages_by_id: Dict[str, StageDefinition] = {}
        self._substages_by_id: Dict[str, SubstageDefinition] = {}
        self._stage_of_substage: Dict[str, str] = {}

        for phase_def in phases:
            if phase_def.phase in self._phases:
                raise ValueError(f"Duplicate phase definition: {phase_def.phase.value}")
            self._phases[phase_def.phase] = phase_def

        missing_phases = [phase.value for phase in CasePhase if phase not in self._phases]
        if missing_phases:
            raise ValueError(f"Catalog is missing phase definitions: {missing_phases}")

        for stage in self._stages:
            self._register_unit(stage.id)
            self._stages_by_id[stage.id] = stage
            for substage in stage.substages:
                self._register_unit(substage.id)
                self._substages_by_id[substage.id] = substage
                self._stage_of_substage[substage.id] = stage.id

        for phase_def in self._phases.values():
            transition_id = phase_def.transition_substage_id
            if transition_id is not None and transition_id not in self._substages_by_id:
                raise ValueError(
                    f"Transition substage '{transition_id}' for phase "
                    f"{phase_def.phase.value} is not in the catalog"
                )

        logger.debug(
            f"Catalog initialized: stages={len(self._stages)}, "
            f"substages={len(self._substages_by_id)}"
        )

    def _register_unit(self, unit_id: str) -> None:
        if unit_id in self._stages_by_id or unit_id in self._substages_by_id:
            raise ValueError(f"Duplicate unit id in catalog: {unit_id}")

    # ============================================================
    # Construction helpers
    # ============================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """Build a catalog from plain dictionaries (e.g. parsed JSON).

        Substage kind is resolved once here. An explicit ``kind`` wins;
        otherwise ``accepted_formats`` means UPLOAD_REQUIRED and
        ``is_data_entry`` means DATA_ENTRY_REQUIRED.

        Example:
            ```python
            catalog = Catalog.from_dict({
                "phases": [{"phase": "pre_litigation", "name": "Pre-Litigation"}, ...],
                "stages": [{
                    "id": "complaint-filed", "name": "Complaint Filed",
                    "bonus_coins": 25, "phase": "litigation",
                    "substages": [{"id": "cf-1", "name": "Draft Complaint", "coins": 50}],
                }],
            })
            ```
        """
        phases = [PhaseDefinition(**phase) for phase in data.get("phases", [])]
        stages = []
        for raw_stage in data.get("stages", []):
            raw_stage = dict(raw_stage)
            substages = [
                cls._substage_from_dict(raw_substage)
                for raw_substage in raw_stage.pop("substages", [])
            ]
            stages.append(StageDefinition(substages=substages, **raw_stage))
        return cls(stages=stages, phases=phases)

    @staticmethod
    def _substage_from_dict(raw: Dict[str, Any]) -> SubstageDefinition:
        raw = dict(raw)
        is_data_entry = raw.pop("is_data_entry", False)
        formats = raw.get("accepted_formats")
        if isinstance(formats, str):
            raw["accepted_formats"] = formats.split(",")
        if "kind" not in raw:
            if raw.get("accepted_formats"):
                raw["kind"] = SubstageKind.UPLOAD_REQUIRED
            elif is_data_entry:
                raw["kind"] = SubstageKind.DATA_ENTRY_REQUIRED
            else:
                raw["kind"] = SubstageKind.SIMPLE
        return SubstageDefinition(**raw)

    # ============================================================
    # Lookups
    # ============================================================

    @property
    def stages(self) -> Tuple[StageDefinition, ...]:
        """All stages in roadmap order"""
        return self._stages

    @property
    def phases(self) -> List[PhaseDefinition]:
        """Phase definitions in lifecycle order"""
        return [self._phases[phase] for phase in CasePhase]

    def get_stage(self, stage_id: str) -> StageDefinition:
        try:
            return self._stages_by_id[stage_id]
        except KeyError:
            raise NotFoundError("stage", stage_id) from None

    def get_substage(self, substage_id: str) -> SubstageDefinition:
        try:
            return self._substages_by_id[substage_id]
        except KeyError:
            raise NotFoundError("substage", substage_id) from None

    def stage_for_substage(self, substage_id: str) -> StageDefinition:
        """Return the stage that owns a substage"""
        self.get_substage(substage_id)
        return self._stages_by_id[self._stage_of_substage[substage_id]]

    def get_member_substage(self, stage_id: str, substage_id: str) -> SubstageDefinition:
        """Resolve a substage and check it belongs to the given stage.

        Raises:
            NotFoundError: If either id is unknown or the substage belongs to another stage
        """
        self.get_stage(stage_id)
        substage = self.get_substage(substage_id)
        if self._stage_of_substage[substage_id] != stage_id:
            raise NotFoundError(
                "substage", substage_id, detail=f"not part of stage {stage_id}"
            )
        return substage

    def stages_in_phase(self, phase: Union[CasePhase, str]) -> List[StageDefinition]:
        phase = self._coerce_phase(phase)
        return [stage for stage in self._stages if stage.phase == phase]

    def get_phase(self, phase: Union[CasePhase, str]) -> PhaseDefinition:
        return self._phases[self._coerce_phase(phase)]

    def transition_substage_id(self, phase: Union[CasePhase, str]) -> Optional[str]:
        return self.get_phase(phase).transition_substage_id

    def has_unit(self, unit_id: str) -> bool:
        """True if unit_id is a known stage or substage id"""
        return unit_id in self._stages_by_id or unit_id in self._substages_by_id

    def iter_substages(self) -> Iterable[SubstageDefinition]:
        for stage in self._stages:
            yield from stage.substages

    @staticmethod
    def _coerce_phase(phase: Union[CasePhase, str]) -> CasePhase:
        if isinstance(phase, CasePhase):
            return phase
        try:
            return CasePhase(phase)
        except ValueError:
            raise NotFoundError("phase", str(phase)) from None

"""Roadmap data models - stages, substages and case phases.

This module defines the litigation roadmap structure used by the engine.

Key Models:
- CasePhase: Coarse case status (PRE_LITIGATION → LITIGATION → TRIAL)
- SubstageKind: What a substage requires (upload, data entry, nothing)
- StageDefinition / SubstageDefinition: Static catalog entries (read-only)
- Stage / Substage: Per-user snapshots with completion state
- PhaseProgress / ProgressSummary: Derived read models for the UI

Architecture:
- Definitions are frozen and shared across users
- Snapshots are produced by the ProgressStore on read, never edited by callers
- Stage completion is derived from its substages (explicit only for empty stages)
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================
# Phases
# ============================================================

class CasePhase(str, Enum):
    """
    Coarse case status derived from completed transition substages.

    Lifecycle Flow:
      PRE_LITIGATION → LITIGATION → TRIAL

    The phase is recomputed from the current completed set on every read.
    """

    PRE_LITIGATION = "pre_litigation"
    LITIGATION = "litigation"
    TRIAL = "trial"


class PhaseDefinition(BaseModel):
    """Display metadata and promotion trigger for one phase."""

    model_config = ConfigDict(frozen=True)

    phase: CasePhase
    name: str = Field(min_length=1)
    icon: str = ""
    color: str = ""
    description: str = ""
    transition_substage_id: Optional[str] = Field(
        default=None,
        description="Substage whose completion promotes the case into this phase (None for the starting phase)"
    )


# ============================================================
# Catalog definitions (static)
# ============================================================

class SubstageKind(str, Enum):
    """What a substage requires before it is meaningful to complete"""
    UPLOAD_REQUIRED = "upload_required"          # Evidence file(s) expected
    DATA_ENTRY_REQUIRED = "data_entry_required"  # Free-text value expected
    SIMPLE = "simple"                            # Checkbox only


class SubstageDefinition(BaseModel):
    """Catalog entry for the smallest trackable unit of work."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Globally unique substage id (e.g. 'cf-2')")
    name: str = Field(min_length=1)
    description: str = ""
    coins: int = Field(ge=0, description="Coins awarded the first time this substage is completed")
    kind: SubstageKind = SubstageKind.SIMPLE
    icon: str = ""
    accepted_formats: List[str] = Field(
        default_factory=list,
        description="Upload formats shown to the user (UPLOAD_REQUIRED only)"
    )

    @field_validator("accepted_formats")
    @classmethod
    def normalize_formats(cls, v: List[str]) -> List[str]:
        """Upper-case and strip format labels"""
        return [fmt.strip().upper() for fmt in v if fmt.strip()]


class StageDefinition(BaseModel):
    """Catalog entry for an ordered group of substages."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    bonus_coins: int = Field(ge=0, description="Cascading bonus awarded once when the stage completes")
    phase: CasePhase
    substages: List[SubstageDefinition] = Field(default_factory=list)

    @property
    def substage_ids(self) -> List[str]:
        return [substage.id for substage in self.substages]

    @property
    def total_coins(self) -> int:
        """Stage bonus plus every substage reward"""
        return self.bonus_coins + sum(substage.coins for substage in self.substages)


# ============================================================
# Per-user snapshots
# ============================================================

class Substage(BaseModel):
    """Snapshot of one substage for a specific user."""

    id: str
    name: str
    description: str = ""
    coins: int = Field(ge=0)
    kind: SubstageKind
    completed: bool = False
    entered_data: Optional[str] = Field(
        default=None,
        description="Only meaningful when kind is DATA_ENTRY_REQUIRED"
    )
    uploaded_file_refs: List[str] = Field(
        default_factory=list,
        description="Opaque references from the evidence service (UPLOAD_REQUIRED only)"
    )
    completed_at: Optional[datetime] = None


class Stage(BaseModel):
    """Snapshot of one stage for a specific user."""

    id: str
    name: str
    description: str = ""
    bonus_coins: int = Field(ge=0)
    phase: CasePhase
    substages: List[Substage] = Field(default_factory=list)
    completed: bool = Field(
        default=False,
        description="Derived: all substages completed (stored explicitly only for empty stages)"
    )
    expanded: bool = Field(default=False, description="UI state only")

    @property
    def completed_substage_count(self) -> int:
        return sum(1 for substage in self.substages if substage.completed)

    @property
    def pending_substages(self) -> List[Substage]:
        return [substage for substage in self.substages if not substage.completed]


# ============================================================
# Derived read models
# ============================================================

class PhaseProgress(BaseModel):
    """Completion of the stages belonging to the current phase"""

    phase: CasePhase
    completed_stages: int = Field(ge=0)
    total_stages: int = Field(ge=0)
    percentage: int = Field(ge=0, le=100, description="0-100, rounded to the nearest integer")


class ProgressSummary(BaseModel):
    """Roadmap-wide progress overview for one user"""

    user_id: str
    phase: CasePhase
    current_stage_id: Optional[str] = None
    current_stage_name: Optional[str] = None
    total_substages: int = 0
    completed_substages: int = 0
    total_stages: int = 0
    completed_stages: int = 0
    coins_earned: int = Field(default=0, description="Coins granted by the ledger for roadmap units")
    percentage: int = Field(default=0, ge=0, le=100)

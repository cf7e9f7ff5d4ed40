"""Domain events emitted to the notification service."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from cc_core_lib.models.roadmap import CasePhase


class EventType(str, Enum):
    SUBSTAGE_COMPLETED = "substage_completed"
    STAGE_COMPLETED = "stage_completed"
    PHASE_CHANGED = "phase_changed"


class DomainEvent(BaseModel):
    """
    Status change notification, consumed out of band.

    unit_id is the substage or stage id for completion events and the
    phase value for PHASE_CHANGED.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: f"evt_{uuid4().hex[:12]}")
    type: EventType
    user_id: str
    unit_id: str
    coins_earned: int = Field(default=0, ge=0)
    phase: Optional[CasePhase] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

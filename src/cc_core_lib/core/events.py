"""Event publishing for status changes.

The engine emits DomainEvents after a state change is applied. Delivery is
out of band: a publisher failure is logged by the engine and never undoes the
completed action.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from cc_core_lib.models import DomainEvent, EventType

logger = logging.getLogger(__name__)


class EventPublisher(ABC):
    """Destination for domain events (notification service, queue, test sink)"""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Deliver one event"""


class InMemoryEventBus(EventPublisher):
    """Keeps published events in memory for inspection.

    Usage:
        bus = InMemoryEventBus()
        engine = CompletionEngine(..., publisher=bus)
        ...
        phase_events = bus.of_type(EventType.PHASE_CHANGED)
    """

    def __init__(self, max_events: Optional[int] = 1000):
        self.max_events = max_events
        self.events: List[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)
        if self.max_events is not None and len(self.events) > self.max_events:
            del self.events[: len(self.events) - self.max_events]
        logger.debug(f"Event recorded: type={event.type.value}, user_id={event.user_id}, unit_id={event.unit_id}")

    def of_type(self, event_type: EventType) -> List[DomainEvent]:
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        self.events.clear()

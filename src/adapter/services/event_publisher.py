"""In-process event publisher

Dispatches committed charge events to the observers registered for them.
Delivery is sequential and best effort: a failing observer is logged and the
remaining observers still run.
"""

import logging
from typing import List, Tuple, Type
from src.app.services.event_publisher import EventPublisher, EventObserver
from src.domain.charge_events import ChargeEvent

logger = logging.getLogger(__name__)


class InProcessEventPublisher(EventPublisher):
    """
    Event publisher that calls observers in the current process

    Observers subscribed to ChargeEvent receive every event; observers
    subscribed to a subclass receive only that event type.
    """

    def __init__(self):
        self._observers: List[Tuple[Type[ChargeEvent], EventObserver]] = []

    def subscribe(self, event_type: Type[ChargeEvent], observer: EventObserver) -> None:
        self._observers.append((event_type, observer))

    async def publish(self, event: ChargeEvent) -> None:

        notified = 0
        for event_type, observer in self._observers:
            if not isinstance(event, event_type):
                continue
            notified += 1
            try:
                await observer(event)
            except Exception as e:
                logger.error(
                    f"Observer {getattr(observer, '__qualname__', observer)!s} failed "
                    f"for {event.event_type.value} (charge {event.charge.id}): {e}"
                )

        logger.debug(
            f"Published {event.event_type.value} for charge {event.charge.id} "
            f"to {notified} observer(s)"
        )

"""Event Publisher Interface

Fans charge events out to registered observers. The publisher is built once
per process and handed to the use cases that publish through it.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Type
from src.domain.charge_events import ChargeEvent

EventObserver = Callable[[ChargeEvent], Awaitable[object]]


class EventPublisher(ABC):
    """
    Abstract in-process event publisher

    Contract:
    - publish() is called only after the originating transaction committed
    - Observer failures are contained; publish() never raises because of them
    """

    @abstractmethod
    def subscribe(self, event_type: Type[ChargeEvent], observer: EventObserver) -> None:
        """
        Register an observer for an event type (and its subclasses)

        Args:
            event_type: ChargeEvent subclass to observe
            observer: Async callable receiving the event
        """
        pass

    @abstractmethod
    async def publish(self, event: ChargeEvent) -> None:
        """
        Deliver an event to every matching observer

        Args:
            event: Committed charge event
        """
        pass

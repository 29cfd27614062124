from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from charlieverse.models.events import DomainEvent

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=DomainEvent)
Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """In-process publish/subscribe for domain events.

    Publishers call :meth:`publish` after their state change has been stored.
    Each subscriber runs in turn; an exception in one is logged and does not
    reach the publisher or the remaining subscribers.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[EventT], handler: Callable[[EventT], Awaitable[None]]) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[Handler]:
        return list(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        for handler in self.handlers_for(type(event)):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %s failed handling %s",
                    getattr(handler, "__qualname__", repr(handler)),
                    type(event).__name__,
                )

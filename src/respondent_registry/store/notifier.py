"""Change notifications for readers of the respondent store.

After every successful write the store publishes a ChangeEvent so that views
holding respondent data know to refetch.
"""

from dataclasses import dataclass
from typing import Callable

from respondent_registry.logging_audit import get_operation_logger

logger = get_operation_logger("store")


@dataclass(frozen=True)
class ChangeEvent:
    """A write that invalidates cached respondent views.

    Attributes:
        action: "created", "updated" or "deleted"
        record_id: Affected respondent id
    """

    action: str
    record_id: str


Subscriber = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Fan-out of change events to subscribed callbacks."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Subscriber:
        """Register a callback; returns it so this can be used as a decorator."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every subscriber.

        A failing subscriber is logged and skipped; the write that produced
        the event has already been committed.
        """
        logger.debug(f"Publishing change event: {event.action} {event.record_id}")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    f"Change subscriber failed for {event.action} {event.record_id}"
                )

"""
Publish channel implementations.

Manifesto:
    The engine hands each non-empty context to a channel exactly once per
    request and reads back delivered/not-delivered. Channels are simple
    unreliable handoffs: they never retry, and they must accept concurrent
    calls from the bulk-publish worker pool.

Implementations:
    InMemoryPublishChannel   records events and fans them out to
                             synchronous subscribers (tests, single process)
    JsonLinesPublishChannel  appends one JSON document per event to a file

Tags:
    publishing, out-topic, channel, in-memory, json-lines
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from lineage_spine.core.errors import PublishError
from lineage_spine.core.logging import get_logger
from lineage_spine.publishing.events import LineageEvent

__all__ = ["EventHandler", "InMemoryPublishChannel", "JsonLinesPublishChannel"]

log = get_logger(__name__)

EventHandler = Callable[[LineageEvent], None]


def _matches(pattern: str, event: LineageEvent) -> bool:
    """``*`` matches everything, ``Prefix*`` matches by prefix, otherwise exact."""
    event_type = event.event_type.value
    if pattern == "*":
        return True
    if pattern.endswith("*"):
        return event_type.startswith(pattern[:-1])
    return event_type == pattern


@dataclass
class Subscription:
    """Internal subscription record."""

    id: str
    pattern: str
    handler: EventHandler


class InMemoryPublishChannel:
    """In-process channel that keeps every delivered event.

    Subscribers are called synchronously on the publishing thread. A
    failing subscriber is logged and does not turn a delivery into a
    failure.

    Example::

        channel = InMemoryPublishChannel()
        channel.subscribe("ProcessContextEvent", lambda e: print(e.entity_id))
        channel.publish(event)
        channel.published_ids()  # ['proc-1']
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[LineageEvent] = []
        self._subscriptions: dict[str, Subscription] = {}
        self._closed = False

    def publish(self, event: LineageEvent) -> bool:
        with self._lock:
            if self._closed:
                log.warning("channel.closed", event_type=event.event_type.value, entity_id=event.entity_id)
                return False
            self._events.append(event)
            handlers = [
                (sub.id, sub.handler)
                for sub in self._subscriptions.values()
                if _matches(sub.pattern, event)
            ]

        for sub_id, handler in handlers:
            try:
                handler(event)
            except Exception as e:
                log.warning(
                    "channel.subscriber_error",
                    subscription_id=sub_id,
                    event_type=event.event_type.value,
                    error=str(e),
                )
        return True

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        sub_id = f"sub_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._subscriptions[sub_id] = Subscription(id=sub_id, pattern=pattern, handler=handler)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> None:
        with self._lock:
            self._subscriptions.pop(subscription_id, None)

    def close(self) -> None:
        """Stop accepting events; later publishes report failure."""
        with self._lock:
            self._closed = True
            self._subscriptions.clear()

    @property
    def events(self) -> list[LineageEvent]:
        with self._lock:
            return list(self._events)

    def published_ids(self) -> list[str]:
        return [event.entity_id for event in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)


class JsonLinesPublishChannel:
    """Appends each event as one JSON line to ``path``.

    Write failures raise :class:`PublishError` with the ``OSError`` chained.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def publish(self, event: LineageEvent) -> bool:
        line = event.model_dump_json()
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
        except OSError as e:
            raise PublishError(f"Could not write event to {self.path}", cause=e).with_context(
                entity_id=event.entity_id,
                entity_type=event.entity_type,
            ) from e
        return True

    def read_events(self) -> list[LineageEvent]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as fh:
            return [LineageEvent.model_validate_json(line) for line in fh if line.strip()]

"""
Audit trail for publication lifecycle notifications.

The engine reports each step of a request (scan started, entities found,
publish sequence start/end, per-entity outcome) to an injected
:class:`~lineage_spine.core.protocols.AuditSink`. Notifications are
one-way and best-effort: :func:`notify_safely` logs and drops a sink
failure so auditing can never change a publication result.

The audit trail is also the only place that tells "entity had nothing to
publish" (``NOTHING_TO_PUBLISH`` / ``UNSUPPORTED_TYPE``) apart from "entity
failed to publish" (``FAILED_TO_PUBLISH``).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from lineage_spine.core.logging import get_logger
from lineage_spine.core.protocols import AuditSink

__all__ = [
    "AuditSeverity",
    "AuditCode",
    "AuditEvent",
    "LoggingAuditSink",
    "InMemoryAuditSink",
    "notify_safely",
]

log = get_logger(__name__)


class AuditSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditCode(Enum):
    """Audit message definitions: ``(message id, severity, template)``."""

    SCAN_STARTED = ("LINEAGE-0001", AuditSeverity.INFO,
                    "Scanning for entities of type {entity_type}")
    ENTITIES_NOT_FOUND = ("LINEAGE-0002", AuditSeverity.INFO,
                          "No entities of type {entity_type} were found")
    ENTITIES_FOUND = ("LINEAGE-0003", AuditSeverity.INFO,
                      "Found {count} entities of type {entity_type}")
    ENTITIES = ("LINEAGE-0004", AuditSeverity.INFO,
                "Entities of type {entity_type}: {ids}")
    PUBLISHER_NOT_AVAILABLE = ("LINEAGE-0005", AuditSeverity.ERROR,
                               "The lineage publisher is not available; nothing was published")
    PUBLISH_SEQUENCE_START = ("LINEAGE-0006", AuditSeverity.INFO,
                              "Publishing context for {count} entities of type {entity_type}")
    PUBLISH_SEQUENCE_END = ("LINEAGE-0007", AuditSeverity.INFO,
                            "Published context for {count} entities of type {entity_type}")
    ENTITY_NOT_FOUND = ("LINEAGE-0008", AuditSeverity.INFO,
                        "Entity {entity_id} of type {entity_type} was not found")
    ENTITY_FOUND = ("LINEAGE-0009", AuditSeverity.INFO,
                    "Entity {entity_id} of type {entity_type} was found")
    BUILDING_CONTEXT_STARTED = ("LINEAGE-0010", AuditSeverity.INFO,
                                "Building context for entity {entity_id} of type {entity_type}")
    PUBLISHED = ("LINEAGE-0011", AuditSeverity.INFO,
                 "Published context for entity {entity_id} of type {entity_type}")
    NOTHING_TO_PUBLISH = ("LINEAGE-0012", AuditSeverity.INFO,
                          "Context for entity {entity_id} of type {entity_type} is empty; nothing to publish")
    UNSUPPORTED_TYPE = ("LINEAGE-0013", AuditSeverity.WARNING,
                        "Type {entity_type} of entity {entity_id} is not supported; context not published")
    FAILED_TO_PUBLISH = ("LINEAGE-0014", AuditSeverity.ERROR,
                         "Failed to publish context for entity {entity_id} of type {entity_type}: {error}")
    ASSET_CONTEXT_PUBLISHED = ("LINEAGE-0015", AuditSeverity.INFO,
                               "Published asset context for entity {entity_id} ({count} entities)")

    def __init__(self, message_id: str, severity: AuditSeverity, template: str):
        self.message_id = message_id
        self.severity = severity
        self.template = template

    def event(self, **params: Any) -> AuditEvent:
        """Create an :class:`AuditEvent` with the formatted message."""
        return AuditEvent(code=self, message=self.template.format(**params), params=params)


@dataclass(frozen=True)
class AuditEvent:
    """One lifecycle notification."""

    code: AuditCode
    message: str
    params: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def severity(self) -> AuditSeverity:
        return self.code.severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.name,
            "message_id": self.code.message_id,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            **self.params,
        }


class LoggingAuditSink:
    """Writes audit events to the structured log under ``audit.<code>``."""

    def __init__(self, logger: Any = None) -> None:
        self._log = logger or get_logger("lineage_spine.audit")

    def notify(self, event: AuditEvent) -> None:
        method = {
            AuditSeverity.INFO: self._log.info,
            AuditSeverity.WARNING: self._log.warning,
            AuditSeverity.ERROR: self._log.error,
        }[event.severity]
        method(
            f"audit.{event.code.name.lower()}",
            message_id=event.code.message_id,
            audit_message=event.message,
            **event.params,
        )


class InMemoryAuditSink:
    """Collects audit events; safe for concurrent notification."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def notify(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def codes(self) -> list[AuditCode]:
        return [event.code for event in self.events]

    def of(self, code: AuditCode) -> list[AuditEvent]:
        return [event for event in self.events if event.code is code]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


def notify_safely(sink: AuditSink, code: AuditCode, **params: Any) -> None:
    """Send ``code`` to ``sink``; a failing sink is logged, never raised."""
    try:
        sink.notify(code.event(**params))
    except Exception as e:
        log.warning("audit.notify_failed", code=code.name, error=str(e))

"""
Collaborator protocols for the publication core.

The metadata store, the outbound publish channel and the audit sink are
external collaborators. The engine depends only on their shape, so any
object matching a protocol can be injected: the in-memory implementations
in this package, a repository client, a Kafka producer, a test double.

Architecture:
    ::

        protocols.py
        ├── EntityStore      — scan / fetch entities, list relationships
        ├── PublishChannel   — deliver-or-report handoff of one event
        └── AuditSink        — fire-and-forget lifecycle notifications

All three must be safe for concurrent calls from the bulk-publish worker
pool. The core places no locking around them.

Tags:
    protocol, contracts, store, channel, audit
"""

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from lineage_spine.core.models import Entity, EntityFilter, Relationship

if TYPE_CHECKING:
    from lineage_spine.audit import AuditEvent
    from lineage_spine.publishing.events import LineageEvent


@runtime_checkable
class EntityStore(Protocol):
    """
    Read-only gateway to the metadata store.

    Errors:
        InvalidInputError: unknown type name
        UnauthorizedError: caller lacks rights
        StoreUnavailableError: backend failure

    These propagate unchanged; the core never retries them.
    """

    def find_entities_by_type(
        self,
        type_name: str,
        entity_filter: EntityFilter,
        *,
        caller_id: str | None = None,
    ) -> list[Entity]:
        """Entities of ``type_name`` matching the filter, in any order.

        Returns an empty list (not an error) when nothing matches.
        """
        ...

    def get_entity_by_id_and_type(
        self,
        entity_id: str,
        type_name: str,
        *,
        caller_id: str | None = None,
    ) -> Entity | None:
        """The entity, or ``None`` when it does not exist."""
        ...

    def get_relationships(
        self,
        entity_id: str,
        relationship_types: Collection[str] | None = None,
        *,
        caller_id: str | None = None,
    ) -> list[Relationship]:
        """Relationships with ``entity_id`` at either end, optionally filtered by type."""
        ...


@runtime_checkable
class PublishChannel(Protocol):
    """
    Outbound event sink (the "out topic").

    ``publish`` returns ``True`` when the event was delivered and ``False``
    (or raises) when it was not. The channel must not retry on its own;
    all fault policy lives in the engine.
    """

    def publish(self, event: LineageEvent) -> bool:
        ...


@runtime_checkable
class AuditSink(Protocol):
    """Receives lifecycle notifications. Delivery is best-effort."""

    def notify(self, event: AuditEvent) -> None:
        ...


__all__ = ["EntityStore", "PublishChannel", "AuditSink"]

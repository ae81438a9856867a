"""
In-memory entity store.

Manifesto:
    Tests, examples and single-process deployments need an entity store
    that behaves like the metadata repository (typed scans, not-found as
    ``None``, typed errors) without a running repository.

Entities and relationships are held in dictionaries behind a lock. Reads
return snapshots, so callers on other threads never see a half-applied
write.

Tags:
    store, in-memory, testing, single-node
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Collection, Iterable

from lineage_spine.core.errors import (
    InvalidInputError,
    StoreUnavailableError,
    UnauthorizedError,
)
from lineage_spine.core.logging import get_logger
from lineage_spine.core.models import Entity, EntityFilter, Relationship

__all__ = ["InMemoryEntityStore"]

log = get_logger(__name__)


class InMemoryEntityStore:
    """Thread-safe :class:`~lineage_spine.core.protocols.EntityStore`.

    Type names must be known before they can be queried: adding an entity
    registers its type, and :meth:`register_type` registers one explicitly.
    Querying an unknown type raises :class:`InvalidInputError`, like the
    repository does for an unknown type definition.

    Example::

        store = InMemoryEntityStore()
        store.add_entity(Entity("p1", "Process"))
        store.add_entity(Entity("port1", "Port"))
        store.add_relationship(Relationship("r1", "ProcessPort", Vertex("p1", "Process"),
                                            Vertex("port1", "Port")))
        store.find_entities_by_type("Process", EntityFilter())
    """

    def __init__(
        self,
        entities: Iterable[Entity] = (),
        relationships: Iterable[Relationship] = (),
        *,
        authorized_callers: Collection[str] | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._entities: dict[str, Entity] = {}
        self._relationships: dict[str, Relationship] = {}
        self._by_vertex: dict[str, set[str]] = defaultdict(set)
        self._types: set[str] = set()
        self._authorized = set(authorized_callers) if authorized_callers is not None else None
        self.available = True

        for entity in entities:
            self.add_entity(entity)
        for relationship in relationships:
            self.add_relationship(relationship)

    # ── Writes ───────────────────────────────────────────────────

    def register_type(self, type_name: str) -> None:
        with self._lock:
            self._types.add(type_name)

    def add_entity(self, entity: Entity) -> None:
        with self._lock:
            self._entities[entity.id] = entity
            self._types.add(entity.type_name)

    def add_relationship(self, relationship: Relationship) -> None:
        with self._lock:
            self._relationships[relationship.id] = relationship
            self._by_vertex[relationship.end1.id].add(relationship.id)
            self._by_vertex[relationship.end2.id].add(relationship.id)
            self._types.add(relationship.type_name)

    def remove_entity(self, entity_id: str) -> None:
        """Remove an entity and every relationship that touches it."""
        with self._lock:
            self._entities.pop(entity_id, None)
            for relationship_id in self._by_vertex.pop(entity_id, set()):
                relationship = self._relationships.pop(relationship_id, None)
                if relationship is not None:
                    other = relationship.other_end(entity_id).id
                    self._by_vertex.get(other, set()).discard(relationship_id)

    # ── EntityStore protocol ─────────────────────────────────────

    def find_entities_by_type(
        self,
        type_name: str,
        entity_filter: EntityFilter,
        *,
        caller_id: str | None = None,
    ) -> list[Entity]:
        self._check_access(caller_id)
        with self._lock:
            self._check_type(type_name)
            matches = [
                entity
                for entity in self._entities.values()
                if entity.type_name == type_name and entity_filter.matches(entity)
            ]
        if entity_filter.page_size is not None:
            matches = matches[: entity_filter.page_size]
        log.debug("store.find_entities", entity_type=type_name, found=len(matches))
        return matches

    def get_entity_by_id_and_type(
        self,
        entity_id: str,
        type_name: str,
        *,
        caller_id: str | None = None,
    ) -> Entity | None:
        self._check_access(caller_id)
        with self._lock:
            self._check_type(type_name)
            entity = self._entities.get(entity_id)
        if entity is None or entity.type_name != type_name:
            return None
        return entity

    def get_relationships(
        self,
        entity_id: str,
        relationship_types: Collection[str] | None = None,
        *,
        caller_id: str | None = None,
    ) -> list[Relationship]:
        self._check_access(caller_id)
        with self._lock:
            relationships = [self._relationships[rid] for rid in self._by_vertex.get(entity_id, ())]
        if relationship_types is not None:
            relationships = [r for r in relationships if r.type_name in relationship_types]
        return sorted(relationships, key=lambda r: r.id)

    # ── Internals ────────────────────────────────────────────────

    def _check_access(self, caller_id: str | None) -> None:
        if not self.available:
            raise StoreUnavailableError("Entity store is not available")
        if self._authorized is not None and caller_id not in self._authorized:
            raise UnauthorizedError(
                f"Caller {caller_id!r} is not authorized to read the entity store"
            ).with_context(caller_id=caller_id)

    def _check_type(self, type_name: str) -> None:
        if type_name not in self._types:
            raise InvalidInputError(
                f"Unknown type name {type_name!r}",
                parameter="type_name",
                value=type_name,
            )

    def __len__(self) -> int:
        return len(self._entities)

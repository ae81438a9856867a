"""
Data model for lineage context publication.

Entities are read-only snapshots supplied by the entity store. A context
build turns one entity into a :class:`ContextMap`: a multimap from
relationship category to one or more :class:`RelationshipsContext` edge
sets. Contexts are created fresh per request and handed to the publish
channel; nothing here is cached or persisted.

Architecture:
    ::

        Entity ──vertex()──► Vertex {id, type_name}      (identity = id)
                                  │
        Relationship {id, type_name, end1, end2}          (store record)
                                  │  oriented end1 → end2
                                  ▼
        DirectedEdge {from_vertex, to_vertex, relationship_type}
                                  │  set
                                  ▼
        RelationshipsContext {relationships}
                                  │  multimap
                                  ▼
        ContextMap {category → [RelationshipsContext, ...]}

        PublicationResult {succeeded_ids: frozenset[str]}

Tags:
    lineage, data-model, graph, context, dataclasses
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ── Graph elements ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Vertex:
    """Reference to an entity inside a context graph. Identity is by ``id``."""

    id: str
    type_name: str = field(default="", compare=False)


@dataclass(frozen=True, slots=True)
class Entity:
    """Immutable snapshot of a cataloged metadata element.

    Attributes:
        id: Opaque unique identifier (guid)
        type_name: Type tag selecting the context-building strategy
        attributes: Opaque property bag; not part of equality
        updated_at: Last update time, used by ``updated_after`` filters
    """

    id: str
    type_name: str
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    updated_at: datetime | None = field(default=None, compare=False, hash=False)

    def vertex(self) -> Vertex:
        return Vertex(self.id, self.type_name)


@dataclass(frozen=True, slots=True)
class Relationship:
    """A relationship instance as stored: ``end1`` → ``end2``.

    By convention ``end1`` is the parent, supplier or caller and ``end2``
    the child, consumer or callee.
    """

    id: str
    type_name: str
    end1: Vertex
    end2: Vertex

    def other_end(self, vertex_id: str) -> Vertex:
        """Return the end that is not ``vertex_id`` (``end2`` for self-loops)."""
        return self.end2 if self.end1.id == vertex_id else self.end1

    def edge(self) -> DirectedEdge:
        return DirectedEdge(self.end1, self.end2, self.type_name)


@dataclass(frozen=True, slots=True)
class DirectedEdge:
    """Directed, typed edge between two vertices."""

    from_vertex: Vertex
    to_vertex: Vertex
    relationship_type: str


# ── Contexts ─────────────────────────────────────────────────────────────


@dataclass
class RelationshipsContext:
    """A set of directed edges relevant to one entity's lineage."""

    relationships: set[DirectedEdge] = field(default_factory=set)

    def add(self, edge: DirectedEdge) -> None:
        self.relationships.add(edge)

    def update(self, edges: Iterable[DirectedEdge]) -> None:
        self.relationships.update(edges)

    def is_empty(self) -> bool:
        return not self.relationships

    def vertex_ids(self) -> set[str]:
        """Deduplicated ids of both endpoints of every edge."""
        ids: set[str] = set()
        for edge in self.relationships:
            ids.add(edge.from_vertex.id)
            ids.add(edge.to_vertex.id)
        return ids

    def __len__(self) -> int:
        return len(self.relationships)

    def __iter__(self) -> Iterator[DirectedEdge]:
        return iter(self.relationships)


class ContextMap:
    """Multimap from relationship category to relationship contexts.

    A category may hold several contexts (one per sub-traversal). The map is
    empty, and therefore not publishable, iff every category's collection is
    empty.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[RelationshipsContext]] = {}

    def put(self, category: str, context: RelationshipsContext) -> None:
        self._entries.setdefault(category, []).append(context)

    def put_all(self, category: str, contexts: Iterable[RelationshipsContext]) -> None:
        for context in contexts:
            self.put(category, context)

    def get(self, category: str) -> list[RelationshipsContext]:
        return list(self._entries.get(category, ()))

    def categories(self) -> list[str]:
        return [category for category, contexts in self._entries.items() if contexts]

    def items(self) -> Iterator[tuple[str, list[RelationshipsContext]]]:
        for category, contexts in self._entries.items():
            yield category, list(contexts)

    def is_empty(self) -> bool:
        return all(not contexts for contexts in self._entries.values())

    def vertex_ids(self) -> set[str]:
        ids: set[str] = set()
        for contexts in self._entries.values():
            for context in contexts:
                ids |= context.vertex_ids()
        return ids

    def __len__(self) -> int:
        return sum(len(contexts) for contexts in self._entries.values())

    def __contains__(self, category: object) -> bool:
        return isinstance(category, str) and bool(self._entries.get(category))

    def __repr__(self) -> str:
        sizes = {category: len(contexts) for category, contexts in self._entries.items()}
        return f"ContextMap({sizes})"


# ── Requests / results ───────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class EntityFilter:
    """Filter applied when scanning the store for entities of one type.

    Attributes:
        updated_after: Only entities updated strictly after this time
        page_size: Maximum number of entities to return (None = all)
    """

    updated_after: datetime | None = None
    page_size: int | None = None

    def __post_init__(self) -> None:
        if self.page_size is not None and self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    def matches(self, entity: Entity) -> bool:
        if self.updated_after is None:
            return True
        return entity.updated_at is not None and entity.updated_at > self.updated_after


@dataclass(frozen=True, slots=True)
class PublicationResult:
    """Deduplicated ids of entities whose context was delivered.

    Absence from ``succeeded_ids`` covers both "nothing to publish" and
    "failed to publish"; the audit trail tells them apart.
    """

    succeeded_ids: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> PublicationResult:
        return cls()

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[str | None]) -> PublicationResult:
        """Build from unit outcomes, dropping ``None`` and duplicates."""
        return cls(frozenset(o for o in outcomes if o is not None))

    def sorted_ids(self) -> list[str]:
        return sorted(self.succeeded_ids)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.succeeded_ids

    def __len__(self) -> int:
        return len(self.succeeded_ids)

    def __bool__(self) -> bool:
        return bool(self.succeeded_ids)


class UnitStatus(str, Enum):
    """Outcome of one build-and-publish unit."""

    PUBLISHED = "published"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UnitOutcome:
    """What happened to one entity in a publish request."""

    entity_id: str
    entity_type: str
    status: UnitStatus
    error: str | None = None

    @property
    def published_id(self) -> str | None:
        return self.entity_id if self.status is UnitStatus.PUBLISHED else None


__all__ = [
    "Vertex",
    "Entity",
    "Relationship",
    "DirectedEdge",
    "RelationshipsContext",
    "ContextMap",
    "EntityFilter",
    "PublicationResult",
    "UnitStatus",
    "UnitOutcome",
]

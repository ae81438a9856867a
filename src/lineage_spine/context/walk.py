"""
Cycle-safe relationship traversal.

A :class:`GraphWalk` is created for one context build and discarded with
it. Walks are breadth-first searches over a set of relationship types.
The walk remembers which vertices it has expanded for each traversal
scope, a ``(relationship types, direction)`` pair, for the whole build:

- within one scope every vertex is expanded at most once per build, so a
  later walk in the same scope stops at vertices an earlier walk already
  covered (and a walk from an already-expanded start yields nothing)
- different scopes are independent, so a glossary term can be walked for
  synonyms and then for its is-a hierarchy

This keeps traversal bounded on cyclic graphs and keeps a category from
holding the same edges twice.

Edges are always recorded in stored orientation (``end1 → end2``); the
walk direction only decides which relationships are followed:

    OUTBOUND   follow relationships where the current vertex is end1
    INBOUND    follow relationships where the current vertex is end2
    BOTH       follow either
"""

from __future__ import annotations

from collections import deque
from collections.abc import Collection, Iterable
from enum import Enum

from lineage_spine.core.models import DirectedEdge, Relationship, Vertex
from lineage_spine.core.protocols import EntityStore

__all__ = ["Direction", "GraphWalk"]


class Direction(str, Enum):
    """Which relationship ends a walk follows."""

    OUTBOUND = "outbound"
    INBOUND = "inbound"
    BOTH = "both"

    def follows(self, relationship: Relationship, vertex_id: str) -> bool:
        if self is Direction.OUTBOUND:
            return relationship.end1.id == vertex_id
        if self is Direction.INBOUND:
            return relationship.end2.id == vertex_id
        return True


Scope = tuple[frozenset[str], Direction]


class GraphWalk:
    """Traversal helper bound to one store, caller and context build.

    Args:
        store: Entity store answering ``get_relationships``
        caller_id: Identity passed through to the store
        max_depth: Default hop limit for :meth:`walk` (None = unbounded)
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        caller_id: str | None = None,
        max_depth: int | None = None,
    ) -> None:
        self.store = store
        self.caller_id = caller_id
        self.max_depth = max_depth
        self.visited: set[str] = set()
        self.relationship_lookups = 0
        self._expanded: dict[Scope, set[str]] = {}

    def relationships(
        self,
        vertex_id: str,
        relationship_types: Collection[str],
        direction: Direction = Direction.BOTH,
    ) -> list[Relationship]:
        """One-hop relationships of ``vertex_id`` followed in ``direction``."""
        self.relationship_lookups += 1
        found = self.store.get_relationships(
            vertex_id, relationship_types, caller_id=self.caller_id
        )
        return [r for r in found if direction.follows(r, vertex_id)]

    def neighbours(
        self,
        vertex: Vertex,
        relationship_types: Collection[str],
        direction: Direction = Direction.BOTH,
    ) -> list[tuple[Relationship, Vertex]]:
        """One-hop ``(relationship, other end)`` pairs."""
        return [
            (relationship, relationship.other_end(vertex.id))
            for relationship in self.relationships(vertex.id, relationship_types, direction)
        ]

    def expanded(self, relationship_types: Collection[str], direction: Direction = Direction.BOTH) -> set[str]:
        """Ids already expanded in this scope during the build."""
        return set(self._expanded.get((frozenset(relationship_types), direction), ()))

    def walk(
        self,
        start: Vertex,
        relationship_types: Collection[str],
        direction: Direction = Direction.BOTH,
        *,
        max_depth: int | None = None,
    ) -> set[DirectedEdge]:
        """Edges reachable from ``start`` over ``relationship_types``.

        ``max_depth`` overrides the walk's default hop limit.
        """
        return self.walk_all([start], relationship_types, direction, max_depth=max_depth)

    def walk_all(
        self,
        starts: Iterable[Vertex],
        relationship_types: Collection[str],
        direction: Direction = Direction.BOTH,
        *,
        max_depth: int | None = None,
    ) -> set[DirectedEdge]:
        """Edges reachable from any of ``starts`` in one search.

        Vertices expanded earlier in the same scope are not expanded again.
        A vertex cut off by the hop limit is not marked expanded, so a later
        walk can still start from it.
        """
        limit = max_depth if max_depth is not None else self.max_depth
        expanded = self._expanded.setdefault((frozenset(relationship_types), direction), set())
        edges: set[DirectedEdge] = set()
        queue: deque[tuple[Vertex, int]] = deque((start, 0) for start in starts)

        while queue:
            vertex, depth = queue.popleft()
            if vertex.id in expanded:
                continue
            if limit is not None and depth >= limit:
                continue
            expanded.add(vertex.id)
            self.visited.add(vertex.id)

            for relationship in self.relationships(vertex.id, relationship_types, direction):
                edges.add(relationship.edge())
                neighbour = relationship.other_end(vertex.id)
                if neighbour.id not in expanded:
                    queue.append((neighbour, depth + 1))

        return edges

"""
Context-building strategies.

A strategy turns one entity into a :class:`ContextMap` by walking the
entity's relationships with a :class:`GraphWalk`. Strategies hold no
per-build state, so one instance serves every worker thread.

Architecture:
    ::

        ContextStrategy (ABC)
        ├── GlossaryTermContextStrategy   SemanticAssignment / Synonym / ISARelationship
        ├── ProcessContextStrategy        ProcessPort / DataFlow / ControlFlow /
        │                                 ProcessCall / LineageMapping
        ├── AssetContextStrategy          single structural context (AssetContext)
        └── NoOpContextStrategy           unsupported types → empty map

Only non-empty contexts are put into a map, so an entity with no relevant
relationships yields an empty map and is skipped by the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lineage_spine.context import types
from lineage_spine.context.walk import Direction, GraphWalk
from lineage_spine.core.logging import get_logger
from lineage_spine.core.models import (
    ContextMap,
    DirectedEdge,
    Entity,
    RelationshipsContext,
    Vertex,
)
from lineage_spine.publishing.events import ASSET_CONTEXT, LineageEventType

__all__ = [
    "ContextStrategy",
    "GlossaryTermContextStrategy",
    "ProcessContextStrategy",
    "AssetContextStrategy",
    "NoOpContextStrategy",
]

log = get_logger(__name__)


class ContextStrategy(ABC):
    """Builds the context map for entities of one type."""

    name: str = "entity"
    event_type: LineageEventType = LineageEventType.ENTITY_CONTEXT

    @abstractmethod
    def build(self, entity: Entity, walk: GraphWalk) -> ContextMap:
        """Return the entity's context map (possibly empty)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _context(edges: set[DirectedEdge]) -> RelationshipsContext:
    return RelationshipsContext(set(edges))


def _put_if_any(context_map: ContextMap, category: str, edges: set[DirectedEdge]) -> None:
    if edges:
        context_map.put(category, _context(edges))


class GlossaryTermContextStrategy(ContextStrategy):
    """Glossary lineage for a term.

    - ``SemanticAssignment``: one context per assigned data element, holding
      the assignment edge and the element's structural chain up to its asset;
      a chain shared with an earlier element is expanded only once
    - ``Synonym``: the term's transitive synonym cluster
    - ``ISARelationship``: the term's classification hierarchy
    """

    name = "glossary_term"
    event_type = LineageEventType.GLOSSARY_TERM_CONTEXT

    def build(self, entity: Entity, walk: GraphWalk) -> ContextMap:
        term = entity.vertex()
        context_map = ContextMap()

        for relationship, element in walk.neighbours(term, {types.SEMANTIC_ASSIGNMENT}):
            edges = {relationship.edge()}
            edges |= walk.walk(element, types.STRUCTURAL_TYPES, Direction.INBOUND)
            context_map.put(types.SEMANTIC_ASSIGNMENT, _context(edges))

        _put_if_any(context_map, types.SYNONYM, walk.walk(term, {types.SYNONYM}))
        _put_if_any(context_map, types.IS_A_RELATIONSHIP, walk.walk(term, {types.IS_A_RELATIONSHIP}))
        return context_map


class ProcessContextStrategy(ContextStrategy):
    """Process-level lineage.

    - ``ProcessPort``: one context per port with its delegation chain and
      port schema
    - ``DataFlow`` / ``ControlFlow`` / ``ProcessCall``: transitive walks from
      the process; data flow is one search seeded from the process and its
      ports, so a flow between two ports appears once
    - ``LineageMapping``: direct mappings of the schema attributes found on
      the ports
    """

    name = "process"
    event_type = LineageEventType.PROCESS_CONTEXT

    def build(self, entity: Entity, walk: GraphWalk) -> ContextMap:
        process = entity.vertex()
        context_map = ContextMap()
        ports: list[Vertex] = []
        port_elements: set[Vertex] = set()

        for relationship, port in walk.neighbours(process, {types.PROCESS_PORT}, Direction.OUTBOUND):
            ports.append(port)
            edges = {relationship.edge()}
            edges |= walk.walk(port, {types.PORT_DELEGATION})
            schema_edges = walk.walk(port, types.SCHEMA_TYPES, Direction.OUTBOUND)
            edges |= schema_edges
            port_elements.update(e.to_vertex for e in schema_edges)
            context_map.put(types.PROCESS_PORT, _context(edges))

        _put_if_any(context_map, types.DATA_FLOW, walk.walk_all([process, *ports], {types.DATA_FLOW}))
        _put_if_any(context_map, types.CONTROL_FLOW, walk.walk(process, {types.CONTROL_FLOW}))
        _put_if_any(context_map, types.PROCESS_CALL, walk.walk(process, {types.PROCESS_CALL}))

        elements = sorted(port_elements, key=lambda v: v.id)
        mappings = walk.walk_all(elements, {types.LINEAGE_MAPPING}, max_depth=1)
        _put_if_any(context_map, types.LINEAGE_MAPPING, mappings)
        return context_map


class AssetContextStrategy(ContextStrategy):
    """Structural neighbourhood of the asset owning an element.

    Walks up schema and containment relationships to the top-most
    vertices (the owning asset and its containers), then back down the
    schema relationships of those vertices. The result is one context.
    """

    name = "asset"
    event_type = LineageEventType.ASSET_CONTEXT

    def build_context(self, entity: Entity, walk: GraphWalk) -> RelationshipsContext:
        start = entity.vertex()
        upward = walk.walk(start, types.STRUCTURAL_TYPES, Direction.INBOUND)

        children = {edge.to_vertex.id for edge in upward}
        tops = {edge.from_vertex for edge in upward if edge.from_vertex.id not in children}
        if not tops:
            tops = {start}

        edges = set(upward)
        edges |= walk.walk_all(sorted(tops, key=lambda v: v.id), types.SCHEMA_TYPES, Direction.OUTBOUND)
        return _context(edges)

    def build(self, entity: Entity, walk: GraphWalk) -> ContextMap:
        context_map = ContextMap()
        context = self.build_context(entity, walk)
        if not context.is_empty():
            context_map.put(ASSET_CONTEXT, context)
        return context_map


class NoOpContextStrategy(ContextStrategy):
    """Fallback for unregistered type names: nothing to publish."""

    name = "unsupported"

    def build(self, entity: Entity, walk: GraphWalk) -> ContextMap:
        log.warning(
            "context.unsupported_type",
            entity_type=entity.type_name,
            entity_id=entity.id,
        )
        return ContextMap()

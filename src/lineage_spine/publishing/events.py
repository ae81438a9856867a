"""
Outbound lineage events.

A :class:`LineageEvent` is the serialized form of one entity's context as
handed to the publish channel. The wire schema belongs to the channel; this
model is the default JSON shape produced by ``model_dump_json``.

Example payload::

    {
      "event_id": "5f0c...",
      "event_type": "ProcessContextEvent",
      "entity_id": "proc-1",
      "entity_type": "Process",
      "published_at": "2026-10-19T10:00:00Z",
      "context": {
        "ProcessPort": [
          {"relationships": [
            {"from_vertex": {"id": "proc-1", "type_name": "Process"},
             "to_vertex": {"id": "port-1", "type_name": "Port"},
             "relationship_type": "ProcessPort"}
          ]}
        ]
      }
    }
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lineage_spine.core.models import (
    ContextMap,
    DirectedEdge,
    Entity,
    RelationshipsContext,
    Vertex,
)

__all__ = [
    "ASSET_CONTEXT",
    "LineageEventType",
    "VertexPayload",
    "EdgePayload",
    "ContextPayload",
    "LineageEvent",
]


# Category key of the single asset context
ASSET_CONTEXT = "AssetContext"


class LineageEventType(str, Enum):
    """Kind of context carried by an event."""

    GLOSSARY_TERM_CONTEXT = "GlossaryTermContextEvent"
    PROCESS_CONTEXT = "ProcessContextEvent"
    ASSET_CONTEXT = "AssetContextEvent"
    ENTITY_CONTEXT = "EntityContextEvent"


class VertexPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type_name: str = ""

    @classmethod
    def from_vertex(cls, vertex: Vertex) -> VertexPayload:
        return cls(id=vertex.id, type_name=vertex.type_name)


class EdgePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_vertex: VertexPayload
    to_vertex: VertexPayload
    relationship_type: str

    @classmethod
    def from_edge(cls, edge: DirectedEdge) -> EdgePayload:
        return cls(
            from_vertex=VertexPayload.from_vertex(edge.from_vertex),
            to_vertex=VertexPayload.from_vertex(edge.to_vertex),
            relationship_type=edge.relationship_type,
        )


class ContextPayload(BaseModel):
    """Serialized :class:`RelationshipsContext`; edges sorted for stable output."""

    relationships: list[EdgePayload] = Field(default_factory=list)

    @classmethod
    def from_context(cls, context: RelationshipsContext) -> ContextPayload:
        edges = sorted(
            context.relationships,
            key=lambda e: (e.relationship_type, e.from_vertex.id, e.to_vertex.id),
        )
        return cls(relationships=[EdgePayload.from_edge(e) for e in edges])


class LineageEvent(BaseModel):
    """One entity's lineage context, ready for delivery."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: LineageEventType
    entity_id: str
    entity_type: str
    published_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    context: dict[str, list[ContextPayload]] = Field(default_factory=dict)

    @classmethod
    def from_context_map(
        cls,
        entity: Entity,
        event_type: LineageEventType,
        context_map: ContextMap,
    ) -> LineageEvent:
        return cls(
            event_type=event_type,
            entity_id=entity.id,
            entity_type=entity.type_name,
            context={
                category: [ContextPayload.from_context(c) for c in contexts]
                for category, contexts in context_map.items()
                if contexts
            },
        )

    @classmethod
    def from_asset_context(
        cls,
        entity: Entity,
        context: RelationshipsContext,
        category: str = ASSET_CONTEXT,
    ) -> LineageEvent:
        return cls(
            event_type=LineageEventType.ASSET_CONTEXT,
            entity_id=entity.id,
            entity_type=entity.type_name,
            context={category: [ContextPayload.from_context(context)]},
        )

    @property
    def edge_count(self) -> int:
        return sum(len(c.relationships) for contexts in self.context.values() for c in contexts)

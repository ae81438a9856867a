"""Tests for LineageEvent serialization."""

from lineage_spine.core.models import ContextMap, DirectedEdge, Entity, RelationshipsContext, Vertex
from lineage_spine.publishing import ASSET_CONTEXT, LineageEvent, LineageEventType


def _edge(a: str, b: str, rel: str) -> DirectedEdge:
    return DirectedEdge(Vertex(a, "Process"), Vertex(b, "Port"), rel)


class TestFromContextMap:
    def test_carries_entity_and_categories(self):
        cm = ContextMap()
        cm.put("ProcessPort", RelationshipsContext({_edge("p", "in", "ProcessPort")}))
        cm.put("ProcessPort", RelationshipsContext({_edge("p", "out", "ProcessPort")}))
        event = LineageEvent.from_context_map(Entity("p", "Process"), LineageEventType.PROCESS_CONTEXT, cm)

        assert event.entity_id == "p"
        assert event.entity_type == "Process"
        assert event.event_type is LineageEventType.PROCESS_CONTEXT
        assert len(event.context["ProcessPort"]) == 2
        assert event.edge_count == 2

    def test_empty_categories_are_dropped(self):
        cm = ContextMap()
        cm.put_all("DataFlow", [])
        cm.put("ControlFlow", RelationshipsContext({_edge("p", "q", "ControlFlow")}))
        event = LineageEvent.from_context_map(Entity("p", "Process"), LineageEventType.PROCESS_CONTEXT, cm)
        assert list(event.context) == ["ControlFlow"]

    def test_edges_are_sorted(self):
        cm = ContextMap()
        cm.put("DataFlow", RelationshipsContext({_edge("z", "a", "DataFlow"), _edge("b", "c", "DataFlow")}))
        event = LineageEvent.from_context_map(Entity("p", "Process"), LineageEventType.PROCESS_CONTEXT, cm)
        froms = [e.from_vertex.id for e in event.context["DataFlow"][0].relationships]
        assert froms == ["b", "z"]

    def test_unique_event_ids(self):
        entity = Entity("p", "Process")
        a = LineageEvent.from_context_map(entity, LineageEventType.PROCESS_CONTEXT, ContextMap())
        b = LineageEvent.from_context_map(entity, LineageEventType.PROCESS_CONTEXT, ContextMap())
        assert a.event_id != b.event_id


class TestFromAssetContext:
    def test_single_category_even_when_empty(self):
        event = LineageEvent.from_asset_context(Entity("c", "RelationalColumn"), RelationshipsContext())
        assert event.event_type is LineageEventType.ASSET_CONTEXT
        assert list(event.context) == [ASSET_CONTEXT]
        assert event.edge_count == 0


class TestJson:
    def test_json_roundtrip_preserves_vertices(self):
        cm = ContextMap()
        cm.put("ProcessPort", RelationshipsContext({_edge("p", "in", "ProcessPort")}))
        event = LineageEvent.from_context_map(Entity("p", "Process"), LineageEventType.PROCESS_CONTEXT, cm)

        data = event.model_dump(mode="json")
        assert data["event_type"] == "ProcessContextEvent"
        edge = data["context"]["ProcessPort"][0]["relationships"][0]
        assert edge["to_vertex"] == {"id": "in", "type_name": "Port"}

        restored = LineageEvent.model_validate_json(event.model_dump_json())
        assert restored == event

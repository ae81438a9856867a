"""Tests for StrategyRegistry and ContextBuilder."""

import pytest

from lineage_spine.context import (
    ContextBuilder,
    GlossaryTermContextStrategy,
    NoOpContextStrategy,
    ProcessContextStrategy,
    StrategyRegistry,
    default_registry,
)
from lineage_spine.context.strategies import ContextStrategy
from lineage_spine.core.errors import ContextBuildError, StoreUnavailableError, UnsupportedTypeError
from lineage_spine.core.models import ContextMap, Entity
from lineage_spine.core.settings import LineageSettings
from lineage_spine.publishing import LineageEventType


class ExplodingStrategy(ContextStrategy):
    name = "exploding"

    def build(self, entity, walk):
        raise KeyError("missing attribute")


class TestStrategyRegistry:
    def test_register_and_get(self):
        registry = StrategyRegistry()
        strategy = ProcessContextStrategy()
        registry.register("Process", strategy)
        assert registry.get("Process") is strategy
        assert registry.supports("Process")
        assert len(registry) == 1

    def test_unregistered_type_gets_fallback(self):
        registry = StrategyRegistry()
        assert isinstance(registry.get("DataFile"), NoOpContextStrategy)
        assert not registry.supports("DataFile")

    def test_strict_lookup_raises(self):
        with pytest.raises(UnsupportedTypeError):
            StrategyRegistry().get("DataFile", strict=True)

    def test_duplicate_registration_rejected(self):
        registry = StrategyRegistry()
        registry.register("Process", ProcessContextStrategy())
        with pytest.raises(ValueError, match="already registered"):
            registry.register("Process", ProcessContextStrategy())

    def test_empty_type_name_rejected(self):
        with pytest.raises(ValueError):
            StrategyRegistry().register("", ProcessContextStrategy())

    def test_unregister(self):
        registry = StrategyRegistry()
        registry.register("Process", ProcessContextStrategy())
        registry.unregister("Process")
        registry.unregister("Process")
        assert registry.list_types() == []

    def test_custom_fallback(self):
        fallback = GlossaryTermContextStrategy()
        assert StrategyRegistry(fallback=fallback).get("Anything") is fallback

    def test_default_registry(self):
        registry = default_registry(LineageSettings())
        assert registry.list_types() == ["GlossaryTerm", "Process"]
        assert isinstance(registry.get("GlossaryTerm"), GlossaryTermContextStrategy)

    def test_default_registry_uses_configured_type_names(self):
        registry = default_registry(LineageSettings(process_type="DeployedProcess"))
        assert registry.supports("DeployedProcess")
        assert not registry.supports("Process")


class TestContextBuilder:
    def test_dispatches_by_type(self, builder, store):
        entity = store.get_entity_by_id_and_type("proc-etl", "Process")
        assert "ProcessPort" in builder.build(entity)

    def test_unsupported_type_is_empty(self, builder, store):
        entity = store.get_entity_by_id_and_type("file-report", "DataFile")
        assert not builder.supports("DataFile")
        assert builder.build(entity).is_empty()

    def test_event_types(self, builder):
        assert builder.event_type_for("GlossaryTerm") is LineageEventType.GLOSSARY_TERM_CONTEXT
        assert builder.event_type_for("Process") is LineageEventType.PROCESS_CONTEXT
        assert builder.event_type_for("DataFile") is LineageEventType.ENTITY_CONTEXT

    def test_builds_are_idempotent(self, builder, store):
        entity = store.get_entity_by_id_and_type("term-customer", "GlossaryTerm")
        first, second = builder.build(entity), builder.build(entity)
        assert first is not second
        assert {c: [x.relationships for x in v] for c, v in first.items()} == {
            c: [x.relationships for x in v] for c, v in second.items()
        }

    def test_max_traversal_depth_applies(self, graph_store):
        store = graph_store(
            {"p": "Process", "a": "Process", "b": "Process"},
            [("DataFlow", "p", "a"), ("DataFlow", "a", "b")],
        )
        entity = store.get_entity_by_id_and_type("p", "Process")
        shallow = ContextBuilder(store, settings=LineageSettings(max_traversal_depth=1))
        deep = ContextBuilder(store, settings=LineageSettings())
        assert len(shallow.build(entity).get("DataFlow")[0]) == 1
        assert len(deep.build(entity).get("DataFlow")[0]) == 2

    def test_unexpected_error_becomes_context_build_error(self, store, settings):
        registry = StrategyRegistry()
        registry.register("Process", ExplodingStrategy())
        builder = ContextBuilder(store, registry, settings=settings)
        entity = Entity("proc-etl", "Process")

        with pytest.raises(ContextBuildError) as exc_info:
            builder.build(entity)
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert exc_info.value.context.entity_id == "proc-etl"

    def test_store_errors_propagate_unchanged(self, store, builder):
        store.available = False
        with pytest.raises(StoreUnavailableError):
            builder.build(Entity("proc-etl", "Process"))

    def test_asset_context(self, builder, store):
        entity = store.get_entity_by_id_and_type("col-cust-name", "RelationalColumn")
        context = builder.build_asset_context(entity)
        assert "db-crm" in context.vertex_ids()

    def test_fresh_map_per_build(self, builder):
        assert isinstance(builder.build(Entity("term-orphan", "GlossaryTerm")), ContextMap)

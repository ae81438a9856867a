"""
Context Builder -- type-dispatched context construction for one entity.

Manifesto:
    The engine should not know how a glossary term differs from a process.
    It asks the builder for a context map and publishes whatever comes
    back. The builder picks the strategy from the registry, gives it a
    fresh :class:`GraphWalk` for this build only, and normalises failures
    into :class:`ContextBuildError`.

Architecture:
    ::

        ContextBuilder
          ├── .build(entity)                → registry[type].build(entity, walk)
          ├── .build_asset_context(entity)  → AssetContextStrategy.build_context(...)
          └── .supports(type_name)

Guardrails:
    - Lineage errors raised by the store during a walk propagate unchanged
    - Any other exception becomes ContextBuildError with the cause chained
    - The returned context is owned by the caller; nothing is cached

Tags:
    context, builder, dispatch, strategy, registry
"""

from __future__ import annotations

from lineage_spine.context.registry import StrategyRegistry, default_registry
from lineage_spine.context.strategies import AssetContextStrategy, ContextStrategy
from lineage_spine.context.walk import GraphWalk
from lineage_spine.core.errors import ContextBuildError, LineageError
from lineage_spine.core.logging import get_logger
from lineage_spine.core.models import ContextMap, Entity, RelationshipsContext
from lineage_spine.core.protocols import EntityStore
from lineage_spine.core.settings import LineageSettings, get_settings
from lineage_spine.publishing.events import LineageEventType

__all__ = ["ContextBuilder"]

log = get_logger(__name__)


class ContextBuilder:
    """Builds context maps using the registered strategy for each type.

    Args:
        store: Entity store the walks read relationships from
        registry: Type name → strategy (defaults to :func:`default_registry`)
        asset_strategy: Strategy for explicitly requested asset contexts
        settings: Supplies ``max_traversal_depth``
    """

    def __init__(
        self,
        store: EntityStore,
        registry: StrategyRegistry | None = None,
        *,
        asset_strategy: AssetContextStrategy | None = None,
        settings: LineageSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.registry = registry or default_registry(self.settings)
        self.asset_strategy = asset_strategy or AssetContextStrategy()

    def supports(self, type_name: str) -> bool:
        return self.registry.supports(type_name)

    def strategy_for(self, type_name: str) -> ContextStrategy:
        return self.registry.get(type_name)

    def event_type_for(self, type_name: str) -> LineageEventType:
        return self.registry.get(type_name).event_type

    def new_walk(self, caller_id: str | None = None) -> GraphWalk:
        return GraphWalk(self.store, caller_id=caller_id, max_depth=self.settings.max_traversal_depth)

    def build(self, entity: Entity, *, caller_id: str | None = None) -> ContextMap:
        """Context map for ``entity`` via its type's strategy (empty if unsupported)."""
        strategy = self.registry.get(entity.type_name)
        walk = self.new_walk(caller_id)
        try:
            context_map = strategy.build(entity, walk)
        except LineageError:
            raise
        except Exception as e:
            raise ContextBuildError(
                f"Failed to build {strategy.name} context: {e}",
                cause=e,
            ).with_context(entity_type=entity.type_name, entity_id=entity.id) from e

        log.debug(
            "context.built",
            entity_type=entity.type_name,
            entity_id=entity.id,
            strategy=strategy.name,
            categories=context_map.categories(),
            contexts=len(context_map),
            vertices_visited=len(walk.visited),
        )
        return context_map

    def build_asset_context(self, entity: Entity, *, caller_id: str | None = None) -> RelationshipsContext:
        """Single structural context around the asset owning ``entity``."""
        walk = self.new_walk(caller_id)
        try:
            context = self.asset_strategy.build_context(entity, walk)
        except LineageError:
            raise
        except Exception as e:
            raise ContextBuildError(
                f"Failed to build asset context: {e}",
                cause=e,
            ).with_context(entity_type=entity.type_name, entity_id=entity.id) from e

        log.debug(
            "context.asset_built",
            entity_type=entity.type_name,
            entity_id=entity.id,
            edges=len(context),
        )
        return context

"""Context building: strategies, registry and the type-dispatching builder."""

from lineage_spine.context.builder import ContextBuilder
from lineage_spine.context.registry import StrategyRegistry, default_registry
from lineage_spine.context.strategies import (
    AssetContextStrategy,
    ContextStrategy,
    GlossaryTermContextStrategy,
    NoOpContextStrategy,
    ProcessContextStrategy,
)
from lineage_spine.context.walk import Direction, GraphWalk

__all__ = [
    "ContextBuilder",
    "StrategyRegistry",
    "default_registry",
    "ContextStrategy",
    "GlossaryTermContextStrategy",
    "ProcessContextStrategy",
    "AssetContextStrategy",
    "NoOpContextStrategy",
    "Direction",
    "GraphWalk",
]

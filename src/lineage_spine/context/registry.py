"""Registry mapping entity type names to context strategies.

Unregistered type names resolve to :class:`NoOpContextStrategy`, so a scan
over heterogeneous entities skips the unsupported ones instead of failing.
"""

from __future__ import annotations

from lineage_spine.context.strategies import (
    ContextStrategy,
    GlossaryTermContextStrategy,
    NoOpContextStrategy,
    ProcessContextStrategy,
)
from lineage_spine.core.errors import UnsupportedTypeError
from lineage_spine.core.logging import get_logger
from lineage_spine.core.settings import LineageSettings, get_settings

__all__ = ["StrategyRegistry", "default_registry"]

log = get_logger(__name__)


class StrategyRegistry:
    """Type name → :class:`ContextStrategy` lookup."""

    def __init__(self, fallback: ContextStrategy | None = None) -> None:
        self._strategies: dict[str, ContextStrategy] = {}
        self.fallback = fallback or NoOpContextStrategy()

    def register(self, type_name: str, strategy: ContextStrategy) -> None:
        if not type_name:
            raise ValueError("type_name must be a non-empty string")
        if type_name in self._strategies:
            raise ValueError(f"Strategy for type '{type_name}' is already registered")
        self._strategies[type_name] = strategy
        log.debug("strategy.registered", type_name=type_name, strategy=strategy.name)

    def unregister(self, type_name: str) -> None:
        self._strategies.pop(type_name, None)

    def get(self, type_name: str, *, strict: bool = False) -> ContextStrategy:
        """Strategy for ``type_name``.

        Raises:
            UnsupportedTypeError: only when ``strict`` and nothing is registered
        """
        strategy = self._strategies.get(type_name)
        if strategy is not None:
            return strategy
        if strict:
            raise UnsupportedTypeError(type_name)
        return self.fallback

    def supports(self, type_name: str) -> bool:
        return type_name in self._strategies

    def list_types(self) -> list[str]:
        return sorted(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)


def default_registry(settings: LineageSettings | None = None) -> StrategyRegistry:
    """Registry with the glossary-term and process strategies bound to the configured type names."""
    settings = settings or get_settings()
    registry = StrategyRegistry()
    registry.register(settings.glossary_term_type, GlossaryTermContextStrategy())
    registry.register(settings.process_type, ProcessContextStrategy())
    return registry

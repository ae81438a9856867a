"""Entity store gateway implementations."""

from lineage_spine.core.protocols import EntityStore
from lineage_spine.store.memory import InMemoryEntityStore

__all__ = ["EntityStore", "InMemoryEntityStore"]

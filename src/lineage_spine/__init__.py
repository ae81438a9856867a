"""
Lineage Spine - publication of entity lineage context events.

Scans a metadata store for entities, builds a type-specific relationship
context for each one, and hands the contexts to a publish channel so
downstream consumers can rebuild lineage graphs without querying the store.

Quick start::

    from lineage_spine import (
        EntityFilter, InMemoryEntityStore, InMemoryPublishChannel,
        LineagePublicationEngine,
    )

    engine = LineagePublicationEngine(store, InMemoryPublishChannel())
    result = engine.publish_entities("Process", EntityFilter())
    result.sorted_ids()
"""

__version__ = "0.1.0"

from lineage_spine.audit import AuditCode, AuditEvent, InMemoryAuditSink, LoggingAuditSink
from lineage_spine.context import ContextBuilder, StrategyRegistry, default_registry
from lineage_spine.core import *  # noqa: F403
from lineage_spine.engine import LineagePublicationEngine
from lineage_spine.publishing import (
    InMemoryPublishChannel,
    JsonLinesPublishChannel,
    LineageEvent,
    LineageEventType,
)
from lineage_spine.service import (
    IdListResponse,
    LineageServices,
    PublishEntitiesRequest,
    PublishEntityRequest,
)
from lineage_spine.store import InMemoryEntityStore

"""Outbound lineage events and publish channels."""

from lineage_spine.core.protocols import PublishChannel
from lineage_spine.publishing.channels import (
    EventHandler,
    InMemoryPublishChannel,
    JsonLinesPublishChannel,
)
from lineage_spine.publishing.events import (
    ASSET_CONTEXT,
    ContextPayload,
    EdgePayload,
    LineageEvent,
    LineageEventType,
    VertexPayload,
)

__all__ = [
    "ASSET_CONTEXT",
    "PublishChannel",
    "EventHandler",
    "InMemoryPublishChannel",
    "JsonLinesPublishChannel",
    "LineageEvent",
    "LineageEventType",
    "ContextPayload",
    "EdgePayload",
    "VertexPayload",
]

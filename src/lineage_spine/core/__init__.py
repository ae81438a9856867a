"""Lineage Spine Core -- data model, errors, settings, logging, protocols.

Architecture::

    errors.py      Structured error hierarchy (LineageError and subclasses)
    models.py      Entity, Vertex, DirectedEdge, RelationshipsContext, ContextMap
    protocols.py   EntityStore, PublishChannel, AuditSink
    settings.py    LineageSettings (pydantic-settings, LINEAGE_* env vars)
    logging.py     structlog configuration and request context helpers
"""

from lineage_spine.core.errors import (
    ContextBuildError,
    ErrorCategory,
    ErrorContext,
    InvalidInputError,
    LineageError,
    PublishError,
    PublishUnavailableError,
    ServerNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    UnitFailure,
    UnsupportedTypeError,
)
from lineage_spine.core.models import (
    ContextMap,
    DirectedEdge,
    Entity,
    EntityFilter,
    PublicationResult,
    Relationship,
    RelationshipsContext,
    UnitOutcome,
    UnitStatus,
    Vertex,
)
from lineage_spine.core.protocols import AuditSink, EntityStore, PublishChannel
from lineage_spine.core.settings import LineageSettings, get_settings, reset_settings

__all__ = [
    # errors
    "ErrorCategory",
    "ErrorContext",
    "LineageError",
    "InvalidInputError",
    "UnauthorizedError",
    "StoreUnavailableError",
    "ServerNotFoundError",
    "PublishUnavailableError",
    "PublishError",
    "ContextBuildError",
    "UnsupportedTypeError",
    "UnitFailure",
    # models
    "Vertex",
    "Entity",
    "Relationship",
    "DirectedEdge",
    "RelationshipsContext",
    "ContextMap",
    "EntityFilter",
    "PublicationResult",
    "UnitStatus",
    "UnitOutcome",
    # protocols
    "EntityStore",
    "PublishChannel",
    "AuditSink",
    # settings
    "LineageSettings",
    "get_settings",
    "reset_settings",
]

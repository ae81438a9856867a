"""
Service boundary for lineage publication requests.

Routes requests to the engine registered for their ``server_name`` and
turns request-level errors into an error descriptor on the response, the
way a REST layer would report them. Transport (HTTP, CLI) is out of scope:
callers build the pydantic request models themselves.

    ┌────────────────────┐     ┌──────────────────────┐     ┌──────────────┐
    │ PublishXxxRequest  │ ──► │ LineageServices      │ ──► │ engine for   │
    │ (pydantic)         │     │  route, bind logs,   │     │ server_name  │
    └────────────────────┘     │  capture errors      │     └──────────────┘
                               └──────────┬───────────┘
                                          ▼
                               IdListResponse(ids | error descriptor)

Unit-level failures never reach this layer: a request that found entities
but published none of them still succeeds with an empty id list.
"""

from __future__ import annotations

import threading
from datetime import datetime

from pydantic import BaseModel, Field

from lineage_spine.core.errors import LineageError, ServerNotFoundError, error_descriptor
from lineage_spine.core.logging import LogContext, get_logger
from lineage_spine.core.models import EntityFilter, PublicationResult
from lineage_spine.engine import LineagePublicationEngine

__all__ = [
    "PublishEntitiesRequest",
    "PublishEntityRequest",
    "IdListResponse",
    "LineageServices",
]

log = get_logger(__name__)


class PublishEntitiesRequest(BaseModel):
    """Publish every entity of a type, optionally only those updated after a time."""

    server_name: str
    caller_id: str
    entity_type: str
    updated_after: datetime | None = None
    page_size: int | None = Field(default=None, gt=0)

    def entity_filter(self) -> EntityFilter:
        return EntityFilter(updated_after=self.updated_after, page_size=self.page_size)


class PublishEntityRequest(BaseModel):
    """Publish one entity's context, or its asset context."""

    server_name: str
    caller_id: str
    entity_type: str
    entity_id: str


class IdListResponse(BaseModel):
    """Ids produced by a request, or the error that aborted it."""

    ids: list[str] = Field(default_factory=list)
    related_http_code: int = 200
    exception_class_name: str | None = None
    exception_message: str | None = None
    error_category: str | None = None

    @property
    def ok(self) -> bool:
        return self.exception_class_name is None

    @classmethod
    def from_result(cls, result: PublicationResult) -> IdListResponse:
        return cls(ids=result.sorted_ids())

    @classmethod
    def from_error(cls, error: BaseException) -> IdListResponse:
        return cls(**error_descriptor(error))


class LineageServices:
    """Per-server registry of publication engines plus the request entry points."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._engines: dict[str, LineagePublicationEngine] = {}

    def register_server(self, server_name: str, engine: LineagePublicationEngine) -> None:
        with self._lock:
            if server_name in self._engines:
                raise ValueError(f"Server '{server_name}' is already registered")
            self._engines[server_name] = engine
        log.info("service.server_registered", server_name=server_name)

    def unregister_server(self, server_name: str) -> None:
        with self._lock:
            self._engines.pop(server_name, None)

    def get_engine(self, server_name: str) -> LineagePublicationEngine:
        with self._lock:
            engine = self._engines.get(server_name)
        if engine is None:
            raise ServerNotFoundError(server_name)
        return engine

    def list_servers(self) -> list[str]:
        with self._lock:
            return sorted(self._engines)

    # ── Requests ─────────────────────────────────────────────────

    def publish_entities(self, request: PublishEntitiesRequest) -> IdListResponse:
        with LogContext(server_name=request.server_name):
            try:
                engine = self.get_engine(request.server_name)
                result = engine.publish_entities(
                    request.entity_type,
                    request.entity_filter(),
                    caller_id=request.caller_id,
                )
            except LineageError as e:
                return self._capture("publish_entities", e)
            return IdListResponse.from_result(result)

    def publish_entity(self, request: PublishEntityRequest) -> IdListResponse:
        with LogContext(server_name=request.server_name):
            try:
                engine = self.get_engine(request.server_name)
                result = engine.publish_entity(
                    request.entity_type,
                    request.entity_id,
                    caller_id=request.caller_id,
                )
            except LineageError as e:
                return self._capture("publish_entity", e)
            return IdListResponse.from_result(result)

    def publish_asset_context(self, request: PublishEntityRequest) -> IdListResponse:
        with LogContext(server_name=request.server_name):
            try:
                engine = self.get_engine(request.server_name)
                result = engine.publish_asset_context(
                    request.entity_type,
                    request.entity_id,
                    caller_id=request.caller_id,
                )
            except LineageError as e:
                return self._capture("publish_asset_context", e)
            return IdListResponse.from_result(result)

    @staticmethod
    def _capture(operation: str, error: LineageError) -> IdListResponse:
        log.warning("service.request_failed", operation=operation, **error.to_dict())
        return IdListResponse.from_error(error)

"""
Lineage Publication Engine -- scan, build, publish, aggregate.

Manifesto:
    Downstream consumers rebuild lineage graphs from the events this engine
    publishes, so a bulk publish must deliver as much as it can: one bad
    entity must never abort its siblings. Request-level problems (bad input,
    no rights, store down) abort the request with a typed error; entity-level
    problems are recorded in the audit trail and absorbed.

Architecture:
    ::

        publish_entities(type, filter)          publish_entity(type, id)
              │                                        │
        store.find_entities_by_type             store.get_entity_by_id_and_type
              │ (empty → ENTITIES_NOT_FOUND)           │ (None → ENTITY_NOT_FOUND)
        resolve channel (None → PUBLISHER_NOT_AVAILABLE, empty result)
              │                                        │
        BatchExecutor ── unit per entity ──┐      unit on caller thread
                                           ▼
                 build-and-publish unit:  builder.build(entity)
                                          empty → outcome none
                                          channel.publish(event)
                                          True  → outcome entity id
                                          error → FAILED_TO_PUBLISH, none
                                           │
                          PublicationResult.from_outcomes(...)

        publish_asset_context(type, id)
              │
        builder.build_asset_context → channel.publish (always) → vertex ids

Guardrails:
    - One publish attempt per entity per request; no retries
    - No cancellation, no internal timeouts: a batch runs to completion
    - The engine keeps no reference to a context after handing it off
    - The audit sink is per request (override) or per engine, never global

Tags:
    lineage, publication, engine, fan-out, fault-isolation, audit
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence

from lineage_spine.audit import AuditCode, LoggingAuditSink, notify_safely
from lineage_spine.context.builder import ContextBuilder
from lineage_spine.core.errors import (
    InvalidInputError,
    PublishError,
    PublishUnavailableError,
    UnitFailure,
)
from lineage_spine.core.logging import LogContext, get_logger
from lineage_spine.core.models import (
    Entity,
    EntityFilter,
    PublicationResult,
    UnitOutcome,
    UnitStatus,
)
from lineage_spine.core.protocols import AuditSink, EntityStore, PublishChannel
from lineage_spine.core.settings import LineageSettings, get_settings
from lineage_spine.execution.batch import BatchExecutor
from lineage_spine.publishing.events import LineageEvent

__all__ = ["LineagePublicationEngine"]

log = get_logger(__name__)


class LineagePublicationEngine:
    """Publishes lineage context for entities of the metadata store.

    Args:
        store: Entity store gateway (shared by all workers)
        channel: Publish channel shared by every request
        channel_provider: Called per request when ``channel`` is ``None``;
            may raise or return ``None`` when no channel can be obtained.
            With neither, every request returns an empty result.
        builder: Context builder (defaults to one over ``store``)
        audit: Default audit sink (defaults to :class:`LoggingAuditSink`)
        settings: Engine settings (``max_workers``)
        executor: Fan-out executor for bulk requests
    """

    def __init__(
        self,
        store: EntityStore,
        channel: PublishChannel | None,
        *,
        channel_provider: Callable[[], PublishChannel | None] | None = None,
        builder: ContextBuilder | None = None,
        audit: AuditSink | None = None,
        settings: LineageSettings | None = None,
        executor: BatchExecutor | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.channel = channel
        self.channel_provider = channel_provider
        self.builder = builder or ContextBuilder(store, settings=self.settings)
        self.audit = audit or LoggingAuditSink()
        self.executor = executor or BatchExecutor(max_workers=self.settings.max_workers)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def publish_entities(
        self,
        type_name: str,
        entity_filter: EntityFilter | None,
        *,
        caller_id: str | None = None,
        audit: AuditSink | None = None,
    ) -> PublicationResult:
        """Publish the context of every entity of ``type_name`` matching the filter.

        Raises:
            InvalidInputError: blank type name, missing filter, unknown type
            UnauthorizedError: caller lacks rights on the store
            StoreUnavailableError: the store query failed
        """
        _require(type_name, "type_name")
        if entity_filter is None:
            raise InvalidInputError("An entity filter is required", parameter="entity_filter")
        sink = audit or self.audit

        with LogContext(request_id=_request_id(), caller_id=caller_id, entity_type=type_name,
                        operation="publish_entities"):
            notify_safely(sink, AuditCode.SCAN_STARTED, entity_type=type_name)
            entities = self.store.find_entities_by_type(type_name, entity_filter, caller_id=caller_id)

            if not entities:
                notify_safely(sink, AuditCode.ENTITIES_NOT_FOUND, entity_type=type_name, count=0)
                log.info("scan.completed", found=0)
                return PublicationResult.empty()

            notify_safely(sink, AuditCode.ENTITIES_FOUND, entity_type=type_name, count=len(entities))
            notify_safely(sink, AuditCode.ENTITIES, entity_type=type_name,
                          ids=",".join(e.id for e in entities))
            log.info("scan.completed", found=len(entities))

            channel = self._resolve_channel(sink)
            if channel is None:
                return PublicationResult.empty()

            notify_safely(sink, AuditCode.PUBLISH_SEQUENCE_START, entity_type=type_name,
                          count=len(entities))
            outcomes = self._publish_all(entities, channel, sink, caller_id)
            result = PublicationResult.from_outcomes(o.published_id for o in outcomes)
            notify_safely(sink, AuditCode.PUBLISH_SEQUENCE_END, entity_type=type_name,
                          count=len(result))

            log.info(
                "publish.summary",
                found=len(entities),
                published=len(result),
                empty=sum(1 for o in outcomes if o.status is UnitStatus.EMPTY),
                failed=sum(1 for o in outcomes if o.status is UnitStatus.FAILED),
            )
            return result

    def publish_entity(
        self,
        type_name: str,
        entity_id: str,
        *,
        caller_id: str | None = None,
        audit: AuditSink | None = None,
    ) -> PublicationResult:
        """Publish the context of one entity, synchronously.

        A missing entity yields an empty result, not an error.
        """
        _require(type_name, "type_name")
        _require(entity_id, "entity_id")
        sink = audit or self.audit

        with LogContext(request_id=_request_id(), caller_id=caller_id, entity_type=type_name,
                        entity_id=entity_id, operation="publish_entity"):
            entity = self.store.get_entity_by_id_and_type(entity_id, type_name, caller_id=caller_id)
            if entity is None:
                notify_safely(sink, AuditCode.ENTITY_NOT_FOUND, entity_type=type_name, entity_id=entity_id)
                log.info("entity.not_found")
                return PublicationResult.empty()

            notify_safely(sink, AuditCode.ENTITY_FOUND, entity_type=type_name, entity_id=entity_id)
            channel = self._resolve_channel(sink)
            if channel is None:
                return PublicationResult.empty()

            outcome = self._publish_unit(entity, channel, sink, caller_id)
            return PublicationResult.from_outcomes([outcome.published_id])

    def publish_asset_context(
        self,
        type_name: str,
        entity_id: str,
        *,
        caller_id: str | None = None,
        audit: AuditSink | None = None,
    ) -> PublicationResult:
        """Publish the asset context around one entity.

        The context is published even when empty. Returns the ids of every
        vertex in the context, not just ``entity_id``.

        Raises:
            ContextBuildError: the asset traversal failed
            PublishError: the channel rejected or failed the delivery
        """
        _require(type_name, "type_name")
        _require(entity_id, "entity_id")
        sink = audit or self.audit

        with LogContext(request_id=_request_id(), caller_id=caller_id, entity_type=type_name,
                        entity_id=entity_id, operation="publish_asset_context"):
            entity = self.store.get_entity_by_id_and_type(entity_id, type_name, caller_id=caller_id)
            if entity is None:
                notify_safely(sink, AuditCode.ENTITY_NOT_FOUND, entity_type=type_name, entity_id=entity_id)
                log.info("entity.not_found")
                return PublicationResult.empty()

            channel = self._resolve_channel(sink)
            if channel is None:
                return PublicationResult.empty()

            context = self.builder.build_asset_context(entity, caller_id=caller_id)
            event = LineageEvent.from_asset_context(entity, context)
            try:
                delivered = channel.publish(event)
            except PublishError:
                raise
            except Exception as e:
                raise PublishError(f"Asset context delivery failed: {e}", cause=e).with_context(
                    entity_type=type_name, entity_id=entity_id
                ) from e
            if not delivered:
                raise PublishError("Asset context was not delivered").with_context(
                    entity_type=type_name, entity_id=entity_id
                )

            vertex_ids = context.vertex_ids()
            notify_safely(sink, AuditCode.ASSET_CONTEXT_PUBLISHED, entity_id=entity_id,
                          entity_type=type_name, count=len(vertex_ids))
            log.info("asset_context.published", edges=len(context), vertices=len(vertex_ids))
            return PublicationResult(frozenset(vertex_ids))

    # ------------------------------------------------------------------ #
    # Units
    # ------------------------------------------------------------------ #

    def _publish_all(
        self,
        entities: Sequence[Entity],
        channel: PublishChannel,
        sink: AuditSink,
        caller_id: str | None,
    ) -> list[UnitOutcome]:
        batch = self.executor.run(
            entities,
            lambda entity: self._publish_unit(entity, channel, sink, caller_id),
            key=lambda entity: entity.id,
            name="lineage-publish",
        )
        outcomes: list[UnitOutcome] = list(batch.results())
        # _publish_unit absorbs its own errors; a failed item here means even that did not run
        for item in batch.items:
            if item.status == "failed":
                outcomes.append(UnitOutcome(item.name, "", UnitStatus.FAILED, item.error))
        return outcomes

    def _publish_unit(
        self,
        entity: Entity,
        channel: PublishChannel,
        sink: AuditSink,
        caller_id: str | None,
    ) -> UnitOutcome:
        """Build and publish one entity's context. Never raises."""
        ids = {"entity_type": entity.type_name, "entity_id": entity.id}
        notify_safely(sink, AuditCode.BUILDING_CONTEXT_STARTED, **ids)

        try:
            context_map = self.builder.build(entity, caller_id=caller_id)
            if context_map.is_empty():
                code = (AuditCode.NOTHING_TO_PUBLISH if self.builder.supports(entity.type_name)
                        else AuditCode.UNSUPPORTED_TYPE)
                notify_safely(sink, code, **ids)
                log.debug("publish.unit_empty", **ids)
                return UnitOutcome(entity.id, entity.type_name, UnitStatus.EMPTY)

            event = LineageEvent.from_context_map(
                entity, self.builder.event_type_for(entity.type_name), context_map
            )
            if not channel.publish(event):
                raise PublishError("Publish channel did not deliver the event")
        except Exception as e:
            failure = UnitFailure(f"Could not publish context: {e}", cause=e).with_context(**ids)
            notify_safely(sink, AuditCode.FAILED_TO_PUBLISH, error=str(e), **ids)
            log.error("publish.unit_failed", cause_type=type(e).__name__, **failure.to_dict())
            return UnitOutcome(entity.id, entity.type_name, UnitStatus.FAILED, str(e))

        notify_safely(sink, AuditCode.PUBLISHED, **ids)
        log.debug("publish.unit_published", **ids)
        return UnitOutcome(entity.id, entity.type_name, UnitStatus.PUBLISHED)

    def _resolve_channel(self, sink: AuditSink) -> PublishChannel | None:
        """The channel for this request, or ``None`` after auditing why not."""
        try:
            return self._obtain_channel()
        except PublishUnavailableError as e:
            notify_safely(sink, AuditCode.PUBLISHER_NOT_AVAILABLE)
            log.error("publish.channel_unavailable", **e.to_dict())
            return None

    def _obtain_channel(self) -> PublishChannel:
        if self.channel is not None:
            return self.channel
        if self.channel_provider is None:
            raise PublishUnavailableError("No publish channel is configured")
        try:
            channel = self.channel_provider()
        except PublishUnavailableError:
            raise
        except Exception as e:
            raise PublishUnavailableError(f"Publish channel could not be initialized: {e}", cause=e) from e
        if channel is None:
            raise PublishUnavailableError("Publish channel provider returned no channel")
        return channel


def _require(value: str | None, parameter: str) -> None:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{parameter} must be a non-empty string", parameter=parameter, value=value)


def _request_id() -> str:
    return uuid.uuid4().hex[:12]

"""
Shared pytest fixtures for lineage-spine tests.

This module provides:
- A sample metadata graph (glossary, database schema, ETL process)
- Recording publish channel and in-memory audit sink
- Settings reset for environment isolation
- A ``graph_store`` factory for ad-hoc graphs in individual tests

Sample graph::

    db-crm ─AssetSchemaType→ schema-crm ─AttributeForSchema→ tbl-customers
    tbl-customers ─NestedSchemaAttribute→ col-cust-id, col-cust-name
    col-cust-id ─SemanticAssignment→ term-customer
    term-customer ─Synonym→ term-client      term-customer ─ISARelationship→ term-party

    proc-etl ─ProcessPort→ port-in ─PortSchema→ ps-in ─AttributeForSchema→ psa-in-id
    proc-etl ─ProcessPort→ port-out ─PortSchema→ ps-out ─AttributeForSchema→ psa-out-id
    psa-in-id ─LineageMapping→ psa-out-id
    col-cust-id ─DataFlow→ proc-etl ─DataFlow→ file-report
    proc-etl ─ControlFlow→ proc-load         proc-etl ─ProcessCall→ proc-helper

    term-orphan, proc-idle: no relationships
"""

import os
from collections.abc import Callable, Generator
from datetime import UTC, datetime

import pytest

from lineage_spine.audit import InMemoryAuditSink
from lineage_spine.context import ContextBuilder
from lineage_spine.core.models import Entity, Relationship, Vertex
from lineage_spine.core.settings import LineageSettings, reset_settings
from lineage_spine.engine import LineagePublicationEngine
from lineage_spine.publishing import InMemoryPublishChannel
from lineage_spine.store import InMemoryEntityStore

T0 = datetime(2026, 1, 1, tzinfo=UTC)

ENTITY_TYPES = {
    "db-crm": "Database",
    "schema-crm": "DeployedDatabaseSchemaType",
    "tbl-customers": "RelationalTable",
    "col-cust-id": "RelationalColumn",
    "col-cust-name": "RelationalColumn",
    "term-customer": "GlossaryTerm",
    "term-client": "GlossaryTerm",
    "term-party": "GlossaryTerm",
    "term-orphan": "GlossaryTerm",
    "proc-etl": "Process",
    "proc-load": "Process",
    "proc-helper": "Process",
    "proc-idle": "Process",
    "port-in": "PortImplementation",
    "port-out": "PortImplementation",
    "ps-in": "TabularSchemaType",
    "ps-out": "TabularSchemaType",
    "psa-in-id": "TabularColumn",
    "psa-out-id": "TabularColumn",
    "file-report": "DataFile",
}

RELATIONSHIPS = [
    ("AssetSchemaType", "db-crm", "schema-crm"),
    ("AttributeForSchema", "schema-crm", "tbl-customers"),
    ("NestedSchemaAttribute", "tbl-customers", "col-cust-id"),
    ("NestedSchemaAttribute", "tbl-customers", "col-cust-name"),
    ("SemanticAssignment", "col-cust-id", "term-customer"),
    ("Synonym", "term-customer", "term-client"),
    ("ISARelationship", "term-customer", "term-party"),
    ("ProcessPort", "proc-etl", "port-in"),
    ("ProcessPort", "proc-etl", "port-out"),
    ("PortSchema", "port-in", "ps-in"),
    ("PortSchema", "port-out", "ps-out"),
    ("AttributeForSchema", "ps-in", "psa-in-id"),
    ("AttributeForSchema", "ps-out", "psa-out-id"),
    ("LineageMapping", "psa-in-id", "psa-out-id"),
    ("DataFlow", "col-cust-id", "proc-etl"),
    ("DataFlow", "proc-etl", "file-report"),
    ("ControlFlow", "proc-etl", "proc-load"),
    ("ProcessCall", "proc-etl", "proc-helper"),
]


def _vertex(entity_id: str, types: dict[str, str]) -> Vertex:
    return Vertex(entity_id, types.get(entity_id, "Referenceable"))


def build_store(
    types: dict[str, str],
    relationships: list[tuple[str, str, str]],
    **kwargs,
) -> InMemoryEntityStore:
    """Store holding one entity per ``types`` entry and one relationship per triple."""
    store = InMemoryEntityStore(**kwargs)
    for i, (entity_id, type_name) in enumerate(sorted(types.items())):
        store.add_entity(Entity(entity_id, type_name, {"qualifiedName": entity_id},
                                updated_at=T0.replace(day=1 + i % 28)))
    for i, (rel_type, end1, end2) in enumerate(relationships):
        store.add_relationship(
            Relationship(f"rel-{i}", rel_type, _vertex(end1, types), _vertex(end2, types))
        )
    return store


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and LINEAGE_* variables around each test."""
    for key in list(os.environ):
        if key.startswith("LINEAGE_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def settings() -> LineageSettings:
    return LineageSettings(max_workers=4)


@pytest.fixture
def store() -> InMemoryEntityStore:
    """Sample metadata graph."""
    return build_store(ENTITY_TYPES, RELATIONSHIPS)


@pytest.fixture
def graph_store() -> Callable[..., InMemoryEntityStore]:
    """Factory: ``graph_store(types, [(rel_type, end1, end2), ...])``."""
    return build_store


@pytest.fixture
def channel() -> InMemoryPublishChannel:
    return InMemoryPublishChannel()


@pytest.fixture
def audit() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def builder(store: InMemoryEntityStore, settings: LineageSettings) -> ContextBuilder:
    return ContextBuilder(store, settings=settings)


@pytest.fixture
def engine(
    store: InMemoryEntityStore,
    channel: InMemoryPublishChannel,
    audit: InMemoryAuditSink,
    settings: LineageSettings,
) -> LineagePublicationEngine:
    return LineagePublicationEngine(store, channel, audit=audit, settings=settings)


@pytest.fixture
def secured_store() -> InMemoryEntityStore:
    """Sample graph readable only by ``garygeeke``."""
    return build_store(ENTITY_TYPES, RELATIONSHIPS, authorized_callers={"garygeeke"})

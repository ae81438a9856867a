"""Relationship type names used by the built-in context strategies.

Direction convention for every type is ``end1 → end2``:

    SemanticAssignment      data element → glossary term
    Synonym / ISARelationship   term → term
    ProcessPort             process → port
    PortDelegation          delegating port → delegated port
    PortSchema              port → schema type
    DataFlow                supplier → consumer
    ControlFlow             current step → next step
    ProcessCall             caller → called
    LineageMapping          source attribute → destination attribute
    AssetSchemaType         asset → schema type
    AttributeForSchema      schema type → schema attribute
    NestedSchemaAttribute   parent attribute → nested attribute
    DataContentForDataSet   data store → data set
    NestedFile / FolderHierarchy   folder → file / parent folder → folder
"""

# Glossary
SEMANTIC_ASSIGNMENT = "SemanticAssignment"
SYNONYM = "Synonym"
IS_A_RELATIONSHIP = "ISARelationship"

# Process
PROCESS_PORT = "ProcessPort"
PORT_DELEGATION = "PortDelegation"
PORT_SCHEMA = "PortSchema"
DATA_FLOW = "DataFlow"
CONTROL_FLOW = "ControlFlow"
PROCESS_CALL = "ProcessCall"
LINEAGE_MAPPING = "LineageMapping"

# Schema and containment
ASSET_SCHEMA_TYPE = "AssetSchemaType"
ATTRIBUTE_FOR_SCHEMA = "AttributeForSchema"
NESTED_SCHEMA_ATTRIBUTE = "NestedSchemaAttribute"
DATA_CONTENT_FOR_DATA_SET = "DataContentForDataSet"
NESTED_FILE = "NestedFile"
FOLDER_HIERARCHY = "FolderHierarchy"

SCHEMA_TYPES = frozenset({
    ASSET_SCHEMA_TYPE,
    PORT_SCHEMA,
    ATTRIBUTE_FOR_SCHEMA,
    NESTED_SCHEMA_ATTRIBUTE,
})

CONTAINMENT_TYPES = frozenset({
    DATA_CONTENT_FOR_DATA_SET,
    NESTED_FILE,
    FOLDER_HIERARCHY,
})

STRUCTURAL_TYPES = SCHEMA_TYPES | CONTAINMENT_TYPES

"""
Graph Module.

Neo4j client, node schema declarations and schema migration errors.
"""

from src.graph.errors import (
    DuplicateConstraintError,
    DuplicateIndexError,
    DuplicateTargetError,
    MigrationError,
    MissingIdPolicyError,
    NoSuchConstraintError,
    NoSuchIndexError,
)
from src.graph.neo4j_client import (
    GraphStoreClient,
    get_graph_client,
)
from src.graph.schema import (
    ConstraintKind,
    IdGenerationMode,
    IdPropertyPolicy,
    IndexKind,
    LabelIndexes,
    NodeSchema,
    PropertyDefinition,
    SchemaRegistry,
    get_schema_registry,
)

__all__ = [
    # Schema
    "ConstraintKind",
    "IndexKind",
    "IdGenerationMode",
    "IdPropertyPolicy",
    "PropertyDefinition",
    "NodeSchema",
    "LabelIndexes",
    "SchemaRegistry",
    "get_schema_registry",
    # Client
    "GraphStoreClient",
    "get_graph_client",
    # Errors
    "MigrationError",
    "DuplicateTargetError",
    "DuplicateConstraintError",
    "DuplicateIndexError",
    "NoSuchConstraintError",
    "NoSuchIndexError",
    "MissingIdPolicyError",
]

"""
Pytest Configuration and Shared Fixtures.

This module provides shared fixtures for testing the schema migration helpers.
"""

import random
import re
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from neo4j.exceptions import ClientError, TransientError

from src.config.settings import MigrationSettings, Settings, get_settings
from src.graph.migrations.helpers import MigrationHelpers
from src.graph.neo4j_client import GraphStoreClient
from src.graph.schema import (
    ConstraintKind,
    IdGenerationMode,
    IdPropertyPolicy,
    IndexKind,
    LabelIndexes,
    NodeSchema,
    PropertyDefinition,
    SchemaRegistry,
)

_IDLESS = re.compile(r"MATCH \(n:`([^`]+)`\) WHERE n\.`([^`]+)` IS NULL")
_HAS_PROPERTY = re.compile(r"MATCH \(n:`([^`]+)`\) WHERE n\.`([^`]+)` IS NOT NULL")
_RENAME_PROPERTY = re.compile(
    r"^MATCH \(n:`([^`]+)`\) SET n\.`([^`]+)` = n\.`([^`]+)` REMOVE n\.`[^`]+`$"
)
_REMOVE_PROPERTY = re.compile(r"^MATCH \(n:`([^`]+)`\) REMOVE n\.`([^`]+)`$")


# =============================================================================
# In-memory Graph Store
# =============================================================================


class FakeGraphStore:
    """
    In-memory stand-in for GraphStoreClient.

    Keeps constraint/index metadata and a list of nodes. Understands the
    statements issued by the id property helpers, property rename and
    removal, the property existence check and the migration tracking
    queries; other statements are only recorded.
    """

    def __init__(self) -> None:
        self.constraints: set[tuple[str, str]] = set()
        self.indexes: set[tuple[str, str]] = set()
        self.nodes: list[dict[str, Any]] = []
        self.migration_records: dict[str, dict[str, Any]] = {}
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.write_stats = {
            "nodes_created": 0,
            "nodes_deleted": 0,
            "relationships_created": 0,
            "relationships_deleted": 0,
            "properties_set": 0,
            "labels_added": 0,
            "labels_removed": 0,
        }
        self.transient_failures = 0
        self.connect = AsyncMock()
        self.close = AsyncMock()

    def add_node(self, *labels: str, **properties: Any) -> dict[str, Any]:
        node = {"labels": set(labels), "properties": dict(properties)}
        self.nodes.append(node)
        return node

    def nodes_with(self, label: str) -> list[dict[str, Any]]:
        return [n for n in self.nodes if label in n["labels"]]

    def _idless(self, label: str, property_name: str) -> list[dict[str, Any]]:
        return [n for n in self.nodes_with(label) if n["properties"].get(property_name) is None]

    async def execute_cypher(
        self, query: str, parameters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        params = parameters or {}
        self.queries.append((query, params))

        idless = _IDLESS.search(query)
        if idless and "RETURN count(n) AS count" in query:
            return [{"count": len(self._idless(*idless.groups()))}]
        if idless and "AS updated" in query:
            if self.transient_failures:
                self.transient_failures -= 1
                raise TransientError("Transaction ran out of memory")
            label, property_name = idless.groups()
            nodes = self._idless(label, property_name)[: params["count"]]
            for node, new_id in zip(nodes, params["ids"]):
                node["properties"][property_name] = new_id
            return [{"updated": len(nodes)}]

        has_property = _HAS_PROPERTY.search(query)
        if has_property and "AS found" in query:
            label, property_name = has_property.groups()
            found = any(
                n["properties"].get(property_name) is not None for n in self.nodes_with(label)
            )
            return [{"found": 1}] if found else []

        if "MERGE (m:" in query:
            self.migration_records[params["version"]] = {
                "version": params["version"],
                "description": params["description"],
                "status": params["status"],
                "applied_at": None,
                "error": params["error"],
            }
            return []
        if "SET m.status = $status" in query:
            self.migration_records[params["version"]]["status"] = params["status"]
            return []
        if "RETURN m.version as version" in query:
            return [self.migration_records[v] for v in sorted(self.migration_records)]

        return []

    async def execute_write(
        self, query: str, parameters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        self.writes.append((query, parameters or {}))

        rename = _RENAME_PROPERTY.match(query)
        if rename:
            label, new, old = rename.groups()
            for node in self.nodes_with(label):
                if old in node["properties"]:
                    node["properties"][new] = node["properties"].pop(old)
        remove = _REMOVE_PROPERTY.match(query)
        if remove:
            label, property_name = remove.groups()
            for node in self.nodes_with(label):
                node["properties"].pop(property_name, None)

        return dict(self.write_stats)

    async def get_constraints(self, label: str) -> list[dict[str, Any]]:
        return [
            {"name": f"constraint_{lbl}_{p}", "properties": [p]}
            for lbl, p in sorted(self.constraints)
            if lbl == label
        ]

    async def constraint_exists(self, label: str, property_name: str) -> bool:
        return (label, property_name) in self.constraints

    async def get_indexes(self, label: str) -> LabelIndexes:
        return LabelIndexes(
            label=label,
            property_keys=[[p] for lbl, p in sorted(self.indexes) if lbl == label],
        )

    async def index_exists(self, label: str, property_name: str) -> bool:
        return (label, property_name) in self.indexes

    async def create_unique_constraint(
        self, label: str, property_name: str, if_not_exists: bool = False
    ) -> None:
        if (label, property_name) in self.constraints and not if_not_exists:
            raise ClientError("An equivalent constraint already exists")
        self.constraints.add((label, property_name))

    async def drop_unique_constraint(self, label: str, property_name: str) -> bool:
        if (label, property_name) not in self.constraints:
            return False
        self.constraints.discard((label, property_name))
        return True

    async def create_index(
        self, label: str, property_name: str, if_not_exists: bool = False
    ) -> None:
        if (label, property_name) in self.indexes and not if_not_exists:
            raise ClientError("An equivalent index already exists")
        self.indexes.add((label, property_name))

    async def drop_index(self, label: str, property_name: str) -> bool:
        if (label, property_name) not in self.indexes:
            return False
        self.indexes.discard((label, property_name))
        return True


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with mock values."""
    with patch.dict(
        "os.environ",
        {
            "NEO4J_URI": "bolt://localhost:7687",
            "NEO4J_USERNAME": "neo4j",
            "NEO4J_PASSWORD": "password123",
            "MIGRATION_MAX_PER_BATCH": "900",
        },
    ):
        # Clear cache and get fresh settings
        get_settings.cache_clear()
        settings = get_settings()
    get_settings.cache_clear()
    return settings


@pytest.fixture
def migration_settings() -> MigrationSettings:
    return MigrationSettings(max_per_batch=900, batch_shrink_factor=0.8)


# =============================================================================
# Graph Store Fixtures
# =============================================================================


@pytest.fixture
def mock_graph_client() -> MagicMock:
    """Create a mock graph client."""
    client = MagicMock(spec=GraphStoreClient)

    client.connect = AsyncMock()
    client.close = AsyncMock()
    client.execute_cypher = AsyncMock(return_value=[])
    client.execute_write = AsyncMock(
        return_value={
            "nodes_created": 0,
            "nodes_deleted": 0,
            "relationships_created": 0,
            "relationships_deleted": 0,
            "properties_set": 0,
            "labels_added": 0,
            "labels_removed": 0,
        }
    )
    client.constraint_exists = AsyncMock(return_value=False)
    client.index_exists = AsyncMock(return_value=False)

    return client


@pytest.fixture
def book_schema() -> NodeSchema:
    """Book declares a unique name and an indexed author_name."""
    return NodeSchema(
        label="Book",
        properties=[
            PropertyDefinition(name="name", constraint=ConstraintKind.UNIQUE),
            PropertyDefinition(name="author_name", index=IndexKind.EXACT),
        ],
    )


@pytest.fixture
def schema_registry(book_schema: NodeSchema) -> SchemaRegistry:
    registry = SchemaRegistry()
    registry.register(book_schema)
    registry.register(NodeSchema(label="Cat"))
    registry.register(
        NodeSchema(
            label="Dog",
            id_property=IdPropertyPolicy(
                property_name="my_id",
                generation_mode=IdGenerationMode.CUSTOM,
                generator=lambda: f"id-{random.random()}",
            ),
        )
    )
    return registry


@pytest.fixture
def graph_store() -> FakeGraphStore:
    """Store holding three books, a unique Book.name and an index on Book.author_name."""
    store = FakeGraphStore()
    store.constraints.add(("Book", "name"))
    store.indexes.add(("Book", "author_name"))
    for name in ("Book1", "Book2", "Book3"):
        store.add_node("Book", name=name)
    return store


@pytest.fixture
def output_lines() -> list[str]:
    return []


@pytest.fixture
def helpers(
    graph_store: FakeGraphStore,
    output_lines: list[str],
    schema_registry: SchemaRegistry,
    migration_settings: MigrationSettings,
) -> MigrationHelpers:
    """Migration helpers over the in-memory store, collecting output lines."""
    return MigrationHelpers(
        client=graph_store,
        output=output_lines.append,
        registry=schema_registry,
        settings=migration_settings,
    )

"""
Graph Store Client Module.

Neo4j client used by the schema migration helpers.
Supports raw Cypher execution and constraint/index metadata and DDL.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession

from src.config.settings import get_settings
from src.graph.cypher import name_of, quote
from src.graph.schema import LabelIndexes

logger = structlog.get_logger(__name__)

# Neo4j 5 reports node uniqueness as UNIQUENESS, newer releases as NODE_PROPERTY_UNIQUENESS
UNIQUE_CONSTRAINT_TYPES = frozenset({"UNIQUENESS", "NODE_PROPERTY_UNIQUENESS"})
PROPERTY_INDEX_TYPES = frozenset({"RANGE", "BTREE"})


class GraphStoreClient:
    """
    Neo4j client for schema migrations.

    Provides raw Cypher execution plus the constraint and index
    metadata queries the migration helpers check before running DDL.
    """

    SHOW_CONSTRAINTS = (
        "SHOW CONSTRAINTS YIELD name, type, entityType, labelsOrTypes, properties "
        "RETURN name, type, entityType, labelsOrTypes, properties"
    )

    SHOW_INDEXES = (
        "SHOW INDEXES YIELD name, type, entityType, labelsOrTypes, properties, owningConstraint "
        "RETURN name, type, entityType, labelsOrTypes, properties, owningConstraint"
    )

    def __init__(self, settings: Any = None) -> None:
        """Initialize the client with optional custom settings."""
        self._driver: AsyncDriver | None = None
        self._settings = settings or get_settings().neo4j

    async def connect(self) -> None:
        """Establish connection to Neo4j database."""
        if self._driver is not None:
            return

        self._driver = AsyncGraphDatabase.driver(
            self._settings.uri,
            auth=(self._settings.username, self._settings.password.get_secret_value()),
            max_connection_pool_size=self._settings.max_connection_pool_size,
        )
        await self._driver.verify_connectivity()
        logger.info("Connected to Neo4j", uri=self._settings.uri)

    async def close(self) -> None:
        """Close the database connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Disconnected from Neo4j")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if self._driver is None:
            await self.connect()

        assert self._driver is not None  # Type guard for mypy
        async with self._driver.session(database=self._settings.database) as session:
            yield session

    # =========================================================================
    # Query Execution
    # =========================================================================

    async def execute_cypher(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a raw Cypher query.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            List of result records as dictionaries
        """
        async with self.session() as session:
            result = await session.run(query, parameters or {})
            records: list[dict[str, Any]] = await result.data()

        logger.debug(
            "Cypher executed",
            query=query[:100],
            param_count=len(parameters) if parameters else 0,
            result_count=len(records),
        )

        return records

    async def execute_write(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Execute a write Cypher query.

        Returns summary counters.
        """
        async with self.session() as session:
            result = await session.run(query, parameters or {})
            summary = await result.consume()

        counters = summary.counters
        stats = {
            "nodes_created": counters.nodes_created,
            "nodes_deleted": counters.nodes_deleted,
            "relationships_created": counters.relationships_created,
            "relationships_deleted": counters.relationships_deleted,
            "properties_set": counters.properties_set,
            "labels_added": counters.labels_added,
            "labels_removed": counters.labels_removed,
        }
        logger.debug("Write executed", query=query[:100], **stats)
        return stats

    # =========================================================================
    # Schema Metadata
    # =========================================================================

    async def get_constraints(self, label: str) -> list[dict[str, Any]]:
        """
        List node uniqueness constraints defined on a label.

        Returns:
            Records with ``name`` and ``properties``
        """
        label = name_of(label)
        records = await self.execute_cypher(self.SHOW_CONSTRAINTS)
        return [
            {"name": r["name"], "properties": list(r.get("properties") or [])}
            for r in records
            if r.get("entityType") == "NODE"
            and r.get("type") in UNIQUE_CONSTRAINT_TYPES
            and label in (r.get("labelsOrTypes") or [])
        ]

    async def constraint_exists(self, label: str, property_name: str) -> bool:
        """Check whether a uniqueness constraint exists for label+property."""
        return await self._constraint_name(label, property_name) is not None

    async def _index_records(self, label: str) -> list[dict[str, Any]]:
        label = name_of(label)
        records = await self.execute_cypher(self.SHOW_INDEXES)
        return [
            r
            for r in records
            if r.get("entityType") == "NODE"
            and r.get("type") in PROPERTY_INDEX_TYPES
            and r.get("owningConstraint") is None
            and label in (r.get("labelsOrTypes") or [])
        ]

    async def get_indexes(self, label: str) -> LabelIndexes:
        """
        List explicit property indexes defined on a label.

        Indexes backing a constraint are not included.
        """
        records = await self._index_records(label)
        return LabelIndexes(
            label=name_of(label),
            property_keys=[list(r.get("properties") or []) for r in records],
        )

    async def index_exists(self, label: str, property_name: str) -> bool:
        """Check whether a single-property index exists for label+property."""
        return await self._index_name(label, property_name) is not None

    async def _constraint_name(self, label: str, property_name: str) -> str | None:
        property_name = name_of(property_name)
        for constraint in await self.get_constraints(label):
            if constraint["properties"] == [property_name]:
                return constraint["name"]
        return None

    async def _index_name(self, label: str, property_name: str) -> str | None:
        property_name = name_of(property_name)
        for record in await self._index_records(label):
            if list(record.get("properties") or []) == [property_name]:
                return record["name"]
        return None

    # =========================================================================
    # Schema DDL
    # =========================================================================

    async def create_unique_constraint(
        self, label: str, property_name: str, if_not_exists: bool = False
    ) -> None:
        """Create a uniqueness constraint on label+property."""
        guard = " IF NOT EXISTS" if if_not_exists else ""
        await self.execute_cypher(
            f"CREATE CONSTRAINT{guard} FOR (n:{quote(label)}) "
            f"REQUIRE n.{quote(property_name)} IS UNIQUE"
        )
        logger.info("Constraint created", label=name_of(label), property=name_of(property_name))

    async def drop_unique_constraint(self, label: str, property_name: str) -> bool:
        """
        Drop the uniqueness constraint on label+property.

        Returns:
            False when no such constraint exists
        """
        name = await self._constraint_name(label, property_name)
        if name is None:
            return False
        await self.execute_cypher(f"DROP CONSTRAINT {quote(name)}")
        logger.info("Constraint dropped", label=name_of(label), property=name_of(property_name))
        return True

    async def create_index(
        self, label: str, property_name: str, if_not_exists: bool = False
    ) -> None:
        """Create a property index on label+property."""
        guard = " IF NOT EXISTS" if if_not_exists else ""
        await self.execute_cypher(
            f"CREATE INDEX{guard} FOR (n:{quote(label)}) ON (n.{quote(property_name)})"
        )
        logger.info("Index created", label=name_of(label), property=name_of(property_name))

    async def drop_index(self, label: str, property_name: str) -> bool:
        """
        Drop the property index on label+property.

        Returns:
            False when no such index exists
        """
        name = await self._index_name(label, property_name)
        if name is None:
            return False
        await self.execute_cypher(f"DROP INDEX {quote(name)}")
        logger.info("Index dropped", label=name_of(label), property=name_of(property_name))
        return True


# Singleton instance
_client: GraphStoreClient | None = None


def get_graph_client() -> GraphStoreClient:
    """Get the singleton GraphStoreClient instance."""
    global _client
    if _client is None:
        _client = GraphStoreClient()
    return _client

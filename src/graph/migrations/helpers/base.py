"""
Shared state and output methods of the migration helpers.
"""

import inspect
import time
from collections.abc import Callable
from typing import Any

import structlog

from src.config.settings import MigrationSettings, get_settings
from src.graph.neo4j_client import GraphStoreClient, get_graph_client
from src.graph.schema import SchemaRegistry, get_schema_registry

logger = structlog.get_logger(__name__)

OutputSink = Callable[[str], None]


class HelpersBase:
    """
    Base of the migration helper mixins.

    Holds the graph client, the output sink and the schema registry.
    Nothing read from the store is kept between calls.
    """

    def __init__(
        self,
        client: GraphStoreClient | None = None,
        output: OutputSink | None = None,
        registry: SchemaRegistry | None = None,
        settings: MigrationSettings | None = None,
    ) -> None:
        self._client = client
        self._output = output
        self._registry = registry
        self._migration_settings = settings

    def bind(
        self,
        client: GraphStoreClient,
        output: OutputSink | None = None,
        registry: SchemaRegistry | None = None,
    ) -> "HelpersBase":
        """Attach the helpers to a client (and optionally a sink and registry)."""
        self._client = client
        if output is not None:
            self._output = output
        if registry is not None:
            self._registry = registry
        return self

    @property
    def client(self) -> GraphStoreClient:
        if self._client is None:
            self._client = get_graph_client()
        return self._client

    @property
    def registry(self) -> SchemaRegistry:
        if self._registry is None:
            self._registry = get_schema_registry()
        return self._registry

    @property
    def migration_settings(self) -> MigrationSettings:
        if self._migration_settings is None:
            self._migration_settings = get_settings().migration
        return self._migration_settings

    # =========================================================================
    # Output
    # =========================================================================

    def output(self, text: str) -> None:
        """Write one line to the output sink."""
        if self._output is None:
            print(text)
        else:
            self._output(text)

    def say(self, text: str, subitem: bool = False) -> None:
        """Output ``-- text``, or ``   -> text`` for a sub item."""
        self.output(f"   -> {text}" if subitem else f"-- {text}")

    async def say_with_time(self, text: str, block: Callable[[], Any]) -> Any:
        """
        Announce a step, run it and report how long it took.

        Args:
            text: Step description
            block: Callable (sync or async) doing the work; an int result is
                reported as a row count

        Returns:
            Whatever the block returned
        """
        self.say(text)
        start = time.perf_counter()
        result = block()
        if inspect.isawaitable(result):
            result = await result
        elapsed = time.perf_counter() - start
        self.say(f"{elapsed:.4f}s", subitem=True)
        if isinstance(result, int) and not isinstance(result, bool):
            self.say(f"{result} rows", subitem=True)
        return result

    # =========================================================================
    # Raw Cypher
    # =========================================================================

    async def execute(
        self,
        statement: str,
        params: dict[str, Any] | None = None,
        **kwparams: Any,
    ) -> list[dict[str, Any]]:
        """
        Run a Cypher statement with bound parameters.

        Store errors propagate unchanged.
        """
        parameters = {**(params or {}), **kwparams}
        logger.debug("Executing statement", statement=statement[:100], params=list(parameters))
        return await self.client.execute_cypher(statement, parameters)

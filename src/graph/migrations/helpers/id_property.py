"""
Id property population.

Fills the id property of nodes created outside the model layer, in batches
sized by ``MigrationSettings.max_per_batch``.
"""

import time
import uuid
from typing import Any

import structlog
from neo4j.exceptions import TransientError

from src.graph.cypher import name_of, quote
from src.graph.migrations.helpers.base import HelpersBase
from src.graph.schema import IdGenerationMode, IdPropertyPolicy

logger = structlog.get_logger(__name__)


class IdPropertyHelpers(HelpersBase):
    """Helpers assigning id property values to existing nodes."""

    async def populate_id_property(self, label: Any) -> int:
        """
        Give every node of a label lacking its id property a new id.

        The id property and generation mode come from the label's registered
        IdPropertyPolicy. A transient store error shrinks the batch and the
        batch is retried.

        Args:
            label: Node label

        Returns:
            Number of nodes populated

        Raises:
            MissingIdPolicyError: No policy is registered for the label
        """
        label = name_of(label)
        policy = self.registry.id_policy(label)
        property_name = policy.property_name
        settings = self.migration_settings

        max_per_batch = settings.max_per_batch
        last_time_taken: float | None = None
        last_batch_size = 0
        populated = 0

        while True:
            nodes_left = await self._idless_count(label, property_name)
            if nodes_left == 0:
                break

            self._print_status(last_time_taken, last_batch_size, nodes_left)
            count = min(nodes_left, max_per_batch)
            new_ids = [self._new_id(policy) for _ in range(count)]

            start = time.perf_counter()
            try:
                updated = await self._id_batch_set(label, property_name, new_ids)
            except TransientError:
                new_max_per_batch = round(max_per_batch * settings.batch_shrink_factor)
                if new_max_per_batch < 1:
                    raise
                self.output(f"Error querying {max_per_batch} nodes.  Trying {new_max_per_batch}")
                logger.warning(
                    "Id batch failed, shrinking batch",
                    label=label,
                    batch_size=max_per_batch,
                    new_batch_size=new_max_per_batch,
                )
                max_per_batch = new_max_per_batch
                last_time_taken = None
                continue

            if updated == 0:
                logger.warning("Id batch updated no nodes", label=label, nodes_left=nodes_left)
                break

            last_time_taken = time.perf_counter() - start
            last_batch_size = updated
            populated += updated

        logger.info("Id property populated", label=label, property=property_name, count=populated)
        return populated

    def _new_id(self, policy: IdPropertyPolicy) -> Any:
        if policy.generation_mode == IdGenerationMode.UUID:
            return str(uuid.uuid4())
        return policy.generator()

    def _print_status(
        self, last_time_taken: float | None, last_batch_size: int, nodes_left: int
    ) -> None:
        if last_time_taken is None or last_batch_size == 0:
            self.output("Running first batch...")
            return
        time_per_node = last_time_taken / last_batch_size
        eta_seconds = round(nodes_left * time_per_node)
        self.output(
            f"{nodes_left} nodes left.  Last batch: {round(time_per_node * 1000.0, 1)}ms / node "
            f"(ETA: {eta_seconds // 60} minutes)"
        )

    async def _idless_count(self, label: str, property_name: str) -> int:
        records = await self.client.execute_cypher(
            f"MATCH (n:{quote(label)}) WHERE n.{quote(property_name)} IS NULL "
            "RETURN count(n) AS count"
        )
        return records[0]["count"] if records else 0

    async def _id_batch_set(self, label: str, property_name: str, new_ids: list[Any]) -> int:
        records = await self.client.execute_cypher(
            f"""
            MATCH (n:{quote(label)}) WHERE n.{quote(property_name)} IS NULL
            WITH n LIMIT $count
            WITH collect(n) AS nodes
            UNWIND range(0, size(nodes) - 1) AS i
            WITH nodes[i] AS node, $ids[i] AS new_id
            SET node.{quote(property_name)} = new_id
            RETURN count(node) AS updated
            """,
            {"count": len(new_ids), "ids": new_ids},
        )
        return records[0]["updated"] if records else 0

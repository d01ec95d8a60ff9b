"""
Relationship type helpers.
"""

from typing import Any

import structlog

from src.graph.cypher import label_expression, name_of, quote
from src.graph.migrations.helpers.base import HelpersBase

logger = structlog.get_logger(__name__)


class RelationshipHelpers(HelpersBase):
    """Helpers rewriting relationships."""

    async def relabel_relation(
        self,
        old_type: Any,
        new_type: Any,
        from_label: Any = None,
        to_label: Any = None,
    ) -> int:
        """
        Change the type of relationships, batch by batch.

        Relationship types are immutable in Neo4j, so each relationship is
        recreated between the same endpoints with the same direction and
        properties, then the old one is deleted.

        Args:
            old_type: Current relationship type
            new_type: Type to change to
            from_label: Only relationships starting at nodes with this label
            to_label: Only relationships ending at nodes with this label

        Returns:
            Number of relationships relabelled
        """
        if name_of(old_type) == name_of(new_type):
            raise ValueError("Old and new relationship types must differ")

        source = f"(a{label_expression(from_label)})" if from_label is not None else "(a)"
        target = f"(b{label_expression(to_label)})" if to_label is not None else "(b)"
        query = f"""
        MATCH {source}-[r:{quote(old_type)}]->{target}
        WITH a, r, b LIMIT $batch_size
        CREATE (a)-[r2:{quote(new_type)}]->(b)
        SET r2 = properties(r)
        DELETE r
        RETURN count(r2) AS updated
        """
        batch_size = self.migration_settings.max_per_batch
        total = 0

        while True:
            records = await self.client.execute_cypher(query, {"batch_size": batch_size})
            updated = records[0]["updated"] if records else 0
            if updated == 0:
                break
            total += updated
            logger.debug("Relationship batch relabelled", updated=updated, total=total)

        logger.info(
            "Relationships relabelled",
            old=name_of(old_type),
            new=name_of(new_type),
            count=total,
        )
        return total

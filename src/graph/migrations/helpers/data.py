"""
Property, label and node helpers.

Each helper is one statement over every node carrying a label and returns
the matching write counter so it can be reported through ``say_with_time``.
"""

from collections.abc import Iterable
from typing import Any

import structlog

from src.graph.cypher import label_expression, name_of, quote
from src.graph.errors import DuplicateTargetError
from src.graph.migrations.helpers.base import HelpersBase

logger = structlog.get_logger(__name__)


class DataHelpers(HelpersBase):
    """Helpers rewriting properties and labels of existing nodes."""

    async def remove_property(self, label: Any, property_name: Any) -> int:
        """Remove a property from every node of a label."""
        stats = await self.client.execute_write(
            f"MATCH (n:{quote(label)}) REMOVE n.{quote(property_name)}"
        )
        logger.info("Property removed", label=name_of(label), property=name_of(property_name))
        return stats["properties_set"]

    async def rename_property(self, label: Any, old_property: Any, new_property: Any) -> int:
        """
        Move a property value to a new key on every node of a label.

        Raises:
            DuplicateTargetError: Some node already has ``new_property``
        """
        if await self._property_exists(label, new_property):
            raise DuplicateTargetError(name_of(label), name_of(new_property))

        stats = await self.client.execute_write(
            f"MATCH (n:{quote(label)}) "
            f"SET n.{quote(new_property)} = n.{quote(old_property)} "
            f"REMOVE n.{quote(old_property)}"
        )
        logger.info(
            "Property renamed",
            label=name_of(label),
            old=name_of(old_property),
            new=name_of(new_property),
        )
        return stats["properties_set"]

    async def _property_exists(self, label: Any, property_name: Any) -> bool:
        records = await self.client.execute_cypher(
            f"MATCH (n:{quote(label)}) WHERE n.{quote(property_name)} IS NOT NULL "
            "RETURN 1 AS found LIMIT 1"
        )
        return bool(records)

    async def drop_nodes(self, label: Any) -> int:
        """Delete every node of a label together with its relationships."""
        stats = await self.client.execute_write(f"MATCH (n:{quote(label)}) DETACH DELETE n")
        logger.info("Nodes dropped", label=name_of(label), count=stats["nodes_deleted"])
        return stats["nodes_deleted"]

    async def add_labels(self, label: Any, new_labels: Iterable[Any]) -> int:
        """Add labels to every node already carrying ``label``."""
        new_labels = list(new_labels)
        if not new_labels:
            return 0
        stats = await self.client.execute_write(
            f"MATCH (n:{quote(label)}) SET n{label_expression(new_labels)}"
        )
        logger.info(
            "Labels added", label=name_of(label), labels=[name_of(x) for x in new_labels]
        )
        return stats["labels_added"]

    async def add_label(self, label: Any, new_label: Any) -> int:
        return await self.add_labels(label, [new_label])

    async def remove_labels(self, label: Any, labels: Iterable[Any]) -> int:
        """Remove labels from every node carrying ``label``."""
        labels = list(labels)
        if not labels:
            return 0
        stats = await self.client.execute_write(
            f"MATCH (n:{quote(label)}) REMOVE n{label_expression(labels)}"
        )
        logger.info("Labels removed", label=name_of(label), labels=[name_of(x) for x in labels])
        return stats["labels_removed"]

    async def remove_label(self, label: Any, target: Any) -> int:
        return await self.remove_labels(label, [target])

    async def rename_label(self, old_label: Any, new_label: Any) -> int:
        """Replace ``old_label`` by ``new_label`` on every node carrying it."""
        if name_of(old_label) == name_of(new_label):
            return 0
        stats = await self.client.execute_write(
            f"MATCH (n:{quote(old_label)}) SET n:{quote(new_label)} REMOVE n:{quote(old_label)}"
        )
        logger.info("Label renamed", old=name_of(old_label), new=name_of(new_label))
        return stats["labels_added"]

"""
Constraint and index helpers.

Adds and drops check the store metadata first so duplicate or missing
schema elements raise a typed error instead of a driver error.
"""

from typing import Any

import structlog

from src.graph.cypher import name_of
from src.graph.errors import (
    DuplicateConstraintError,
    DuplicateIndexError,
    NoSuchConstraintError,
    NoSuchIndexError,
)
from src.graph.migrations.helpers.base import HelpersBase
from src.graph.schema import NodeSchema

logger = structlog.get_logger(__name__)


class SchemaHelpers(HelpersBase):
    """Helpers managing uniqueness constraints and property indexes."""

    async def add_constraint(self, label: Any, property_name: Any, force: bool = False) -> None:
        """
        Add a uniqueness constraint.

        Args:
            label: Node label
            property_name: Constrained property
            force: Skip the duplicate check and create only if missing

        Raises:
            DuplicateConstraintError: The constraint already exists
        """
        label, property_name = name_of(label), name_of(property_name)
        if not force and await self.client.constraint_exists(label, property_name):
            raise DuplicateConstraintError(label, property_name)
        await self.client.create_unique_constraint(label, property_name, if_not_exists=force)

    async def drop_constraint(self, label: Any, property_name: Any) -> None:
        """
        Drop a uniqueness constraint.

        Raises:
            NoSuchConstraintError: No such constraint exists
        """
        label, property_name = name_of(label), name_of(property_name)
        if not await self.client.drop_unique_constraint(label, property_name):
            raise NoSuchConstraintError(label, property_name)

    async def add_index(self, label: Any, property_name: Any, force: bool = False) -> None:
        """
        Add a property index.

        Raises:
            DuplicateIndexError: The index already exists
        """
        label, property_name = name_of(label), name_of(property_name)
        if not force and await self.client.index_exists(label, property_name):
            raise DuplicateIndexError(label, property_name)
        await self.client.create_index(label, property_name, if_not_exists=force)

    async def drop_index(self, label: Any, property_name: Any) -> None:
        """
        Drop a property index.

        Raises:
            NoSuchIndexError: No such index exists
        """
        label, property_name = name_of(label), name_of(property_name)
        if not await self.client.drop_index(label, property_name):
            raise NoSuchIndexError(label, property_name)

    async def ensure_node_schema(self, schema: NodeSchema) -> list[str]:
        """
        Create the constraints and indexes a node schema declares.

        The id property always gets a uniqueness constraint. Elements that
        already exist are left alone.

        Returns:
            Descriptions of the elements created
        """
        created: list[str] = []
        label = name_of(schema.label)
        constrained = schema.constrained_properties()

        for property_name in constrained:
            if not await self.client.constraint_exists(label, property_name):
                await self.client.create_unique_constraint(label, property_name)
                created.append(f"constraint {label}#{property_name}")

        for property_name in schema.indexed_properties():
            # A uniqueness constraint already maintains an index
            if property_name in constrained:
                continue
            if not await self.client.index_exists(label, property_name):
                await self.client.create_index(label, property_name)
                created.append(f"index {label}#{property_name}")

        logger.info("Node schema ensured", label=label, created=created)
        return created

"""
Graph Schema Models.

Declares per-label property definitions and id property policies used by the
migration helpers, plus the registry they are looked up from.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.graph.cypher import name_of
from src.graph.errors import MissingIdPolicyError


class IndexKind(str, Enum):
    """Kinds of property index a node schema can declare."""

    EXACT = "exact"


class ConstraintKind(str, Enum):
    """Kinds of property constraint a node schema can declare."""

    UNIQUE = "unique"


class IdGenerationMode(str, Enum):
    """How values of a label's id property are generated."""

    UUID = "uuid"      # uuid4 generated by the helpers
    CUSTOM = "custom"  # registered generator called once per node


class PropertyDefinition(BaseModel):
    """A declared property of a node label."""

    name: str = Field(..., description="Property name")
    index: IndexKind | None = Field(default=None, description="Declared index kind")
    constraint: ConstraintKind | None = Field(default=None, description="Declared constraint kind")


class IdPropertyPolicy(BaseModel):
    """Which property identifies nodes of a label and how it is generated."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    property_name: str = Field(default="uuid", description="Id property name")
    generation_mode: IdGenerationMode = Field(default=IdGenerationMode.UUID)
    generator: Callable[[], Any] | None = Field(
        default=None, description="Generator for custom ids, called once per node"
    )

    @model_validator(mode="after")
    def _check_generator(self) -> "IdPropertyPolicy":
        if self.generation_mode == IdGenerationMode.CUSTOM and self.generator is None:
            raise ValueError("Custom id generation requires a generator")
        return self


class NodeSchema(BaseModel):
    """Static schema declaration for one node label."""

    label: str = Field(..., description="Node label")
    properties: list[PropertyDefinition] = Field(default_factory=list)
    id_property: IdPropertyPolicy = Field(default_factory=IdPropertyPolicy)

    def constrained_properties(self) -> list[str]:
        names = [p.name for p in self.properties if p.constraint == ConstraintKind.UNIQUE]
        if self.id_property.property_name not in names:
            names.insert(0, self.id_property.property_name)
        return names

    def indexed_properties(self) -> list[str]:
        return [p.name for p in self.properties if p.index is not None]


class LabelIndexes(BaseModel):
    """Explicit property indexes defined for a label."""

    label: str
    property_keys: list[list[str]] = Field(default_factory=list)


class SchemaRegistry:
    """
    Registry of node schemas keyed by label.

    Usage:
        ```python
        registry = SchemaRegistry()
        registry.register(NodeSchema(
            label="Dog",
            id_property=IdPropertyPolicy(
                property_name="my_id",
                generation_mode=IdGenerationMode.CUSTOM,
                generator=lambda: f"id-{random.random()}",
            ),
        ))
        ```
    """

    def __init__(self) -> None:
        self._schemas: dict[str, NodeSchema] = {}

    def register(self, schema: NodeSchema) -> NodeSchema:
        self._schemas[name_of(schema.label)] = schema
        return schema

    def get(self, label: str) -> NodeSchema | None:
        return self._schemas.get(name_of(label))

    def id_policy(self, label: str) -> IdPropertyPolicy:
        """Return the id property policy of a label or raise MissingIdPolicyError."""
        schema = self.get(label)
        if schema is None:
            raise MissingIdPolicyError(name_of(label))
        return schema.id_property

    def labels(self) -> list[str]:
        return sorted(self._schemas)

    def clear(self) -> None:
        self._schemas.clear()


# Default registry shared by migrations
_registry: SchemaRegistry | None = None


def get_schema_registry() -> SchemaRegistry:
    """Get the singleton SchemaRegistry instance."""
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
    return _registry

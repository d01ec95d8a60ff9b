"""
Schema Migration Helpers.

Translate migration intents into Cypher against the graph store:
- Property, label and node rewrites
- Uniqueness constraints and indexes with duplicate/missing checks
- Id property population
- Relationship relabelling
- Progress output (``say`` / ``say_with_time``)

Usage:
    ```python
    helpers = MigrationHelpers(client)

    await helpers.add_constraint("Book", "code")
    await helpers.say_with_time(
        "Renaming Book.name",
        lambda: helpers.rename_property("Book", "name", "title"),
    )
    ```
"""

from src.graph.migrations.helpers.base import HelpersBase, OutputSink
from src.graph.migrations.helpers.data import DataHelpers
from src.graph.migrations.helpers.id_property import IdPropertyHelpers
from src.graph.migrations.helpers.relationships import RelationshipHelpers
from src.graph.migrations.helpers.schema import SchemaHelpers


class MigrationHelpers(DataHelpers, SchemaHelpers, IdPropertyHelpers, RelationshipHelpers):
    """All migration helpers over one graph client."""


__all__ = [
    "MigrationHelpers",
    "HelpersBase",
    "OutputSink",
    "DataHelpers",
    "SchemaHelpers",
    "IdPropertyHelpers",
    "RelationshipHelpers",
]

"""
Neo4j Schema Migration System.

Provides database migration capabilities:
- Helpers for constraints, indexes, labels, properties and id population
- Version-tracked schema changes
- Up/down migrations
- Migration history tracking
- Dry-run mode

Usage:
    ```python
    from src.graph.migrations import MigrationManager

    manager = MigrationManager()
    manager.register(Migration005RenameBookName())

    # Apply all pending migrations
    await manager.migrate()

    # Rollback last migration
    await manager.rollback()

    # Check migration status
    status = await manager.get_status()
    ```
"""

from src.graph.migrations.base_migration import BaseMigration
from src.graph.migrations.helpers import MigrationHelpers
from src.graph.migrations.migration_manager import (
    MigrationManager,
    MigrationResult,
    MigrationStatus,
)

__all__ = [
    "MigrationManager",
    "MigrationResult",
    "MigrationStatus",
    "BaseMigration",
    "MigrationHelpers",
]

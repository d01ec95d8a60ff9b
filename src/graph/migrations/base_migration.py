"""
Base Migration Class.

Defines the interface for database migrations. Migrations get every
migration helper as a method.
"""

from abc import ABC, abstractmethod

import structlog

from src.graph.migrations.helpers import MigrationHelpers

logger = structlog.get_logger(__name__)


class BaseMigration(MigrationHelpers, ABC):
    """
    Abstract base class for database migrations.

    Each migration should:
    1. Have a unique version identifier
    2. Implement up() for applying changes
    3. Implement down() for reverting changes
    4. Be idempotent where possible

    Example:
        ```python
        class Migration005RenameBookName(BaseMigration):
            version = "005"
            description = "Rename Book.name to Book.title"

            async def up(self) -> None:
                await self.drop_constraint("Book", "name")
                await self.say_with_time(
                    "Renaming Book.name",
                    lambda: self.rename_property("Book", "name", "title"),
                )
                await self.add_constraint("Book", "title")

            async def down(self) -> None:
                await self.drop_constraint("Book", "title")
                await self.rename_property("Book", "title", "name")
                await self.add_constraint("Book", "name")
        ```
    """

    # Migration metadata - override in subclass
    version: str = "000"
    description: str = "Base migration"
    dependencies: list[str] = []  # List of version IDs this depends on

    @abstractmethod
    async def up(self) -> None:
        """Apply the migration."""
        pass

    @abstractmethod
    async def down(self) -> None:
        """Revert the migration."""
        pass

    async def validate(self) -> bool:
        """
        Validate migration can be applied.

        Override for custom validation logic.

        Returns:
            True if migration can be applied
        """
        return True

    def __repr__(self) -> str:
        return f"Migration({self.version}: {self.description})"

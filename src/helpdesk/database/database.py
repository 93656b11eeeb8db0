"""
Database initialization and lifecycle for SQLite.

The Database class opens the shared connection, creates the schema and closes
the connection at shutdown. Repositories receive the connection through the
ConnectionManager rather than opening their own.

Lifecycle:
    1. ``await database.initialize()`` at program startup
    2. Services use ``database.connection_manager`` (or ``db_connection``)
    3. ``await database.shutdown()`` at program end
"""

from __future__ import annotations

from pathlib import Path

from helpdesk.database.db_connection import ConnectionManager, db_connection
from helpdesk.database.db_schema import SchemaManager
from helpdesk.util.logger import get_logger

logger = get_logger("database")

# Database file path
DB_PATH = Path("./data/helpdesk.db").resolve()


class Database:
    """Coordinates connection setup and schema creation."""

    def __init__(self, db_path: Path = DB_PATH, connection_manager: ConnectionManager = db_connection):
        self.db_path = db_path
        self.connection_manager = connection_manager
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connection_manager.open(self.db_path)
            async with self.connection_manager.transaction() as conn:
                await SchemaManager.initialize_schema(conn)
        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            return False

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)
        return True

    async def shutdown(self) -> None:
        """Close the shared connection."""
        if not self._initialized:
            return

        await self.connection_manager.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")


# Global Database instance
database = Database()

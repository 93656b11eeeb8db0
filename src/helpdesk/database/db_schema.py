"""
Database schema initialization.

Creates the tables, indexes and schema version row used by Helpdesk.
"""

import aiosqlite

from helpdesk.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates and versions the Helpdesk schema."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # Categories keep insertion order through the implicit rowid
        await db.execute("""
            CREATE TABLE IF NOT EXISTS question_categories (
                id TEXT PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS questions (
                id TEXT PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                category_id TEXT NOT NULL,
                author_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                tags BLOB NOT NULL,
                thread_id INTEGER NOT NULL UNIQUE,
                created_at TEXT NOT NULL,
                is_closed INTEGER NOT NULL DEFAULT 0,
                close_reason TEXT,
                closer_id INTEGER,
                closed_at TEXT,
                CHECK (
                    (is_closed = 0 AND close_reason IS NULL AND closer_id IS NULL AND closed_at IS NULL)
                    OR
                    (is_closed = 1 AND close_reason IS NOT NULL AND closer_id IS NOT NULL AND closed_at IS NOT NULL)
                )
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS cached_messages (
                guild_id INTEGER NOT NULL,
                key TEXT NOT NULL,
                channel_id INTEGER NOT NULL,
                message_id INTEGER NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (guild_id, key)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_question_categories_name "
            "ON question_categories(guild_id, name COLLATE NOCASE)"
        )
        await db.execute("CREATE INDEX IF NOT EXISTS idx_questions_open ON questions(guild_id, is_closed)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_questions_category ON questions(category_id, is_closed)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

"""Schema versioning and migrations for the tagstore database."""

from __future__ import annotations

import logging

from tagstore.core.database import DatabaseConnection
from tagstore.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2

MIGRATIONS: dict[int, str | list[str]] = {
    1: """
    -- Schema version tracking
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER NOT NULL,
        applied_at TEXT NOT NULL DEFAULT (datetime('now'))
    );

    -- Tag-article relations (one row per tag on an article)
    CREATE TABLE IF NOT EXISTS tag_article (
        id TEXT PRIMARY KEY,
        tag_id TEXT NOT NULL,
        article_id TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    );
    CREATE INDEX IF NOT EXISTS idx_tag_article_tag ON tag_article(tag_id);
    CREATE INDEX IF NOT EXISTS idx_tag_article_article ON tag_article(article_id);

    INSERT INTO schema_version (version) VALUES (1);
    """,
    2: [
        # An article carries a given tag at most once
        """CREATE UNIQUE INDEX IF NOT EXISTS idx_tag_article_pair
           ON tag_article(tag_id, article_id)""",
        "INSERT INTO schema_version (version) VALUES (2)",
    ],
}


def get_schema_version(db: DatabaseConnection) -> int:
    """Get the current schema version, or 0 if the table doesn't exist."""
    try:
        row = db.fetchone("SELECT MAX(version) as v FROM schema_version")
    except RepositoryError:
        return 0
    return row["v"] if row and row["v"] else 0


def run_migrations(db: DatabaseConnection) -> int:
    """Run all pending migrations and return the final schema version."""
    current = get_schema_version(db)

    for version in sorted(MIGRATIONS.keys()):
        if version > current:
            try:
                migration = MIGRATIONS[version]
                if isinstance(migration, list):
                    for stmt in migration:
                        db.execute(stmt)
                    db.commit()
                else:
                    db.conn.executescript(migration)
                    db.commit()
                current = version
            except Exception as e:
                raise RepositoryError(f"Migration to v{version} failed: {e}") from e
            logger.info("Migrated schema to v%d", version)

    return current


def initialize_database(db: DatabaseConnection) -> int:
    """Set up the database schema from scratch or run pending migrations."""
    return run_migrations(db)

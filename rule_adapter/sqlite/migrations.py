"""
Migration logic for SQLite rule storage.

Storage owns these migrations - the policy adapter doesn't know about them.
Versions are tracked per rule table so several tables can share one file.
"""
import logging
import sqlite3
from collections.abc import Callable
from datetime import UTC, datetime

from ..exceptions import MigrationError
from ..schemas import FIELD_COLUMNS

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "ptype", *FIELD_COLUMNS)
TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def run_migrations(conn: sqlite3.Connection, table: str) -> None:
    """Run all migrations for `table`, then check the table's columns"""
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                scope TEXT NOT NULL,
                version INTEGER NOT NULL,
                applied_at TEXT NOT NULL,
                PRIMARY KEY (scope, version)
            )
        """
        )

        row = conn.execute(
            "SELECT MAX(version) FROM schema_migrations WHERE scope = ?", (table,)
        ).fetchone()
    except sqlite3.Error as e:
        raise MigrationError(f"Failed to read migration state for {table}: {e}") from e
    current_version = row[0] if row[0] else 0

    migrations: list[tuple[int, Callable[[sqlite3.Connection, str], None]]] = [
        (1, create_rule_table),
        (2, create_rule_indexes),
    ]

    for version, migration_func in migrations:
        if version > current_version:
            try:
                migration_func(conn, table)
                conn.execute(
                    "INSERT INTO schema_migrations (scope, version, applied_at) VALUES (?, ?, ?)",
                    (table, version, datetime.now(UTC).isoformat()),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise MigrationError(
                    f"Migration v{version} ({migration_func.__name__}) failed: {e}"
                ) from e
            logger.info(f"Applied migration v{version} on {table}: {migration_func.__name__}")

    ensure_rule_columns(conn, table)


def ensure_rule_columns(conn: sqlite3.Connection, table: str) -> None:
    """
    Check `table` has the rule columns.

    A table created by another Casbin adapter lacks the timestamp columns;
    they are added as nullable columns. Missing id/ptype/v0..v5 is fatal.
    """
    try:
        existing = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
        missing = [column for column in REQUIRED_COLUMNS if column not in existing]
        if missing:
            raise MigrationError(
                f"Table {table} is missing rule columns: {', '.join(missing)}"
            )

        for column in TIMESTAMP_COLUMNS:
            if column not in existing:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} TEXT")
                logger.info(f"Added {column} column to existing table {table}")
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise MigrationError(f"Failed to check columns of {table}: {e}") from e


def create_rule_table(conn: sqlite3.Connection, table: str) -> None:
    """Migration 1: rule table"""
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            ptype TEXT NOT NULL,
            v0 TEXT,
            v1 TEXT,
            v2 TEXT,
            v3 TEXT,
            v4 TEXT,
            v5 TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """
    )


def create_rule_indexes(conn: sqlite3.Connection, table: str) -> None:
    """Migration 2: lookup indexes"""
    conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_ptype ON {table}(ptype)")
    conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_ptype_v0 ON {table}(ptype, v0)")

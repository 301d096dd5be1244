"""
SQLite rule storage implementation.

Handles schema translation and migrations internally.
"""
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, NoReturn

from ..base import BaseRuleStorage
from ..config import load_config, table_name
from ..exceptions import (
    ConfigError,
    MigrationError,
    QueryError,
)
from ..exceptions import (
    ConnectionError as PersistenceConnectionError,
)
from ..schemas import FIELD_COLUMNS, RULE_COLUMNS, CasbinRule, RuleQuery
from .migrations import run_migrations

logger = logging.getLogger(__name__)

INSERT_COLUMNS = ("ptype", *FIELD_COLUMNS, "created_at", "updated_at")

JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
SYNCHRONOUS_MODES = {"OFF", "NORMAL", "FULL", "EXTRA"}


class SQLiteRuleStorage(BaseRuleStorage):
    """SQLite implementation of rule storage"""

    def __init__(self, config_path: str):
        super().__init__(config_path)
        self.db_path: str | None = None
        self.table: str = "casbin_rule"
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Connect to SQLite and run migrations"""
        self.config = load_config(self.config_path)
        database = self.config["database"]
        self.table = table_name(self.config)

        journal_mode = str(database.get("journal_mode", "WAL")).upper()
        synchronous = str(database.get("synchronous", "NORMAL")).upper()
        if journal_mode not in JOURNAL_MODES:
            raise ConfigError(f"Unsupported journal_mode: {journal_mode}")
        if synchronous not in SYNCHRONOUS_MODES:
            raise ConfigError(f"Unsupported synchronous mode: {synchronous}")

        try:
            self.db_path = str(database["path"])
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            # Enforcers may reload policy from a worker thread
            self.conn = sqlite3.connect(
                self.db_path,
                timeout=float(database.get("timeout", 5.0)),
                check_same_thread=False,
            )
            self.conn.row_factory = sqlite3.Row

            self.conn.execute(f"PRAGMA journal_mode={journal_mode}")
            self.conn.execute(f"PRAGMA synchronous={synchronous}")
        except Exception as e:
            logger.error(f"Failed to connect to SQLite: {e}")
            raise PersistenceConnectionError(f"Failed to connect to SQLite: {e}") from e

        try:
            run_migrations(self.conn, self.table)
        except MigrationError:
            self.disconnect()
            raise

        logger.info(f"Connected to SQLite rule storage {self.db_path} (table {self.table})")

    def disconnect(self) -> None:
        """Close connection"""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info(f"Disconnected from SQLite rule storage {self.db_path}")

    def health_check(self) -> dict:
        """Check storage health"""
        if self.conn is None:
            return {"status": "unhealthy", "error": "not connected"}
        try:
            self.conn.execute("SELECT 1").fetchone()
            return {"status": "healthy", "database": self.db_path, "table": self.table}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

    # ============================================
    # WRITES
    # ============================================

    def insert(self, row: CasbinRule) -> int:
        """Insert one row - translate CasbinRule to SQL"""
        conn = self._connection()
        sql, params = self._insert_statement(row)
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return int(cursor.lastrowid)
        except Exception as e:
            self._fail(conn, "insert rule", e)

    def insert_many(self, rows: list[CasbinRule]) -> int:
        """Insert rows with a single executemany"""
        if not rows:
            return 0
        conn = self._connection()
        now = datetime.now(UTC).isoformat()
        sql = self._insert_sql()
        try:
            conn.executemany(sql, [self._insert_params(row, now) for row in rows])
            conn.commit()
            return len(rows)
        except Exception as e:
            self._fail(conn, "insert rules", e)

    def delete(self, query: RuleQuery) -> int:
        """Delete rows matching the query"""
        conn = self._connection()
        try:
            where_clause, params = self._compile(query)
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE {where_clause}", params)
            conn.commit()
            return cursor.rowcount
        except Exception as e:
            self._fail(conn, "delete rules", e)

    def delete_ids(self, ids: list[int]) -> int:
        """Delete rows by ID"""
        if not ids:
            return 0
        conn = self._connection()
        placeholders = ", ".join("?" for _ in ids)
        try:
            cursor = conn.execute(
                f"DELETE FROM {self.table} WHERE id IN ({placeholders})", list(ids)
            )
            conn.commit()
            return cursor.rowcount
        except Exception as e:
            self._fail(conn, "delete rules by id", e)

    def update(self, row_id: int, values: dict[str, str]) -> int:
        """Overwrite selected value columns and bump updated_at"""
        conn = self._connection()
        try:
            for column in values:
                if column not in FIELD_COLUMNS:
                    raise QueryError(f"Column '{column}' cannot be updated")
            assignments = [f"{column} = ?" for column in values]
            assignments.append("updated_at = ?")
            params: list[Any] = list(values.values())
            params.extend([datetime.now(UTC).isoformat(), row_id])

            cursor = conn.execute(
                f"UPDATE {self.table} SET {', '.join(assignments)} WHERE id = ?", params
            )
            conn.commit()
            return cursor.rowcount
        except Exception as e:
            self._fail(conn, "update rule", e)

    # ============================================
    # READS
    # ============================================

    def select(self, query: RuleQuery | None = None) -> list[CasbinRule]:
        """Query rows - translate SQL to CasbinRule"""
        conn = self._connection()
        try:
            where_clause, params = self._compile(query if query is not None else RuleQuery())
            rows = conn.execute(
                f"SELECT * FROM {self.table} WHERE {where_clause} ORDER BY id ASC", params
            ).fetchall()
            return [self._to_rule(row) for row in rows]
        except Exception as e:
            self._fail(conn, "select rules", e)

    def first(self, query: RuleQuery) -> CasbinRule | None:
        """Lowest-ID row matching the query"""
        conn = self._connection()
        try:
            where_clause, params = self._compile(query)
            row = conn.execute(
                f"SELECT * FROM {self.table} WHERE {where_clause} ORDER BY id ASC LIMIT 1",
                params,
            ).fetchone()
            return self._to_rule(row) if row else None
        except Exception as e:
            self._fail(conn, "get rule", e)

    def count(self, query: RuleQuery | None = None) -> int:
        """Number of rows matching the query"""
        conn = self._connection()
        try:
            where_clause, params = self._compile(query if query is not None else RuleQuery())
            row = conn.execute(
                f"SELECT COUNT(*) FROM {self.table} WHERE {where_clause}", params
            ).fetchone()
            return int(row[0])
        except Exception as e:
            self._fail(conn, "count rules", e)

    # ============================================
    # HELPERS
    # ============================================

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise QueryError("Storage not connected")
        return self.conn

    def _fail(self, conn: sqlite3.Connection, action: str, error: Exception) -> NoReturn:
        """Roll back and raise QueryError, chaining the driver error"""
        try:
            conn.rollback()
        except sqlite3.Error as rollback_error:
            logger.error(f"Rollback after failed {action} also failed: {rollback_error}")
        logger.error(f"Failed to {action}: {error}")
        if isinstance(error, QueryError):
            raise error
        raise QueryError(f"Failed to {action}: {error}") from error

    def _insert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in INSERT_COLUMNS)
        return f"INSERT INTO {self.table} ({', '.join(INSERT_COLUMNS)}) VALUES ({placeholders})"

    def _insert_params(self, row: CasbinRule, now: str) -> tuple:
        return (*row.column_values().values(), now, now)

    def _insert_statement(self, row: CasbinRule) -> tuple[str, tuple]:
        return self._insert_sql(), self._insert_params(row, datetime.now(UTC).isoformat())

    def _compile(self, query: RuleQuery) -> tuple[str, list[Any]]:
        """Translate a RuleQuery into a WHERE clause and its parameters"""
        conditions: list[str] = []
        params: list[Any] = []

        for column, value in query.equals:
            if column not in RULE_COLUMNS:
                raise QueryError(f"Unknown rule column '{column}'")
            if value is None:
                conditions.append(f"{column} IS NULL")
            else:
                conditions.append(f"{column} = ?")
                params.append(value)

        for clause, clause_params in query.raw:
            conditions.append(f"({clause})")
            params.extend(clause_params)

        for predicate in query.predicates:
            group = RuleQuery()
            predicate(group)
            if group.is_empty():
                continue
            group_clause, group_params = self._compile(group)
            conditions.append(f"({group_clause})")
            params.extend(group_params)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        return where_clause, params

    def _to_rule(self, row: sqlite3.Row) -> CasbinRule:
        return CasbinRule(
            id=row["id"],
            ptype=row["ptype"],
            v0=row["v0"],
            v1=row["v1"],
            v2=row["v2"],
            v3=row["v3"],
            v4=row["v4"],
            v5=row["v5"],
            created_at=datetime.fromisoformat(row["created_at"])
            if row["created_at"]
            else None,
            updated_at=datetime.fromisoformat(row["updated_at"])
            if row["updated_at"]
            else None,
        )

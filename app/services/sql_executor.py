"""
SQL executor for the dataset database.

Runs generated SQL on a read-only SQLite connection and serializes the
result for the SQL result cache and the summary prompt.

Sandi Metz Principles:
- Single Responsibility: Query execution
- Small methods: Validation, execution and serialization isolated
- Dependency Injection: Dataset path injected
"""

import json
import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import aiosqlite

from app.config import config
from app.exceptions import SqlExecutionError
from app.utils.hasher import normalize_sql
from app.utils.logger import get_logger

logger = get_logger(__name__)

_ALLOWED_KEYWORDS = ("select", "with")
_LEADING_COMMENTS = re.compile(r"^(\s*(--[^\n]*(\n|$)|/\*.*?\*/))*\s*", re.DOTALL)


@dataclass
class SqlExecutionResult:
    """Serialized result of one statement."""

    payload: str
    row_count: int


class SqliteSqlExecutor:
    """
    Read-only executor over a SQLite dataset.

    Only a single SELECT or WITH statement is accepted.
    """

    def __init__(self, dataset_path: Optional[str] = None, max_rows: Optional[int] = None):
        """
        Initialize executor.

        Args:
            dataset_path: Dataset SQLite file (defaults to config)
            max_rows: Rows returned per statement (defaults to config)
        """
        self._dataset_path = dataset_path or config.dataset_db_path
        self._max_rows = max_rows or config.max_result_rows

    async def execute(self, sql: str) -> SqlExecutionResult:
        """
        Execute a read-only statement.

        Args:
            sql: SQL text

        Returns:
            JSON payload {"columns": [...], "rows": [[...], ...]} and row count

        Raises:
            SqlExecutionError: If the statement is not allowed or fails
        """
        statement = self._validate(sql)

        try:
            async with self._connect() as db:
                async with db.execute(statement) as cursor:
                    columns = [column[0] for column in cursor.description or []]
                    rows = await cursor.fetchmany(self._max_rows)
        except sqlite3.Error as e:
            logger.warning("SQL execution failed", error=str(e), sql=statement[:200])
            raise SqlExecutionError(f"SQL execution failed: {e}") from e

        payload = self._serialize(columns, [list(row) for row in rows])
        logger.info("SQL executed", rows=len(rows), columns=len(columns))
        return SqlExecutionResult(payload=payload, row_count=len(rows))

    async def describe_schema(self) -> str:
        """
        Get CREATE statements of the dataset tables.

        Returns:
            Statements separated by blank lines

        Raises:
            SqlExecutionError: If the dataset cannot be read
        """
        try:
            async with self._connect() as db:
                async with db.execute(
                    """
                    SELECT sql FROM sqlite_master
                    WHERE type = 'table' AND sql IS NOT NULL
                      AND name NOT LIKE 'sqlite_%'
                    ORDER BY name
                    """
                ) as cursor:
                    rows = await cursor.fetchall()
        except sqlite3.Error as e:
            logger.error("Failed to read dataset schema", error=str(e))
            raise SqlExecutionError(f"Failed to read dataset schema: {e}") from e

        return "\n\n".join(row[0].strip() + ";" for row in rows)

    def _connect(self) -> aiosqlite.Connection:
        """
        Open a read-only connection.

        Returns:
            Connection usable as an async context manager
        """
        uri = Path(self._dataset_path).resolve().as_uri() + "?mode=ro"
        return aiosqlite.connect(uri, uri=True)

    @staticmethod
    def _validate(sql: str) -> str:
        """
        Check that sql is one read-only statement.

        Args:
            sql: SQL text

        Returns:
            Statement without trailing semicolons

        Raises:
            SqlExecutionError: If the statement is not allowed
        """
        statement = sql.strip().rstrip(";").strip()
        if not statement:
            raise SqlExecutionError("Empty SQL statement")

        body = _LEADING_COMMENTS.sub("", statement, count=1)
        first_word = body.split(None, 1)[0].lower() if body else ""
        if first_word not in _ALLOWED_KEYWORDS:
            raise SqlExecutionError("Only SELECT statements are allowed")

        if ";" in _strip_literals(normalize_sql(statement)):
            raise SqlExecutionError("Only a single statement is allowed")

        return statement

    @staticmethod
    def _serialize(columns: List[str], rows: List[List[Any]]) -> str:
        """Serialize columns and rows as JSON."""
        return json.dumps(
            {"columns": columns, "rows": rows}, ensure_ascii=False, default=str
        )


def _strip_literals(sql: str) -> str:
    """Remove quoted literals so separators inside strings are ignored."""
    return re.sub(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"", "''", sql)

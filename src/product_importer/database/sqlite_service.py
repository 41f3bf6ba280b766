"""SQLite implementation of DatabaseService."""

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator

from product_importer.database.service import DatabaseService, build_upsert_sql
from product_importer.database.types import Params, ParamsList

# sqlite3 has no native Decimal/date binding and its default date adapters
# are deprecated since 3.12.
sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(date, date.isoformat)
sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    The connection runs with ``isolation_level=None`` so that transactions
    are opened explicitly by ``transaction()`` and savepoints nest inside them.
    """

    Error = sqlite3.Error

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        if self._conn is not None:
            return
        conn = sqlite3.connect(self._db_path, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_conn(self) -> sqlite3.Connection:
        """Get the connection for the current transaction."""
        if self._conn is not None and self._in_transaction:
            return self._conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._require_conn()
        conn.execute("BEGIN")
        self._in_transaction = True
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        conn = self._get_conn()
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        conn.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._require_conn()
        conn.executescript(sql)

    def upsert(
        self,
        table: str,
        columns: list[str],
        rows: list[tuple],
        conflict_columns: list[str],
        preserve_columns: list[str] | None = None,
    ) -> None:
        if not rows:
            return
        sql = build_upsert_sql(table, columns, conflict_columns, "?", preserve_columns)
        self.execute_many(sql, rows)

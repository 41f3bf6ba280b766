"""PostgreSQL implementation of DatabaseService."""

from contextlib import contextmanager
from typing import Any, Iterator

import psycopg2
import psycopg2.extras

from product_importer.database.service import DatabaseService, build_upsert_sql
from product_importer.database.types import Params, ParamsList


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2.

    psycopg2 opens a transaction implicitly on the first statement after a
    commit or rollback; ``transaction()`` only decides how it ends.
    """

    Error = psycopg2.Error

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._conn = None
        self._in_transaction = False

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        if self._conn is not None:
            return
        conn = psycopg2.connect(self._dsn)
        conn.autocommit = False
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_conn(self):
        if self._conn is not None and self._in_transaction:
            return self._conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    def _require_conn(self):
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._require_conn()
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
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params or ())
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._require_conn()
        try:
            with conn.cursor() as cur:
                for statement in sql.split(";"):
                    statement = statement.strip()
                    if statement:
                        cur.execute(statement)
            conn.commit()
        except Exception:
            conn.rollback()
            raise

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
        sql = build_upsert_sql(table, columns, conflict_columns, "%s", preserve_columns)
        self.execute_many(sql, rows)

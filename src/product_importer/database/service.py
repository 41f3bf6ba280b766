"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from product_importer.database.types import Params, ParamsList


class DatabaseService(ABC):
    """Database-agnostic interface for all DB operations.

    A service owns at most one connection. Callers open it with
    ``connection()`` (or ``connect``/``close``) and group statements with
    ``transaction()``; ``savepoint()`` isolates a statement inside an open
    transaction.
    """

    #: DB-API base exception raised by the backend driver.
    Error: type[Exception] = Exception

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True while a connection is open."""

    @abstractmethod
    def connect(self) -> None:
        """Open the connection."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection and release resources."""

    @contextmanager
    def connection(self) -> Iterator["DatabaseService"]:
        """Scope a connection; only closes it if this call opened it."""
        opened = not self.is_connected
        if opened:
            self.connect()
        try:
            yield self
        finally:
            if opened:
                self.close()

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        """Execute a SQL statement for each parameter set."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: begins a transaction, commits on success, rolls back on error."""

    @contextmanager
    def savepoint(self, name: str = "sp_row") -> Iterator[None]:
        """Run a block inside a savepoint of the current transaction.

        On error the block's changes are rolled back to the savepoint and the
        exception is re-raised; the surrounding transaction stays usable.
        """
        self.execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            self.execute(f"ROLLBACK TO SAVEPOINT {name}")
            self.execute(f"RELEASE SAVEPOINT {name}")
            raise
        self.execute(f"RELEASE SAVEPOINT {name}")

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, CREATE INDEX, etc.)."""

    @abstractmethod
    def upsert(
        self,
        table: str,
        columns: list[str],
        rows: list[tuple],
        conflict_columns: list[str],
        preserve_columns: list[str] | None = None,
    ) -> None:
        """Insert rows, updating on conflict with the specified columns.

        Columns listed in ``preserve_columns`` are written on insert only and
        keep their stored value when the row already exists.
        """


def build_upsert_sql(
    table: str,
    columns: list[str],
    conflict_columns: list[str],
    placeholder: str,
    preserve_columns: list[str] | None = None,
) -> str:
    """Render an ``INSERT ... ON CONFLICT`` statement.

    SQLite and PostgreSQL share the syntax; only the placeholder differs.
    """
    keep = set(conflict_columns) | set(preserve_columns or ())
    cols = ", ".join(columns)
    placeholders = ", ".join(placeholder for _ in columns)
    conflict_cols = ", ".join(conflict_columns)
    update_cols = [c for c in columns if c not in keep]

    if update_cols:
        update_clause = ", ".join(f"{c} = excluded.{c}" for c in update_cols)
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({placeholders}) "
            f"ON CONFLICT ({conflict_cols}) DO UPDATE SET {update_clause}"
        )
    return (
        f"INSERT INTO {table} ({cols}) VALUES ({placeholders}) "
        f"ON CONFLICT ({conflict_cols}) DO NOTHING"
    )

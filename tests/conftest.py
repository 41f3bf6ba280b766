"""Shared test fixtures."""

import csv
import sqlite3
from pathlib import Path

import pytest

from product_importer.database import create_service
from product_importer.ingestion.schema import ensure_products_schema

HEADER = [
    "product_code",
    "product_name",
    "category",
    "price",
    "quantity",
    "manufacture_date",
    "is_active",
]


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh, connected SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def products_db(db_service):
    """SQLite service with the products table created."""
    ensure_products_schema(db_service)
    return db_service


@pytest.fixture
def write_csv(tmp_path):
    """Write rows (header first unless given) to a CSV file and return its path."""

    def _write(rows: list[list[str]], header: list[str] | None = HEADER, name: str = "products.csv") -> Path:
        csv_file = tmp_path / name
        with open(csv_file, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if header is not None:
                writer.writerow(header)
            writer.writerows(rows)
        return csv_file

    return _write


@pytest.fixture
def product_rows():
    """Build `count` valid CSV data rows with codes P00001, P00002, ..."""

    def _rows(count: int, start: int = 1) -> list[list[str]]:
        return [
            [f"P{i:05d}", f"Product {i}", "Tools", "1.50", str(i), "2024-01-01", "yes"]
            for i in range(start, start + count)
        ]

    return _rows


class CommitHookConnection:
    """Wraps a sqlite3 connection to fail or react on chosen commit calls."""

    def __init__(self, conn, fail_on=(), on_commit=None):
        self._conn = conn
        self._fail_on = set(fail_on)
        self._on_commit = on_commit
        self.commits = 0

    def commit(self):
        self.commits += 1
        if self.commits in self._fail_on:
            raise sqlite3.OperationalError("connection lost during commit")
        self._conn.commit()
        if self._on_commit is not None:
            self._on_commit(self.commits)

    def __getattr__(self, name):
        return getattr(self._conn, name)


@pytest.fixture
def commit_hook(products_db):
    """Install a CommitHookConnection on the products_db service.

    Commits are numbered from 1 starting at installation, so the first chunk
    written afterwards is commit 1.
    """

    def _install(fail_on=(), on_commit=None) -> CommitHookConnection:
        hooked = CommitHookConnection(products_db._conn, fail_on, on_commit)
        products_db._conn = hooked
        return hooked

    return _install

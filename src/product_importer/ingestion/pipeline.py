"""Two-phase import: parse the whole file, then write it in chunks."""

import logging
import threading
import time
from pathlib import Path

from product_importer.database.service import DatabaseService
from product_importer.errors import ImportCancelled, InputNotFoundError
from product_importer.ingestion.parser import parse_products
from product_importer.ingestion.result import ImportResult
from product_importer.ingestion.schema import ensure_products_schema
from product_importer.ingestion.writer import CHUNK_SIZE, BatchWriter

logger = logging.getLogger(__name__)


class ProductImporter:
    """Imports a products CSV file into the products table.

    Parsing runs to completion before the first write, so a run cancelled
    while parsing leaves the store untouched. Writing happens in chunks of
    ``chunk_size`` records, each in its own transaction.
    """

    def __init__(self, service: DatabaseService, chunk_size: int = CHUNK_SIZE):
        self._service = service
        self._writer = BatchWriter(service, chunk_size)

    def run(
        self,
        file_path: str | Path,
        cancel_event: threading.Event | None = None,
    ) -> ImportResult:
        """Import ``file_path`` and return the finalized result.

        Raises InputNotFoundError if the file is missing and ImportCancelled
        (carrying the partial result) if ``cancel_event`` gets set.
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise InputNotFoundError(file_path)

        result = ImportResult()
        started = time.perf_counter()
        logger.info("Starting import of %s", file_path)

        try:
            with open(file_path, "rb") as f:
                records = [
                    (product, row_number)
                    for product, row_number in parse_products(f, result, cancel_event)
                    if product is not None
                ]
            logger.info(
                "Parsed %d rows: %d valid, %d invalid",
                result.total_rows,
                len(records),
                result.failed_count,
            )

            if records:
                with self._service.connection():
                    ensure_products_schema(self._service)
                    self._writer.write(records, result, cancel_event)
        except ImportCancelled as e:
            result.finalize(time.perf_counter() - started)
            logger.warning(
                "Import cancelled after %d successes and %d failures",
                result.success_count,
                result.failed_count,
            )
            e.result = result
            raise

        result.finalize(time.perf_counter() - started)
        logger.info(
            "Import complete. Total: %d, success: %d, failed: %d, elapsed: %.2fs",
            result.total_rows,
            result.success_count,
            result.failed_count,
            result.elapsed_seconds,
        )
        return result

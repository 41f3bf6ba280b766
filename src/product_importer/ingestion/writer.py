"""Chunked transactional persistence of parsed products."""

import logging
import threading
from typing import Iterator, Sequence

from product_importer.database.service import DatabaseService
from product_importer.errors import ImportCancelled
from product_importer.ingestion.models import Product
from product_importer.ingestion.result import ImportResult, RowError
from product_importer.ingestion.schema import upsert_product

logger = logging.getLogger(__name__)

CHUNK_SIZE = 100

ProductRow = tuple[Product, int]


def chunked(records: Sequence[ProductRow], chunk_size: int) -> Iterator[Sequence[ProductRow]]:
    """Split records into consecutive slices of at most chunk_size, in order."""
    for start in range(0, len(records), chunk_size):
        yield records[start : start + chunk_size]


class BatchWriter:
    """Upserts products chunk by chunk, one transaction per chunk.

    Each record runs in its own savepoint: a failing record is recorded and
    skipped while the rest of the chunk goes on. A failure at transaction
    level (begin or commit) rolls the whole chunk back and every record of
    the chunk is reported as failed.
    """

    def __init__(self, service: DatabaseService, chunk_size: int = CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._service = service
        self._chunk_size = chunk_size

    def write(
        self,
        records: Sequence[ProductRow],
        result: ImportResult,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Persist ``records`` and account for every one of them on ``result``.

        Raises ImportCancelled at a chunk boundary when ``cancel_event`` is
        set; chunks committed before that stay committed.
        """
        chunks = committed = 0
        for number, chunk in enumerate(chunked(records, self._chunk_size), start=1):
            if cancel_event is not None and cancel_event.is_set():
                raise ImportCancelled(f"Import cancelled before chunk {number}")
            chunks += 1
            if self._write_chunk(number, chunk, result):
                committed += 1
        logger.info(
            "Wrote %d records in %d chunks (%d committed)", len(records), chunks, committed
        )

    def _write_chunk(self, number: int, chunk: Sequence[ProductRow], result: ImportResult) -> bool:
        service = self._service
        failed_rows: set[int] = set()
        succeeded = 0
        try:
            with service.transaction():
                for product, row_number in chunk:
                    try:
                        with service.savepoint():
                            upsert_product(service, product)
                    except service.Error as e:
                        failed_rows.add(row_number)
                        result.record_failure(
                            RowError(
                                row_number,
                                f"{product.code},{product.name}",
                                f"Database write error: {e}",
                            )
                        )
                        logger.warning(
                            "Write failed, row %d, product code %s: %s", row_number, product.code, e
                        )
                    else:
                        succeeded += 1
                        result.record_success()
        except service.Error as e:
            logger.error("Chunk %d rolled back: %s", number, e)
            result.revoke_successes(succeeded)
            for _, row_number in chunk:
                if row_number not in failed_rows:
                    result.record_failure(
                        RowError(row_number, "", f"Transaction rolled back: {e}")
                    )
            return False

        logger.debug("Chunk %d committed with %d records", number, len(chunk))
        return True

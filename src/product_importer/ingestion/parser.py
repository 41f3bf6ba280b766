"""Streaming CSV parser producing typed products or per-row errors."""

import csv
import logging
import threading
from typing import Iterable, Iterator

from product_importer.errors import ImportCancelled, InvalidInputError, RowConversionError
from product_importer.ingestion.models import KNOWN_COLUMNS, Product, convert_row
from product_importer.ingestion.result import ImportResult, RowError

logger = logging.getLogger(__name__)

ParsedRow = tuple[Product | None, int]


class _LineRecorder:
    """Line iterator that remembers the text consumed for the current record.

    csv.reader pulls lines lazily, so after each record the buffer holds
    exactly the physical lines that record was read from.

    Byte lines are decoded one at a time as UTF-8 (a leading BOM is dropped).
    A line that does not decode is read with replacement characters and the
    record it belongs to is flagged, so only that record fails.
    """

    def __init__(self, source: Iterable[str] | Iterable[bytes], encoding: str = "utf-8"):
        self._source = iter(source)
        self._encoding = encoding
        self._lines: list[str] = []
        self._first = True
        self.decode_error: UnicodeDecodeError | None = None

    def __iter__(self) -> "_LineRecorder":
        return self

    def __next__(self) -> str:
        line = next(self._source)
        if isinstance(line, bytes):
            try:
                line = line.decode(self._encoding)
            except UnicodeDecodeError as e:
                self.decode_error = self.decode_error or e
                line = line.decode(self._encoding, errors="replace")
        if self._first:
            line = line.removeprefix("\ufeff")
            self._first = False
        self._lines.append(line)
        return line

    def take(self) -> str:
        raw = "".join(self._lines).rstrip("\r\n")
        self._lines.clear()
        self.decode_error = None
        return raw


def _read_header(reader, recorder: _LineRecorder) -> dict[str, int]:
    for header in reader:
        recorder.take()
        if not header:
            continue
        columns: dict[str, int] = {}
        for index, name in enumerate(header):
            columns.setdefault(name.strip(), index)
        unknown = sorted(set(columns) - set(KNOWN_COLUMNS) - {""})
        if unknown:
            logger.info("Ignoring unrecognized columns: %s", ", ".join(unknown))
        return columns
    raise InvalidInputError("CSV input has no header row")


def parse_products(
    source: Iterable[str] | Iterable[bytes],
    result: ImportResult,
    cancel_event: threading.Event | None = None,
) -> Iterator[ParsedRow]:
    """Yield ``(product, row_number)`` for each data row of a headed CSV stream.

    Rows that fail conversion are recorded on ``result`` and yielded as
    ``(None, row_number)`` so a bad row never stops the parse. Row numbers
    count the header as row 1. Blank lines are skipped.

    Raises ImportCancelled when ``cancel_event`` is set between rows.
    """
    recorder = _LineRecorder(source)
    reader = csv.reader(recorder)
    columns = _read_header(reader, recorder)
    width = max(columns.values()) + 1

    row_number = 1
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise ImportCancelled("Import cancelled while parsing")
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            row_number += 1
            result.record_row()
            error = RowError(row_number, recorder.take(), f"Malformed CSV row: {e}")
            result.record_failure(error)
            logger.warning("Parse error, row %d: %s. Raw data: %s", row_number, e, error.raw_data)
            yield None, row_number
            continue

        decode_error = recorder.decode_error
        raw = recorder.take()
        if not row:
            continue
        row_number += 1
        result.record_row()

        if decode_error is not None:
            message = f"Invalid {decode_error.encoding} byte sequence: {decode_error.reason}"
            result.record_failure(RowError(row_number, raw, message))
            logger.warning("Parse error, row %d: %s. Raw data: %s", row_number, message, raw)
            yield None, row_number
            continue

        if len(row) != width:
            logger.warning(
                "Malformed row %d: expected %d fields, found %d: %s",
                row_number,
                width,
                len(row),
                raw,
            )

        fields = {name: row[index] if index < len(row) else None for name, index in columns.items()}
        try:
            product = convert_row(fields)
        except RowConversionError as e:
            result.record_failure(RowError(row_number, raw, str(e)))
            logger.warning("Parse error, row %d: %s. Raw data: %s", row_number, e, raw)
            yield None, row_number
            continue

        yield product, row_number

"""Console summary and error log file for a finished import."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, TextIO

from product_importer.ingestion.result import ImportResult, RowError

MAX_INLINE_ERRORS = 10
RULE = "=" * 40


def print_summary(result: ImportResult, out: TextIO | None = None) -> None:
    out = out or sys.stdout
    print(file=out)
    print(RULE, file=out)
    print("Import summary", file=out)
    print(RULE, file=out)
    print(f"Total rows:   {result.total_rows}", file=out)
    print(f"Imported:     {result.success_count}", file=out)
    print(f"Failed:       {result.failed_count}", file=out)
    print(f"Elapsed:      {result.elapsed_seconds:.2f} s", file=out)

    if not result.errors:
        return

    print(file=out)
    print(f"Errors (first {MAX_INLINE_ERRORS}):", file=out)
    print("-" * 40, file=out)
    for error in result.errors[:MAX_INLINE_ERRORS]:
        print(f"Row {error.row_number}: {error.message}", file=out)
        if error.raw_data:
            print(f"  Raw data: {error.raw_data}", file=out)
    omitted = len(result.errors) - MAX_INLINE_ERRORS
    if omitted > 0:
        print(f"... {omitted} more errors not shown", file=out)


def error_log_path(input_path: str | Path, now: datetime | None = None) -> Path:
    """Timestamped log file name placed next to the input file."""
    now = now or datetime.now()
    return Path(input_path).parent / f"import_errors_{now:%Y%m%d_%H%M%S}.log"


def write_error_log(path: str | Path, errors: Iterable[RowError], now: datetime | None = None) -> Path:
    now = now or datetime.now()
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"CSV import error log - {now:%Y-%m-%d %H:%M:%S}\n")
        f.write("=" * 60 + "\n\n")
        for error in errors:
            f.write(f"Row: {error.row_number}\n")
            f.write(f"Error: {error.message}\n")
            if error.raw_data:
                f.write(f"Data: {error.raw_data}\n")
            f.write("-" * 40 + "\n")
    return path

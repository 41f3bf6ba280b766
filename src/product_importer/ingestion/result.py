"""Run accounting shared by the parser and the batch writer."""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowError:
    row_number: int
    raw_data: str
    message: str


@dataclass
class ImportResult:
    """Counters and errors for one import run.

    The parser and the writer only add to it. Once ``finalize`` has been
    called the result belongs to the caller and can no longer be changed.
    """

    total_rows: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: list[RowError] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    finalized: bool = False

    def _check_open(self) -> None:
        if self.finalized:
            raise RuntimeError("ImportResult is finalized")

    def record_row(self) -> None:
        self._check_open()
        self.total_rows += 1

    def record_success(self) -> None:
        self._check_open()
        self.success_count += 1

    def record_failure(self, error: RowError) -> None:
        self._check_open()
        self.failed_count += 1
        self.errors.append(error)

    def revoke_successes(self, count: int) -> None:
        """Take back successes recorded inside a chunk that was rolled back."""
        self._check_open()
        if count < 0 or count > self.success_count:
            raise ValueError(f"cannot revoke {count} of {self.success_count} successes")
        self.success_count -= count

    def finalize(self, elapsed_seconds: float) -> None:
        self._check_open()
        self.elapsed_seconds = elapsed_seconds
        self.finalized = True
        logger.debug(
            "Result finalized: total=%d success=%d failed=%d",
            self.total_rows,
            self.success_count,
            self.failed_count,
        )

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0

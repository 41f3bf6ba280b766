"""Tests for ImportResult accounting."""

import pytest

from product_importer.ingestion.result import ImportResult, RowError


class TestImportResult:
    def test_accumulates(self):
        result = ImportResult()
        result.record_row()
        result.record_row()
        result.record_success()
        result.record_failure(RowError(3, "x", "bad"))
        assert (result.total_rows, result.success_count, result.failed_count) == (2, 1, 1)
        assert result.errors == [RowError(3, "x", "bad")]
        assert result.has_failures

    def test_revoke_successes(self):
        result = ImportResult()
        for _ in range(3):
            result.record_success()
        result.revoke_successes(2)
        assert result.success_count == 1

    def test_cannot_revoke_more_than_recorded(self):
        result = ImportResult()
        result.record_success()
        with pytest.raises(ValueError):
            result.revoke_successes(2)

    def test_finalized_result_is_frozen(self):
        result = ImportResult()
        result.finalize(0.25)
        assert result.elapsed_seconds == 0.25
        with pytest.raises(RuntimeError, match="finalized"):
            result.record_row()
        with pytest.raises(RuntimeError, match="finalized"):
            result.record_failure(RowError(2, "", "late"))

    def test_row_error_is_immutable(self):
        error = RowError(2, "raw", "msg")
        with pytest.raises(AttributeError):
            error.message = "changed"

"""Tests for the streaming CSV parser."""

import io
import threading
from datetime import date

import pytest

from product_importer.errors import ImportCancelled, InvalidInputError
from product_importer.ingestion.parser import parse_products
from product_importer.ingestion.result import ImportResult

HEADER = "product_code,product_name,category,price,quantity,manufacture_date,is_active\n"


def _parse(text: str, cancel_event=None):
    result = ImportResult()
    rows = list(parse_products(io.StringIO(text), result, cancel_event))
    return rows, result


def _parse_bytes(data: bytes):
    result = ImportResult()
    rows = list(parse_products(io.BytesIO(data), result))
    return rows, result


class TestParseProducts:
    def test_single_valid_row(self):
        rows, result = _parse(HEADER + "ABC123,Widget,Tools,9.99,5,2024-01-01,yes\n")
        assert len(rows) == 1
        product, row_number = rows[0]
        assert row_number == 2
        assert product.active is True
        assert product.manufacture_date == date(2024, 1, 1)
        assert result.total_rows == 1
        assert result.failed_count == 0

    def test_header_only(self):
        rows, result = _parse(HEADER)
        assert rows == []
        assert (result.total_rows, result.success_count, result.failed_count) == (0, 0, 0)

    def test_empty_input_requires_header(self):
        with pytest.raises(InvalidInputError, match="no header"):
            _parse("")

    def test_bad_row_does_not_stop_parse(self):
        text = (
            HEADER
            + "A1,Widget,Tools,9.99,5,2024-01-01,yes\n"
            + "A2,Gadget,Tools,not-a-price,5,2024-01-01,yes\n"
            + "A3,Gizmo,Tools,1.00,1,,no\n"
        )
        rows, result = _parse(text)
        assert [(p is not None, n) for p, n in rows] == [(True, 2), (False, 3), (True, 4)]
        assert result.total_rows == 3
        assert result.success_count == 0
        assert result.failed_count == 1
        error = result.errors[0]
        assert error.row_number == 3
        assert error.raw_data == "A2,Gadget,Tools,not-a-price,5,2024-01-01,yes"
        assert "price" in error.message
        assert "not-a-price" in error.message

    def test_columns_resolved_by_name(self):
        text = (
            "is_active,quantity,price,category,product_name,product_code,extra\n"
            "N,3,2.50,Toys,Ball,B1,ignored\n"
        )
        rows, _ = _parse(text)
        product, _ = rows[0]
        assert product.code == "B1"
        assert product.name == "Ball"
        assert product.quantity == 3
        assert product.active is False
        assert product.manufacture_date is None

    def test_header_names_are_trimmed(self):
        text = " product_code , product_name,category,price,quantity,is_active\nC1,Cup,Home,3,1,1\n"
        rows, result = _parse(text)
        assert rows[0][0].code == "C1"
        assert result.failed_count == 0

    def test_missing_required_column_fails_each_row(self):
        text = "product_code,product_name,category,quantity,is_active\nC1,Cup,Home,1,1\nC2,Pan,Home,2,0\n"
        rows, result = _parse(text)
        assert [p for p, _ in rows] == [None, None]
        assert result.failed_count == 2
        assert all("'price'" in e.message for e in result.errors)

    def test_short_row_is_recovered_when_optional_field_missing(self):
        text = (
            "product_code,product_name,category,price,quantity,is_active,manufacture_date\n"
            "C1,Cup,Home,3,1,yes\n"
        )
        rows, result = _parse(text)
        assert rows[0][0] is not None
        assert rows[0][0].manufacture_date is None
        assert result.failed_count == 0

    def test_malformed_row_is_logged(self, caplog):
        text = HEADER + "C1,Cup,Home,3,1,2024-01-01,yes,surplus\n"
        with caplog.at_level("WARNING"):
            rows, result = _parse(text)
        assert rows[0][0] is not None
        assert "Malformed row 2" in caplog.text

    def test_blank_lines_are_skipped(self):
        text = HEADER + "\nA1,Widget,Tools,9.99,5,,yes\n\nA2,Gadget,Tools,1,1,,no\n"
        rows, result = _parse(text)
        assert [n for _, n in rows] == [2, 3]
        assert result.total_rows == 2

    def test_bytes_source_with_bom(self):
        data = ("\ufeff" + HEADER + "A1,Widget,Tools,9.99,5,,yes\n").encode("utf-8")
        rows, result = _parse_bytes(data)
        assert rows[0][0].code == "A1"
        assert result.failed_count == 0

    def test_undecodable_row_fails_alone(self):
        data = (
            HEADER.encode("utf-8")
            + b"A1,Widget,Tools,9.99,5,,yes\n"
            + b"A2,Bad\xff\xfe,Tools,9.99,5,,yes\n"
            + b"A3,Gizmo,Tools,1.00,1,,no\n"
        )
        rows, result = _parse_bytes(data)
        assert [(p is not None, n) for p, n in rows] == [(True, 2), (False, 3), (True, 4)]
        assert result.total_rows == 3
        assert result.failed_count == 1
        error = result.errors[0]
        assert error.row_number == 3
        assert error.message.startswith("Invalid utf-8 byte sequence")
        assert error.raw_data.startswith("A2,Bad")

    def test_quoted_multiline_raw_data(self):
        text = HEADER + 'A1,"Two\nlines",Tools,oops,5,,yes\n'
        rows, result = _parse(text)
        assert rows == [(None, 2)]
        assert result.errors[0].raw_data == 'A1,"Two\nlines",Tools,oops,5,,yes'

    def test_is_lazy(self):
        result = ImportResult()
        rows = parse_products(io.StringIO(HEADER + "A1,W,T,1,1,,yes\nA2,W,T,1,1,,yes\n"), result)
        next(rows)
        assert result.total_rows == 1

    def test_cancellation_between_rows(self):
        cancel = threading.Event()
        result = ImportResult()
        rows = parse_products(io.StringIO(HEADER + "A1,W,T,1,1,,yes\nA2,W,T,1,1,,yes\n"), result, cancel)
        next(rows)
        cancel.set()
        with pytest.raises(ImportCancelled):
            next(rows)
        assert result.total_rows == 1

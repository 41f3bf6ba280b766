"""Product record and the conversion rules from raw CSV fields."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping

from product_importer.errors import RowConversionError

# CSV column identifiers
CODE = "product_code"
NAME = "product_name"
CATEGORY = "category"
PRICE = "price"
QUANTITY = "quantity"
MANUFACTURE_DATE = "manufacture_date"
IS_ACTIVE = "is_active"

REQUIRED_COLUMNS = (CODE, NAME, CATEGORY, PRICE, QUANTITY, IS_ACTIVE)
OPTIONAL_COLUMNS = (MANUFACTURE_DATE,)
KNOWN_COLUMNS = REQUIRED_COLUMNS + OPTIONAL_COLUMNS

NULL_TOKENS = frozenset({"", "NULL", "null"})
TRUE_TOKENS = frozenset({"true", "1", "yes", "y"})
FALSE_TOKENS = frozenset({"false", "0", "no", "n"})

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y")


@dataclass(frozen=True)
class Product:
    code: str
    name: str
    category: str
    price: Decimal
    quantity: int
    manufacture_date: date | None
    active: bool


def parse_decimal(field: str, value: str) -> Decimal:
    try:
        result = Decimal(value)
    except InvalidOperation:
        raise RowConversionError(field, value, "not a decimal number") from None
    if not result.is_finite():
        raise RowConversionError(field, value, "not a finite decimal number")
    return result


def parse_int(field: str, value: str) -> int:
    if not _INTEGER_RE.match(value):
        raise RowConversionError(field, value, "not an integer")
    return int(value)


def parse_bool(field: str, value: str) -> bool:
    """Map yes/no style tokens to a bool; matching ignores case."""
    token = value.lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise RowConversionError(field, value, "not a boolean")


def parse_optional_date(field: str, value: str | None) -> date | None:
    """Parse a date, mapping empty/NULL/null (or a missing column) to None."""
    if value is None or value in NULL_TOKENS:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        raise RowConversionError(field, value, "not a date") from None


def _required(fields: Mapping[str, str | None], column: str) -> str:
    value = fields.get(column)
    if value is None:
        raise RowConversionError(column, None, "missing value")
    return value.strip()


def convert_row(fields: Mapping[str, str | None]) -> Product:
    """Convert a mapping of column name to raw text into a Product.

    Raises RowConversionError for the first field that cannot be converted.
    """
    raw_date = fields.get(MANUFACTURE_DATE)
    return Product(
        code=_required(fields, CODE),
        name=_required(fields, NAME),
        category=_required(fields, CATEGORY),
        price=parse_decimal(PRICE, _required(fields, PRICE)),
        quantity=parse_int(QUANTITY, _required(fields, QUANTITY)),
        manufacture_date=parse_optional_date(
            MANUFACTURE_DATE, raw_date.strip() if raw_date is not None else None
        ),
        active=parse_bool(IS_ACTIVE, _required(fields, IS_ACTIVE)),
    )

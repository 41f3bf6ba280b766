"""Products table schema and per-record upsert."""

from datetime import datetime

from product_importer.database.service import DatabaseService
from product_importer.ingestion.models import Product

PRODUCTS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS products (
    product_code     VARCHAR(64)   NOT NULL PRIMARY KEY CHECK (product_code <> ''),
    product_name     VARCHAR(255)  NOT NULL,
    category         VARCHAR(100)  NOT NULL,
    price            DECIMAL(12,2) NOT NULL,
    quantity         INTEGER       NOT NULL,
    manufacture_date DATE,
    is_active        BOOLEAN       NOT NULL,
    created_at       TIMESTAMP     NOT NULL,
    updated_at       TIMESTAMP     NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category);
"""

PRODUCTS_TABLE = "products"
PRODUCTS_COLUMNS = [
    "product_code",
    "product_name",
    "category",
    "price",
    "quantity",
    "manufacture_date",
    "is_active",
    "created_at",
    "updated_at",
]
PRODUCTS_CONFLICT_COLUMNS = ["product_code"]
# Written on insert only; an upsert of an existing code keeps the original value.
PRODUCTS_INSERT_ONLY_COLUMNS = ["created_at"]


def ensure_products_schema(service: DatabaseService) -> None:
    """Create the products table if it doesn't exist."""
    service.execute_ddl(PRODUCTS_TABLE_DDL)


def product_row(product: Product, now: datetime) -> tuple:
    """Flatten a Product into a tuple matching PRODUCTS_COLUMNS."""
    return (
        product.code,
        product.name,
        product.category,
        product.price,
        product.quantity,
        product.manufacture_date,
        product.active,
        now,
        now,
    )


def upsert_product(service: DatabaseService, product: Product, now: datetime | None = None) -> None:
    """Insert a product or overwrite the existing row with the same code.

    Must run inside ``service.transaction()``.
    """
    row = product_row(product, now or datetime.now())
    service.upsert(
        PRODUCTS_TABLE,
        PRODUCTS_COLUMNS,
        [row],
        PRODUCTS_CONFLICT_COLUMNS,
        preserve_columns=PRODUCTS_INSERT_ONLY_COLUMNS,
    )

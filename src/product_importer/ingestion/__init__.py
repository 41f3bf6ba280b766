"""CSV product ingestion: parsing, chunked writing and run accounting."""

from product_importer.ingestion.models import Product, convert_row
from product_importer.ingestion.parser import parse_products
from product_importer.ingestion.pipeline import ProductImporter
from product_importer.ingestion.result import ImportResult, RowError
from product_importer.ingestion.writer import CHUNK_SIZE, BatchWriter

__all__ = [
    "BatchWriter",
    "CHUNK_SIZE",
    "ImportResult",
    "Product",
    "ProductImporter",
    "RowError",
    "convert_row",
    "parse_products",
]

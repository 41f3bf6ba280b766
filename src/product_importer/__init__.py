"""Bulk CSV product importer with chunked transactional writes."""

from product_importer.database import create_service
from product_importer.ingestion import ImportResult, ProductImporter, RowError

__all__ = ["ImportResult", "ProductImporter", "RowError", "create_service"]

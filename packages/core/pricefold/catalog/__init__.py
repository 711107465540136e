"""Catalog import package: CSV decoding, price reconciliation and the SQLite price store."""

from pricefold.catalog.importer import ImportResult, install
from pricefold.catalog.reader import CatalogFormatError, CsvPrice, read_prices
from pricefold.catalog.store import SCHEMA, PriceStore

__all__ = [
    "CatalogFormatError",
    "CsvPrice",
    "ImportResult",
    "PriceStore",
    "SCHEMA",
    "install",
    "read_prices",
]

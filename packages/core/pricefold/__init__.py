"""pricefold: reconcile vendor cloud price catalogs into a normalized price store."""

from pricefold.config import ImportSettings, load_settings
from pricefold.models import (
    BillingPeriod,
    InstancePrice,
    InstanceType,
    PriceTerm,
    Rate,
    Region,
    StoragePrice,
    StorageType,
    SupportPrice,
    SupportType,
    Tenancy,
    VmOs,
)

__version__ = "0.1.0"

__all__ = [
    "BillingPeriod",
    "ImportResult",
    "ImportSettings",
    "InstancePrice",
    "InstanceType",
    "PriceStore",
    "PriceTerm",
    "Rate",
    "Region",
    "StoragePrice",
    "StorageType",
    "SupportPrice",
    "SupportType",
    "Tenancy",
    "VmOs",
    "install",
    "load_settings",
]


def __getattr__(name: str):
    if name in ("ImportResult", "install"):
        from pricefold.catalog import importer

        return getattr(importer, name)
    if name == "PriceStore":
        from pricefold.catalog.store import PriceStore

        return PriceStore
    raise AttributeError(f"module 'pricefold' has no attribute {name!r}")

"""Vendor price CSV decoding.

The published CSV starts with free-form banner lines before the real header
row (the one whose first field is ``SKU``). Everything before that row is
skipped; after it, each row long enough to be a price becomes a ``CsvPrice``.
"""

from __future__ import annotations

import csv
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TextIO

from pricefold.models import BillingPeriod, VmOs

logger = logging.getLogger(__name__)

HEADER_MARKER = "SKU"

# A row is a price only when it has strictly more columns than this.
MIN_COLUMNS = 10

DROP = "drop"
REGION_PREFIX = "region:"

REGION_COLUMNS = (
    "eu-west-2",
    "cloudgouv-eu-west-1",
    "us-west-1",
    "us-east-2",
    "cn-southeast-1",
)

# CSV header -> CsvPrice attribute. Anything else is dropped.
HEADERS_MAPPING: dict[str, str] = {
    "SKU": "sku",
    "Service": "service",
    "Type": "type",
    "Description": "name",
    "Name": "name",
    "Excel named range for reference": "code",
    **{region: REGION_PREFIX + region for region in REGION_COLUMNS},
}


class CatalogFormatError(ValueError):
    """The catalog stream is not a price CSV (no header row before EOF)."""


@dataclass
class CsvPrice:
    """One catalog row. License attributes are filled in later by inference."""

    service: str = ""
    type: str = ""
    code: str | None = None
    name: str = ""
    sku: str = ""
    # region id -> cost; regions without a price are absent
    regions: dict[str, float] = field(default_factory=dict)

    os: VmOs = VmOs.LINUX
    software: str | None = None
    billing_period: BillingPeriod = BillingPeriod.HOURLY
    min_cpu: int = 0
    # None when the price is per VM rather than per group of cores
    increment_cpu: float | None = None
    billing_periods: list[CsvPrice] = field(default_factory=list, repr=False)


def _parse_cost(raw: str) -> float | None:
    value = raw.strip()
    if not value or value == "-":
        return None
    cost = float(value)
    if not math.isfinite(cost):
        raise ValueError(f"Not a finite cost: {raw!r}")
    return cost


class CsvPriceReader:
    """Lazy, single-pass reader of ``CsvPrice`` rows over a text stream."""

    def __init__(self, stream: TextIO, min_columns: int = MIN_COLUMNS):
        self._rows = csv.reader(stream)
        self._min_columns = min_columns
        self.headers = self._read_headers()

    def _read_headers(self) -> list[str]:
        for values in self._rows:
            if values and values[0].lstrip("\ufeff").strip() == HEADER_MARKER:
                return [HEADERS_MAPPING.get(v.strip(), DROP) for v in values]
        raise CatalogFormatError("Premature end of CSV file, headers were not found")

    def __iter__(self) -> Iterator[CsvPrice]:
        return self

    def __next__(self) -> CsvPrice:
        for values in self._rows:
            price = self._to_price(values)
            if price is not None:
                return price
        raise StopIteration

    def read(self) -> CsvPrice | None:
        """Return the next price, or None at the end of the stream."""
        return next(self, None)

    def _to_price(self, values: list[str]) -> CsvPrice | None:
        if len(values) <= self._min_columns:
            logger.debug("Skipping short row (%d columns)", len(values))
            return None

        price = CsvPrice()
        for header, raw in zip(self.headers, values):
            if header == DROP:
                continue
            if header.startswith(REGION_PREFIX):
                try:
                    cost = _parse_cost(raw)
                except ValueError:
                    logger.debug("Skipping row with invalid cost %r: %s", raw, values[:1])
                    return None
                if cost is not None:
                    price.regions[header[len(REGION_PREFIX) :]] = cost
            else:
                setattr(price, header, raw.strip())

        # The reference column is the stable code; fall back on the SKU
        price.code = price.code or price.sku or None
        return price


def read_prices(stream: TextIO, min_columns: int = MIN_COLUMNS) -> Iterator[CsvPrice]:
    """Decode every price row of a catalog stream. The header is located eagerly."""
    return CsvPriceReader(stream, min_columns=min_columns)

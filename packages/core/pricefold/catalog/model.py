"""In-memory catalog model: service -> product family -> rows."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from pricefold.catalog.inference import infer_license
from pricefold.catalog.reader import CsvPrice
from pricefold.models import BillingPeriod

logger = logging.getLogger(__name__)

LICENSES_SERVICE = "Licences"

# Desktop licenses never apply to server instances.
EXCLUDED_LICENSE_TYPES = frozenset({"Windows 10"})

_PERIOD_ORDER = list(BillingPeriod)


class CatalogIndex:
    """Nested lookup of catalog rows, built once per import."""

    def __init__(self) -> None:
        self._prices: dict[str, dict[str, list[CsvPrice]]] = {}

    def add(self, price: CsvPrice) -> None:
        self._prices.setdefault(price.service, {}).setdefault(price.type, []).append(price)

    def get(self, service: str, type_: str) -> list[CsvPrice]:
        return self._prices.get(service, {}).get(type_, [])

    def find(self, service: str, type_: str, code: str) -> CsvPrice | None:
        """First row of a product family with the given code."""
        return next((p for p in self.get(service, type_) if p.code == code), None)

    def services(self) -> list[str]:
        return list(self._prices)

    def types(self, service: str) -> list[str]:
        return list(self._prices.get(service, {}))

    def licenses(self) -> Iterator[CsvPrice]:
        """License rows still addressable by code."""
        for type_, prices in self._prices.get(LICENSES_SERVICE, {}).items():
            if type_ in EXCLUDED_LICENSE_TYPES:
                continue
            for price in prices:
                if price.code is not None:
                    yield price

    def __len__(self) -> int:
        return sum(len(rows) for types in self._prices.values() for rows in types.values())


def build_index(prices: Iterable[CsvPrice]) -> CatalogIndex:
    index = CatalogIndex()
    for price in prices:
        index.add(price)
    return index


def fold_billing_periods(licenses: Iterable[CsvPrice]) -> list[CsvPrice]:
    """Group licenses differing only by billing period.

    Every member of an (OS, software) group gets the same sibling list, one
    entry per distinct billing period. Only the first member of each group
    keeps its code; the others are absorbed and will not be priced standalone.
    Returns the canonical licenses.
    """
    groups: dict[tuple, list[CsvPrice]] = {}
    for lic in licenses:
        groups.setdefault((lic.os, lic.software), []).append(lic)

    canonical: list[CsvPrice] = []
    for members in groups.values():
        by_period: dict[BillingPeriod, CsvPrice] = {}
        for member in members:
            by_period.setdefault(member.billing_period, member)
        siblings = sorted(by_period.values(), key=lambda p: _PERIOD_ORDER.index(p.billing_period))

        root = members[0]
        for member in members:
            member.billing_periods = list(siblings)
            if member is not root:
                member.code = None
        canonical.append(root)
        logger.debug(
            "License %s/%s folds %d billing period(s)", root.os.value, root.software, len(siblings)
        )
    return canonical


def prepare_licenses(index: CatalogIndex) -> list[CsvPrice]:
    """Infer the attributes of every license, then fold billing periods."""
    licenses = [infer_license(lic) for lic in index.licenses()]
    return fold_billing_periods(licenses)

"""License attribute inference from the SKU code and the human description.

All functions are pure: the same code/description always gives the same result.
"""

from __future__ import annotations

import re

from pricefold.catalog.reader import CsvPrice
from pricefold.models import BillingPeriod, VmOs

# Evaluated in order against the lower-cased license code; first hit wins.
OS_RULES: tuple[tuple[str, VmOs], ...] = (
    ("oracle", VmOs.ORACLE),
    ("rhel", VmOs.RHEL),
    ("suse", VmOs.SUSE),
)

# Licenses matching no OS rule are Windows ones.
DEFAULT_LICENSE_OS = VmOs.WINDOWS

_SOFTWARE_PATTERN = re.compile(r"(SQL Server.*)\s+Edition")
_BILLING_PATTERN = re.compile(r".*_([hmy][^_]+ly)")
_MIN_CPU_PATTERN = re.compile(r".*\s+([0-9]+)\s+c\S+\s+min")
_INCREMENT_CPU_PATTERN = re.compile(r".*_([0-9]+)cores")

# Abbreviations found in edition names.
_SOFTWARE_ABBREVIATIONS = (("STD", "STANDARD"), ("ENT", "ENTERPRISE"))


def license_to_os(code: str) -> VmOs:
    """Return the OS a license applies to."""
    lowered = code.lower()
    for needle, os_ in OS_RULES:
        if needle in lowered:
            return os_
    return DEFAULT_LICENSE_OS


def license_to_software(name: str) -> str | None:
    """Return the normalized software edition, e.g. ``SQL SERVER STANDARD``."""
    match = _SOFTWARE_PATTERN.search(name)
    if not match:
        return None
    software = match.group(1).upper()
    for short, full in _SOFTWARE_ABBREVIATIONS:
        software = re.sub(rf"\b{short}\b", full, software)
    return software.strip()


def license_to_billing_period(code: str) -> BillingPeriod:
    """Billing period from a ``_hourly``/``_monthly``/``_yearly`` code suffix."""
    match = _BILLING_PATTERN.match(code)
    if match:
        try:
            return BillingPeriod(match.group(1).upper())
        except ValueError:
            pass
    return BillingPeriod.HOURLY


def license_to_min_cpu(name: str) -> int:
    """Minimal vCPU count from a ``<N> cores min`` phrase, 0 when absent."""
    match = _MIN_CPU_PATTERN.match(name)
    return int(match.group(1)) if match else 0


def license_to_increment_cpu(code: str) -> float | None:
    """Core group size from a ``_<N>cores`` code suffix; None for a per-VM price."""
    match = _INCREMENT_CPU_PATTERN.match(code)
    if not match or not int(match.group(1)):
        return None
    return float(match.group(1))


def infer_license(price: CsvPrice) -> CsvPrice:
    """Fill in the license attributes of a catalog row, in place."""
    code = price.code or price.sku
    price.os = license_to_os(code)
    price.software = license_to_software(price.name)
    price.billing_period = license_to_billing_period(code)
    price.min_cpu = license_to_min_cpu(price.name)
    price.increment_cpu = license_to_increment_cpu(code)
    price.billing_periods = []
    return price

"""Resolve vendor codes into regions, instance types, storage types and terms.

Every resolved entity is looked up (or created) by code in the context, then
merged at most once per run.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from pricefold.catalog.context import UpdateContext, get_or_create, merge_as_needed
from pricefold.catalog.reader import CsvPrice
from pricefold.catalog.terms import term_code
from pricefold.models import InstanceType, PriceTerm, Rate, Region, StorageType, rate_at, rate_index

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent.parent / "data"

# c_fcu_vcorev5_high -> generation 5, tier "high"
TINA_PATTERN = re.compile(r"c_fcu_vcorev(\d+)_([a-z]+)")

NEWEST_GENERATION = 5

PROCESSORS: dict[int, str] = {
    2: "Intel Xeon Skylake",
    3: "Intel Xeon Haswell",
    4: "Intel Xeon Broadwell",
    5: "Intel Xeon Skylake",
}

# tier -> (base rating on the newest generation, lowest rating)
TIER_RATES: dict[str, tuple[Rate, Rate]] = {
    "low": (Rate.LOW, Rate.WORST),
    "medium": (Rate.MEDIUM, Rate.WORST),
    "high": (Rate.GOOD, Rate.LOW),
    "highest": (Rate.BEST, Rate.MEDIUM),
}

# Attributes of a storage type not set by its definition
STORAGE_TYPE_DEFAULTS: dict[str, Any] = {
    "increment": None,
    "availability": 99.0,
    "maximal": 14901.0,
    "minimal": 1.0,
}


# --- Filters


def is_enabled_region(context: UpdateContext, region: str) -> bool:
    return context.valid_region.fullmatch(region) is not None


def is_enabled_type(context: UpdateContext, type_code: str) -> bool:
    return context.valid_instance_type.fullmatch(type_code) is not None


def is_enabled_os(context: UpdateContext, os_name: str) -> bool:
    return context.valid_os.fullmatch(os_name) is not None


# --- Regions


def load_regions(path: str | Path | None = None) -> dict[str, dict]:
    """Static location details keyed by vendor region id."""
    data = yaml.safe_load(Path(path or _DATA_DIR / "regions.yaml").read_text()) or {}
    return {region: details or {} for region, details in data.items()}


def install_region(context: UpdateContext, region: str) -> Region:
    """Return the location of a region id, merged with its static details."""
    if ("Region", region) not in context.merged:
        context.status.nb_locations += 1

    def update(r: Region) -> None:
        details = context.map_region_by_id.get(region, {})
        r.name = region
        for name in ("description", "continent_m49", "region_m49", "subregion", "latitude", "longitude"):
            setattr(r, name, details.get(name))

    entity = get_or_create(context.regions, region, lambda c: Region(node=context.node, code=c, name=c))
    return merge_as_needed(context, entity, update)


# --- Instance types


def get_rate(rate: Rate, gen: int, floor: Rate) -> Rate:
    """Downgrade a rating once per generation older than the newest one, never below ``floor``."""
    return rate_at(max(rate_index(floor), rate_index(rate) - (NEWEST_GENERATION - gen)))


def install_instance_type(context: UpdateContext, price: CsvPrice) -> InstanceType | None:
    """Resolve the instance type encoded in a compute row.

    Returns None when the code does not encode a type or the type is disabled.
    """
    match = TINA_PATTERN.search(price.code or "")
    if not match:
        logger.debug("Ignoring compute row %s: not an instance type", price.code)
        return None
    gen = int(match.group(1))
    tier = match.group(2)
    name = f"tinav{gen}.cXrY.{tier}"
    code = name.lower()

    if not is_enabled_type(context, code):
        logger.debug("Ignoring disabled instance type %s", code)
        return None

    if ("InstanceType", code) not in context.merged:
        context.status.nb_types += 1

    def update(t: InstanceType) -> None:
        t.name = name
        t.cpu = 0.0
        t.ram = 0
        t.description = price.name
        t.baseline = 20.0 if tier == "medium" else 100.0
        t.auto_scale = False
        t.processor = PROCESSORS.get(gen)
        rates = TIER_RATES.get(tier)
        t.cpu_rate = get_rate(rates[0], gen, rates[1]) if rates else None
        t.ram_rate = t.cpu_rate
        t.network_rate = Rate.MEDIUM
        t.storage_rate = Rate.MEDIUM

    entity = get_or_create(context.instance_types, code, lambda c: InstanceType(node=context.node, code=c))
    return merge_as_needed(context, entity, update)


# --- Storage types


def load_storage_types(path: str | Path | None = None) -> dict[str, dict]:
    """Storage type definitions keyed by code."""
    data = yaml.safe_load(Path(path or _DATA_DIR / "storage-types.yaml").read_text()) or {}
    return {code: attrs or {} for code, attrs in data.items()}


def install_storage_type(context: UpdateContext, code: str, attrs: dict[str, Any]) -> StorageType:
    """Install a storage type from its definition, unset attributes taking the defaults."""
    if ("StorageType", code) not in context.merged:
        context.status.nb_types += 1

    def update(t: StorageType) -> None:
        values = {"name": code, **STORAGE_TYPE_DEFAULTS, **attrs}
        validated = StorageType(node=t.node, code=t.code, **values)
        for name in StorageType.model_fields:
            setattr(t, name, getattr(validated, name))

    entity = get_or_create(context.storage_types, code, lambda c: StorageType(node=context.node, code=c))
    return merge_as_needed(context, entity, update)


# --- Terms


def install_price_term(context: UpdateContext, name: str, period: int) -> PriceTerm:
    code = term_code(name)

    def update(t: PriceTerm) -> None:
        t.name = name
        t.period = period
        t.reservation = code.startswith("ri")
        t.convertible_family = False
        t.convertible_type = False
        t.convertible_location = False
        t.convertible_os = True
        t.ephemeral = False

    entity = get_or_create(context.price_terms, code, lambda c: PriceTerm(node=context.node, code=c))
    return merge_as_needed(context, entity, update)

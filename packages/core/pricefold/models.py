"""Persisted catalog entities: the records an import reconciles into the store.

Every entity is addressed by ``(node, code)``. The code of a price is a pure
function of its dimensions (region, term, OS, type, tenancy, software), so a
repeated import finds and updates the same record instead of creating a new one.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

DEFAULT_NODE = "service:prov:outscale"


class VmOs(str, Enum):
    LINUX = "LINUX"
    WINDOWS = "WINDOWS"
    RHEL = "RHEL"
    ORACLE = "ORACLE"
    SUSE = "SUSE"


class Tenancy(str, Enum):
    SHARED = "SHARED"
    DEDICATED = "DEDICATED"


class BillingPeriod(str, Enum):
    """Billing period a license cost is quoted in, longest first."""

    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"
    HOURLY = "HOURLY"


class Rate(str, Enum):
    """Qualitative rating, worst first. Ordering is by declaration."""

    WORST = "WORST"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    GOOD = "GOOD"
    BEST = "BEST"


class StorageOptimized(str, Enum):
    IOPS = "IOPS"
    THROUGHPUT = "THROUGHPUT"
    DURABILITY = "DURABILITY"


class Entity(BaseModel):
    """Base of every stored record."""

    model_config = ConfigDict(use_enum_values=False, validate_assignment=False)

    table: ClassVar[str] = ""

    node: str = DEFAULT_NODE
    code: str

    # Known to the store / structural fields changed since the last save
    _stored: bool = PrivateAttr(default=False)
    _dirty: bool = PrivateAttr(default=False)


class Region(Entity):
    table: ClassVar[str] = "regions"

    name: str
    description: str | None = None
    continent_m49: int | None = None
    region_m49: int | None = None
    subregion: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class InstanceType(Entity):
    table: ClassVar[str] = "instance_types"

    name: str = ""
    description: str | None = None
    cpu: float = 0.0
    ram: int = 0
    baseline: float | None = None
    auto_scale: bool = False
    processor: str | None = None
    cpu_rate: Rate | None = None
    ram_rate: Rate | None = None
    network_rate: Rate | None = None
    storage_rate: Rate | None = None


class StorageType(Entity):
    table: ClassVar[str] = "storage_types"

    name: str = ""
    latency: Rate | None = None
    optimized: StorageOptimized | None = None
    iops: int = 0
    throughput: int = 0
    durability9: int | None = None
    availability: float | None = None
    minimal: float = 1.0
    maximal: float | None = None
    increment: float | None = None
    instance_type: str | None = None


class PriceTerm(Entity):
    table: ClassVar[str] = "price_terms"

    name: str = ""
    period: int = 0
    reservation: bool = False
    convertible_family: bool = False
    convertible_type: bool = False
    convertible_location: bool = False
    convertible_os: bool = True
    ephemeral: bool = False


class InstancePrice(Entity):
    table: ClassVar[str] = "instance_prices"

    location: str | None = None
    term: str | None = None
    type: str | None = None
    os: VmOs | None = None
    tenancy: Tenancy = Tenancy.SHARED
    software: str | None = None
    period: int = 0
    min_cpu: float = 0.0
    increment_cpu: float = 1.0
    cost: float | None = None
    cost_cpu: float | None = None
    cost_ram: float | None = None
    cost_period: float | None = None


class StoragePrice(Entity):
    table: ClassVar[str] = "storage_prices"

    location: str | None = None
    type: str | None = None
    cost_gb: float | None = None


class SupportType(Entity):
    table: ClassVar[str] = "support_types"

    name: str = ""
    description: str | None = None
    access_api: Rate | None = None
    access_chat: Rate | None = None
    access_email: Rate | None = None
    access_phone: Rate | None = None
    sla_start_time: int | None = None
    sla_end_time: int | None = None
    sla_week_end: bool = False
    sla_business_critical_system_down: int | None = None
    sla_production_system_down: int | None = None
    sla_production_system_impaired: int | None = None
    sla_system_impaired: int | None = None
    sla_general_guidance: int | None = None
    commitment: int | None = None
    seats: int | None = None
    level: Rate | None = None


class SupportPrice(Entity):
    table: ClassVar[str] = "support_prices"

    type: str | None = None
    limit: float | None = None
    min: float | None = None
    rate: str | None = None
    cost: float | None = None


ENTITY_TYPES: tuple[type[Entity], ...] = (
    Region,
    InstanceType,
    StorageType,
    PriceTerm,
    InstancePrice,
    StoragePrice,
    SupportType,
    SupportPrice,
)


def rate_at(index: int) -> Rate:
    """Rate at an ordinal position, clamped to the known range."""
    members = list(Rate)
    return members[max(0, min(len(members) - 1, index))]


def rate_index(rate: Rate) -> int:
    return list(Rate).index(rate)


__all__ = [
    "DEFAULT_NODE",
    "ENTITY_TYPES",
    "BillingPeriod",
    "Entity",
    "InstancePrice",
    "InstanceType",
    "PriceTerm",
    "Rate",
    "Region",
    "StorageOptimized",
    "StoragePrice",
    "StorageType",
    "SupportPrice",
    "SupportType",
    "Tenancy",
    "VmOs",
    "rate_at",
    "rate_index",
]

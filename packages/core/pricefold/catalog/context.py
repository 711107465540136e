"""State threaded through one catalog import.

The context owns the previous-state maps (code -> entity) loaded from the
store. ``get_or_create`` is the only way entities enter these maps, and the
import is single-threaded, so an entity is created at most once per code.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypeVar

from pricefold.config import HOURS_MONTH
from pricefold.models import (
    DEFAULT_NODE,
    Entity,
    InstancePrice,
    InstanceType,
    PriceTerm,
    Region,
    StoragePrice,
    StorageType,
    SupportPrice,
    SupportType,
)

if TYPE_CHECKING:
    from pricefold.catalog.model import CatalogIndex
    from pricefold.catalog.reader import CsvPrice
    from pricefold.catalog.store import PriceStore
    from pricefold.catalog.terms import Term

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

PHASES = ("initialize", "retrieve-catalog", "install-instances", "install-storages", "install-support")


def round3(value: float) -> float:
    """Round a monetary value to 3 decimals so float noise never reads as a change."""
    return round(value, 3)


@dataclass
class ImportStatus:
    phase: str | None = None
    done: int = 0
    workload: int = len(PHASES)
    nb_prices: int = 0
    nb_types: int = 0
    nb_locations: int = 0
    nb_cost_updates: int = 0
    started: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended: datetime | None = None
    location: str | None = None


@dataclass
class UpdateContext:
    store: PriceStore
    node: str = DEFAULT_NODE
    force: bool = False
    hours_month: float = HOURS_MONTH

    valid_region: re.Pattern = field(default_factory=lambda: re.compile(".*"))
    valid_instance_type: re.Pattern = field(default_factory=lambda: re.compile(".*", re.IGNORECASE))
    valid_os: re.Pattern = field(default_factory=lambda: re.compile(".*", re.IGNORECASE))

    # region id -> static location details
    map_region_by_id: dict[str, dict] = field(default_factory=dict)

    # Previous state, by code
    regions: dict[str, Region] = field(default_factory=dict)
    instance_types: dict[str, InstanceType] = field(default_factory=dict)
    price_terms: dict[str, PriceTerm] = field(default_factory=dict)
    storage_types: dict[str, StorageType] = field(default_factory=dict)
    support_types: dict[str, SupportType] = field(default_factory=dict)
    previous: dict[str, InstancePrice] = field(default_factory=dict)
    previous_storage: dict[str, StoragePrice] = field(default_factory=dict)
    previous_support: dict[str, SupportPrice] = field(default_factory=dict)

    # Catalog of this run
    csv_terms: dict[str, Term] = field(default_factory=dict)
    csv_prices: CatalogIndex | None = None
    licenses: list[CsvPrice] = field(default_factory=list)
    cost_ram: dict[str, float] = field(default_factory=dict)
    dedicated: dict[str, float] = field(default_factory=dict)

    # Codes touched during this run
    prices: set[str] = field(default_factory=set)
    merged: set[tuple[str, str]] = field(default_factory=set)
    status: ImportStatus = field(default_factory=ImportStatus)

    def next_step(self, phase: str) -> None:
        self.status.phase = phase
        self.status.done += 1
        logger.info("Import %s: step %d/%d %s", self.node, self.status.done, self.status.workload, phase)


def get_or_create(mapping: dict[str, E], code: str, factory: Callable[[str], E]) -> E:
    """Return the entity known under ``code``, creating and registering it if absent."""
    entity = mapping.get(code)
    if entity is None:
        entity = factory(code)
        mapping[code] = entity
    return entity


def merge_as_needed(
    context: UpdateContext,
    entity: E,
    updater: Callable[[E], None],
    once: bool = True,
    persist: bool = True,
) -> E:
    """Apply structural fields to an entity.

    With ``once``, the merge happens at most once per code during a run (types,
    terms and regions are shared by many prices). Without ``persist``, a
    change only marks the entity dirty; ``save_as_needed`` writes it.
    """
    key = (type(entity).__name__, entity.code)
    if once and key in context.merged:
        return entity
    context.merged.add(key)

    before = entity.model_dump()
    updater(entity)
    if context.force or not entity._stored or entity.model_dump() != before:
        if persist:
            _save(context, entity)
        else:
            entity._dirty = True
    return entity


def save_as_needed(
    context: UpdateContext,
    entity: E,
    old_cost: float | None,
    new_cost: float,
    updater: Callable[[float, float], None],
) -> E:
    """Write the cost fields, and only them, when the rounded cost changed.

    ``updater`` receives the rounded and the raw new cost.
    """
    context.prices.add(entity.code)
    new_cost_r = round3(new_cost)
    if context.force or not entity._stored or old_cost is None or round3(old_cost) != new_cost_r:
        updater(new_cost_r, new_cost)
        context.status.nb_cost_updates += 1
        _save(context, entity)
    elif entity._dirty:
        _save(context, entity)
    return entity


def _save(context: UpdateContext, entity: Entity) -> None:
    context.store.save(entity)
    entity._stored = True
    entity._dirty = False

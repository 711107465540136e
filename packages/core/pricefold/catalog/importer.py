"""Catalog import pipeline: reconcile the vendor price CSV into the price store."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from pricefold.catalog.context import UpdateContext
from pricefold.catalog.engine import install_instances
from pricefold.catalog.model import build_index
from pricefold.catalog.reader import read_prices
from pricefold.catalog.resolver import install_price_term, load_regions
from pricefold.catalog.storage import install_storage
from pricefold.catalog.store import PriceStore
from pricefold.catalog.support import install_support
from pricefold.catalog.terms import load_terms
from pricefold.config import ImportSettings
from pricefold.models import (
    InstancePrice,
    InstanceType,
    PriceTerm,
    Region,
    StoragePrice,
    StorageType,
    SupportPrice,
    SupportType,
)
from pricefold.sources import open_catalog

logger = logging.getLogger(__name__)

# Reported location of a catalog read from a caller-supplied stream
STREAM_LOCATION = "<stream>"


@dataclass
class ImportResult:
    phase: str | None
    done: int
    workload: int
    nb_prices: int = 0
    nb_types: int = 0
    nb_locations: int = 0
    nb_cost_updates: int = 0
    started: datetime | None = None
    ended: datetime | None = None
    location: str | None = None

    @property
    def duration(self) -> float:
        if self.started is None or self.ended is None:
            return 0.0
        return (self.ended - self.started).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started"] = self.started.isoformat() if self.started else None
        data["ended"] = self.ended.isoformat() if self.ended else None
        return data


def _by_code(entities) -> dict:
    return {e.code: e for e in entities}


def _initialize(context: UpdateContext, settings: ImportSettings) -> None:
    context.next_step("initialize")
    context.valid_region = re.compile(settings.regions)
    context.valid_instance_type = re.compile(settings.instance_type, re.IGNORECASE)
    context.valid_os = re.compile(settings.os, re.IGNORECASE)
    context.map_region_by_id = load_regions()

    store, node = context.store, context.node
    context.instance_types = _by_code(store.find_all(InstanceType, node))
    context.price_terms = _by_code(store.find_all(PriceTerm, node))
    context.storage_types = _by_code(store.find_all(StorageType, node))
    context.previous_storage = _by_code(store.find_all(StoragePrice, node))
    context.support_types = _by_code(store.find_all(SupportType, node))
    context.previous_support = _by_code(store.find_all(SupportPrice, node))
    context.regions = _by_code(store.find_all(Region, node))
    context.previous = _by_code(store.find_all(InstancePrice, node))

    terms = load_terms(settings.terms_file, hours_month=context.hours_month)
    for name, term in terms.items():
        term.entity = install_price_term(context, name, term.period)
    context.csv_terms = terms


def _retrieve_catalog(context: UpdateContext, stream: TextIO | None, location: str) -> None:
    context.next_step("retrieve-catalog")
    if stream is not None:
        context.csv_prices = build_index(read_prices(stream))
    else:
        with open_catalog(location) as catalog:
            context.csv_prices = build_index(read_prices(catalog))
    logger.info("Catalog %s: %d rows", location, len(context.csv_prices))


def install(
    settings: ImportSettings,
    store: PriceStore | None = None,
    force: bool = False,
    stream: TextIO | None = None,
    location: str | Path | None = None,
) -> ImportResult:
    """Run a full import.

    The catalog is read from ``stream`` when given, otherwise from ``location``
    (a URL or a file), defaulting to the vendor endpoint. A streamed catalog
    is reported as ``<stream>`` unless a location labels it. Catalog format and
    retrieval errors propagate.
    """
    store = store or PriceStore(settings.db_path)
    if location is None:
        location = STREAM_LOCATION if stream is not None else settings.catalog_url
    location = str(location)
    context = UpdateContext(store=store, node=settings.node, force=force, hours_month=settings.hours_month)
    context.status.location = location
    logger.info("Outscale import started@%s ...", location)

    with store.transaction():
        _initialize(context, settings)
        _retrieve_catalog(context, stream, location)

        context.next_step("install-instances")
        install_instances(context)

        context.next_step("install-storages")
        install_storage(context)

        context.next_step("install-support")
        install_support(context)

    status = context.status
    status.nb_prices = len(context.prices)
    status.ended = datetime.now(timezone.utc)
    logger.info(
        "Outscale import finished: %d prices, %d cost updates, %d types, %d locations",
        status.nb_prices,
        status.nb_cost_updates,
        status.nb_types,
        status.nb_locations,
    )
    return ImportResult(
        phase=status.phase,
        done=status.done,
        workload=status.workload,
        nb_prices=status.nb_prices,
        nb_types=status.nb_types,
        nb_locations=status.nb_locations,
        nb_cost_updates=status.nb_cost_updates,
        started=status.started,
        ended=status.ended,
        location=status.location,
    )

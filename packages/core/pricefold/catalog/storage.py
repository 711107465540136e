"""Block (BSU) and object (OSU) storage prices."""

from __future__ import annotations

import logging

from pricefold.catalog.context import UpdateContext, get_or_create, merge_as_needed, save_as_needed
from pricefold.catalog.engine import install_service_prices
from pricefold.catalog.reader import CsvPrice
from pricefold.catalog.resolver import install_region, install_storage_type, load_storage_types
from pricefold.models import Region, StoragePrice, StorageType

logger = logging.getLogger(__name__)

STORAGE_FAMILIES = (("BSU", "Bloc storage"), ("OSU", "Object storage"))


def install_storage(context: UpdateContext) -> None:
    for code, attrs in load_storage_types().items():
        install_storage_type(context, code, attrs)
    for service, type_ in STORAGE_FAMILIES:
        install_service_prices(install_storage_prices, context, service, type_)


def resolve_storage_type(context: UpdateContext, price: CsvPrice) -> StorageType | None:
    """Storage type of a row, from the last ``_`` fragment of its code.

    ``c_bsu_std`` tries ``std``, then ``bsu-std``, then ``bsu-standard``.
    """
    last = (price.code or "").split("_")[-1]
    service = price.service.lower()
    for candidate in (last, f"{service}-{last}", f"{service}-{last.replace('std', 'standard')}"):
        storage_type = context.storage_types.get(candidate)
        if storage_type is not None:
            return storage_type
    return None


def install_storage_prices(context: UpdateContext, price: CsvPrice, region: Region, cost_gb: float) -> None:
    storage_type = resolve_storage_type(context, price)
    if storage_type is None:
        logger.debug("Ignoring storage row %s: unknown storage type", price.code)
        return
    install_storage_price(context, region.name, storage_type, cost_gb)


def install_storage_price(
    context: UpdateContext, region: str, storage_type: StorageType, cost_gb: float
) -> StoragePrice:
    price = get_or_create(
        context.previous_storage,
        f"{region}/{storage_type.code}",
        lambda c: StoragePrice(node=context.node, code=c, type=storage_type.code),
    )

    def update(p: StoragePrice) -> None:
        p.location = install_region(context, region).code
        p.type = storage_type.code

    merge_as_needed(context, price, update, once=False, persist=False)

    def update_cost(cost: float, _raw: float) -> None:
        price.cost_gb = cost

    return save_as_needed(context, price, price.cost_gb, cost_gb, update_cost)

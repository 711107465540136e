"""Support plans, merged from the bundled reference tables."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

from pricefold.catalog.context import UpdateContext, get_or_create, merge_as_needed, save_as_needed
from pricefold.models import SupportPrice, SupportType

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent.parent / "data"


def _read_table(path: Path) -> list[dict[str, Any]]:
    """Rows of a reference CSV, empty cells as None."""
    with open(path, encoding="utf-8", newline="") as f:
        return [{k: (v if v != "" else None) for k, v in row.items()} for row in csv.DictReader(f)]


def load_support_types(path: str | Path | None = None) -> list[SupportType]:
    return [SupportType(**row) for row in _read_table(Path(path or _DATA_DIR / "support-type.csv"))]


def load_support_prices(path: str | Path | None = None) -> list[SupportPrice]:
    return [SupportPrice(**row) for row in _read_table(Path(path or _DATA_DIR / "support-price.csv"))]


def install_support(context: UpdateContext) -> None:
    for support_type in load_support_types():
        install_support_type(context, support_type.code, support_type)
    for support_price in load_support_prices():
        install_support_price(context, support_price.code, support_price)


def install_support_type(context: UpdateContext, code: str, definition: SupportType) -> SupportType:
    if ("SupportType", code) not in context.merged:
        context.status.nb_types += 1

    def update(t: SupportType) -> None:
        for name in SupportType.model_fields:
            if name not in ("node", "code"):
                setattr(t, name, getattr(definition, name))

    entity = get_or_create(context.support_types, code, lambda c: SupportType(node=context.node, code=c, name=c))
    return merge_as_needed(context, entity, update)


def install_support_price(context: UpdateContext, code: str, definition: SupportPrice) -> SupportPrice:
    price = get_or_create(context.previous_support, code, lambda c: SupportPrice(node=context.node, code=c))

    def update(p: SupportPrice) -> None:
        p.limit = definition.limit
        p.min = definition.min
        p.rate = definition.rate
        p.type = definition.type

    merge_as_needed(context, price, update, once=False, persist=False)

    def update_cost(cost: float, _raw: float) -> None:
        price.cost = cost

    return save_as_needed(context, price, price.cost, definition.cost or 0.0, update_cost)

"""Contract terms (on-demand, reservations) and billing period conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pricefold.config import HOURS_MONTH
from pricefold.models import BillingPeriod, PriceTerm

_TERMS_FILE = Path(__file__).parent.parent / "data" / "terms.yaml"


def term_code(name: str) -> str:
    """``RI - 1 M`` -> ``ri-1m``."""
    return name.lower().replace(" ", "")


def build_converters(period: int, hours_month: float = HOURS_MONTH) -> dict[BillingPeriod, float]:
    """Factors turning a cost quoted per billing period into this term's period.

    HOURLY always exists; MONTHLY needs a term of at least one month and YEARLY
    a term of at least twelve.
    """
    months = max(1, period)
    converters = {BillingPeriod.HOURLY: months * hours_month}
    if period >= 1:
        converters[BillingPeriod.MONTHLY] = float(months)
    if period >= 12:
        converters[BillingPeriod.YEARLY] = months / 12
    return converters


@dataclass
class Term:
    name: str
    # Months; 0 for on-demand
    period: int = 0
    # Cost multiplier, i.e. 1 - discount
    rate: float = 1.0
    billing_period: BillingPeriod = BillingPeriod.HOURLY
    entity: PriceTerm | None = None
    converters: dict[BillingPeriod, float] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return term_code(self.name)

    @property
    def discount(self) -> float:
        return 1 - self.rate

    def monthly_rate(self, hours_month: float) -> float:
        """Factor from an hourly on-demand cost to a monthly cost under this term."""
        return hours_month * self.rate

    def convert(self, cost: float, billing_period: BillingPeriod) -> float:
        return cost * self.converters[billing_period]


def load_terms(path: str | Path | None = None, hours_month: float = HOURS_MONTH) -> dict[str, Term]:
    """Load term definitions keyed by display name, converters computed."""
    data = yaml.safe_load(Path(path or _TERMS_FILE).read_text()) or {}
    terms: dict[str, Term] = {}
    for name, definition in data.items():
        definition = definition or {}
        period = int(definition.get("period", 0))
        terms[name] = Term(
            name=name,
            period=period,
            rate=float(definition.get("rate", 1.0)),
            billing_period=BillingPeriod(str(definition.get("billing_period", "HOURLY")).upper()),
            converters=build_converters(period, hours_month),
        )
    return terms

"""Instance price reconciliation: compose compute, RAM, OS and software costs per term.

For each compute row, region and term the engine emits:

* a Linux price (compute and RAM only), shared and dedicated;
* one price per licensed OS, adding the OS license either per VM or per core;
* one price per software edition of that OS, added per core on top of the OS.

Every price is upserted by its composite code; cost fields are only written
when the rounded per-CPU cost changed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pricefold.catalog.context import UpdateContext, get_or_create, merge_as_needed, round3, save_as_needed
from pricefold.catalog.model import prepare_licenses
from pricefold.catalog.reader import CsvPrice
from pricefold.catalog.resolver import install_instance_type, install_region, is_enabled_os, is_enabled_region
from pricefold.catalog.terms import Term
from pricefold.models import BillingPeriod, InstancePrice, InstanceType, Region, Tenancy, VmOs

logger = logging.getLogger(__name__)

COMPUTE_SERVICE = "FCU"
COMPUTE_TYPE = "Virtual machines"
RAM_CODE = "c_fcu_ram"
DEDICATED_CODE = "c_fcu_dedicated_vm_extra_hourly"

CODE_SEPARATOR = "/"

_PERIODS = list(BillingPeriod)

Installer = Callable[[UpdateContext, CsvPrice, Region, float], None]


def install_service_prices(installer: Installer, context: UpdateContext, service: str, type_: str) -> None:
    """Run ``installer`` on every regional cost of a product family, enabled regions only."""
    for price in context.csv_prices.get(service, type_):
        for region, cost in price.regions.items():
            if is_enabled_region(context, region):
                installer(context, price, install_region(context, region), cost)
            else:
                logger.debug("Ignoring %s in disabled region %s", price.code, region)


def _regional_costs(context: UpdateContext, code: str) -> dict[str, float]:
    row = context.csv_prices.find(COMPUTE_SERVICE, COMPUTE_TYPE, code)
    return dict(row.regions) if row else {}


def install_instances(context: UpdateContext) -> None:
    context.cost_ram = _regional_costs(context, RAM_CODE)
    context.dedicated = _regional_costs(context, DEDICATED_CODE)
    context.licenses = prepare_licenses(context.csv_prices)
    logger.debug("%d canonical license(s) after billing period folding", len(context.licenses))
    install_service_prices(install_instance_prices, context, COMPUTE_SERVICE, COMPUTE_TYPE)


def install_instance_prices(context: UpdateContext, price: CsvPrice, region: Region, cpu_cost: float) -> None:
    """Install the prices of one compute row in one region, for every term."""
    type_ = install_instance_type(context, price)
    if type_ is None:
        return

    cost_ram = context.cost_ram.get(region.name, 0.0)
    dedicated_rate = context.dedicated.get(region.name, 0.0) + 1
    for term in context.csv_terms.values():
        install_term_prices(context, price, region, cpu_cost, term, cost_ram, dedicated_rate, type_)


def install_term_prices(
    context: UpdateContext,
    price: CsvPrice,
    region: Region,
    cpu_cost: float,
    term: Term,
    cost_ram: float,
    dedicated_rate: float,
    type_: InstanceType,
) -> None:
    t_rate = term.monthly_rate(context.hours_month)
    t_cpu = cpu_cost * t_rate
    t_ram = cost_ram * t_rate
    dt_cpu = t_cpu * dedicated_rate
    dt_ram = t_ram * dedicated_rate

    def emit(vm_cost: float, extra_cpu: float, license_: CsvPrice) -> None:
        shared = (t_cpu + extra_cpu, t_ram, Tenancy.SHARED)
        dedicated = (dt_cpu + extra_cpu, dt_ram, Tenancy.DEDICATED)
        for cpu, ram, tenancy in (shared, dedicated):
            install_instance_price(context, region, term, type_, vm_cost, cpu, ram, tenancy, license_)

    # Linux, no license
    emit(0.0, 0.0, price)

    for os_ in dict.fromkeys(lic.os for lic in context.licenses if lic.software is None):
        os_price = get_closest_billing(context, os_, None, region, term)
        if os_price is None:
            continue
        os_cost = get_cost(os_price, region, term)
        if os_price.increment_cpu is None:
            os_vm_cost, os_cpu_cost = os_cost, 0.0
        else:
            os_vm_cost, os_cpu_cost = 0.0, os_cost / os_price.increment_cpu
        emit(os_vm_cost, os_cpu_cost, os_price)

        softwares = (lic.software for lic in context.licenses if lic.software and lic.os == os_price.os)
        for software in dict.fromkeys(softwares):
            s_price = get_closest_billing(context, os_price.os, software, region, term)
            if s_price is None:
                continue
            s_cpu_cost = get_cost(s_price, region, term) / (s_price.increment_cpu or 1)
            emit(os_vm_cost, os_cpu_cost + s_cpu_cost, s_price)


def get_closest_billing(
    context: UpdateContext, os_: VmOs, software: str | None, region: Region, term: Term
) -> CsvPrice | None:
    """The license of an OS (and software, None for the OS alone) closest to the term's billing period.

    Periods are tried from the term's own one down to the shortest, skipping
    those the term cannot convert.
    """
    candidates = [
        sibling
        for lic in context.licenses
        if lic.os == os_ and lic.software == software and region.name in lic.regions
        for sibling in lic.billing_periods or [lic]
        if region.name in sibling.regions
    ]
    for period in _PERIODS[_PERIODS.index(term.billing_period) :]:
        if period not in term.converters:
            continue
        for candidate in candidates:
            if candidate.billing_period == period:
                return candidate
    return None


def get_cost(price: CsvPrice, region: Region, term: Term) -> float:
    """Regional license cost expressed over the term's period."""
    return term.convert(price.regions[region.name], price.billing_period)


def instance_price_code(
    region: str, term: str, os_: VmOs, type_: str, tenancy: Tenancy, software: str | None
) -> str:
    parts = [region, term, os_.value, type_]
    if tenancy != Tenancy.SHARED:
        parts.append(tenancy.value)
    if software is not None:
        parts.append(software)
    return CODE_SEPARATOR.join(parts).lower()


def install_instance_price(
    context: UpdateContext,
    region: Region,
    term: Term,
    type_: InstanceType,
    vm_cost: float,
    cpu_cost: float,
    ram_cost: float,
    tenancy: Tenancy,
    license_: CsvPrice,
) -> InstancePrice | None:
    os_ = license_.os
    if not is_enabled_os(context, os_.value):
        logger.debug("Ignoring disabled OS %s", os_.value)
        return None

    price_term = term.entity
    code = instance_price_code(region.name, price_term.code, os_, type_.code, tenancy, license_.software)
    price = get_or_create(context.previous, code, lambda c: InstancePrice(node=context.node, code=c))

    def update(p: InstancePrice) -> None:
        p.location = region.code
        p.os = os_
        p.term = price_term.code
        p.tenancy = tenancy
        p.type = type_.code
        p.increment_cpu = license_.increment_cpu or 1.0
        p.min_cpu = float(license_.min_cpu)
        p.period = price_term.period
        p.software = license_.software

    merge_as_needed(context, price, update, once=False, persist=False)

    def update_cost(cost_cpu: float, _raw: float) -> None:
        price.cost_cpu = cost_cpu
        price.cost_ram = round3(ram_cost)
        price.cost = round3(vm_cost)
        price.cost_period = round3(vm_cost * max(1, price_term.period))

    return save_as_needed(context, price, price.cost_cpu, cpu_cost, update_cost)

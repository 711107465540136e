"""Tests for region, instance type, storage type and term resolution."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

import pytest
from pricefold.catalog.context import UpdateContext
from pricefold.catalog.reader import CsvPrice
from pricefold.catalog.resolver import (
    NEWEST_GENERATION,
    TIER_RATES,
    get_rate,
    install_instance_type,
    install_price_term,
    install_region,
    install_storage_type,
    is_enabled_os,
    is_enabled_region,
    is_enabled_type,
    load_regions,
    load_storage_types,
)
from pricefold.models import Rate, StorageOptimized, rate_index


@pytest.fixture
def context() -> UpdateContext:
    ctx = UpdateContext(store=MagicMock())
    ctx.map_region_by_id = load_regions()
    return ctx


def _compute(code: str, name: str = "Tina vCore") -> CsvPrice:
    return CsvPrice(service="FCU", type="Virtual machines", code=code, name=name)


class TestRating:
    def test_newest_generation_keeps_base(self):
        assert get_rate(Rate.GOOD, NEWEST_GENERATION, Rate.LOW) == Rate.GOOD

    def test_older_generation_is_downgraded(self):
        assert get_rate(Rate.BEST, 4, Rate.MEDIUM) == Rate.GOOD
        assert get_rate(Rate.BEST, 3, Rate.MEDIUM) == Rate.MEDIUM

    def test_floor(self):
        assert get_rate(Rate.GOOD, 2, Rate.LOW) == Rate.LOW
        assert get_rate(Rate.MEDIUM, 1, Rate.WORST) == Rate.WORST

    @pytest.mark.parametrize("tier", sorted(TIER_RATES))
    def test_monotonic_in_generation(self, tier):
        base, floor = TIER_RATES[tier]
        ratings = [rate_index(get_rate(base, gen, floor)) for gen in range(1, NEWEST_GENERATION + 1)]
        assert ratings == sorted(ratings)


class TestFilters:
    def test_region_fullmatch(self, context):
        context.valid_region = re.compile("eu-west-2")
        assert is_enabled_region(context, "eu-west-2")
        assert not is_enabled_region(context, "cloudgouv-eu-west-1")

    def test_type_ignores_case(self, context):
        context.valid_instance_type = re.compile("TINAV5.*", re.IGNORECASE)
        assert is_enabled_type(context, "tinav5.cxry.high")
        assert not is_enabled_type(context, "tinav4.cxry.high")

    def test_os(self, context):
        context.valid_os = re.compile("linux|rhel", re.IGNORECASE)
        assert is_enabled_os(context, "LINUX")
        assert not is_enabled_os(context, "WINDOWS")


class TestInstanceType:
    def test_resolved_attributes(self, context):
        t = install_instance_type(context, _compute("c_fcu_vcorev4_highest", "Tina v4 highest"))
        assert t.code == "tinav4.cxry.highest"
        assert t.name == "tinav4.cXrY.highest"
        assert t.description == "Tina v4 highest"
        assert t.cpu == 0 and t.ram == 0
        assert t.baseline == 100
        assert t.auto_scale is False
        assert t.processor == "Intel Xeon Broadwell"
        assert t.cpu_rate == Rate.GOOD
        assert t.ram_rate == t.cpu_rate
        assert t.network_rate == Rate.MEDIUM
        assert t.storage_rate == Rate.MEDIUM

    def test_medium_baseline(self, context):
        t = install_instance_type(context, _compute("c_fcu_vcorev5_medium"))
        assert t.baseline == 20
        assert t.cpu_rate == Rate.MEDIUM

    def test_not_a_type(self, context):
        assert install_instance_type(context, _compute("c_fcu_ram")) is None
        assert context.status.nb_types == 0

    def test_disabled_type(self, context):
        context.valid_instance_type = re.compile("tinav5.*", re.IGNORECASE)
        assert install_instance_type(context, _compute("c_fcu_vcorev3_high")) is None
        assert "tinav3.cxry.high" not in context.instance_types

    def test_created_once_and_saved_once(self, context):
        first = install_instance_type(context, _compute("c_fcu_vcorev5_high"))
        second = install_instance_type(context, _compute("c_fcu_vcorev5_high"))
        assert first is second
        assert context.store.save.call_count == 1
        assert context.status.nb_types == 1


class TestRegion:
    def test_details(self, context):
        region = install_region(context, "eu-west-2")
        assert region.code == "eu-west-2"
        assert region.name == "eu-west-2"
        assert region.description == "EUROPE"
        assert region.continent_m49 == 150
        assert context.status.nb_locations == 1

    def test_unknown_region_has_no_details(self, context):
        region = install_region(context, "ap-nowhere-1")
        assert region.description is None

    def test_counted_once(self, context):
        install_region(context, "eu-west-2")
        install_region(context, "eu-west-2")
        assert context.status.nb_locations == 1


class TestStorageType:
    def test_bundled_definitions(self):
        types = load_storage_types()
        assert set(types) == {"bsu-standard", "bsu-gp2", "bsu-io1", "bsu-snapshot", "osu-enterprise", "osu-premium"}

    def test_defaults_and_overrides(self, context):
        types = load_storage_types()
        io1 = install_storage_type(context, "bsu-io1", types["bsu-io1"])
        assert io1.name == "Enterprise"
        assert io1.minimal == 4
        assert io1.maximal == 14901
        assert io1.availability == 99
        assert io1.optimized == StorageOptimized.IOPS
        assert io1.latency == Rate.BEST

        osu = install_storage_type(context, "osu-premium", types["osu-premium"])
        assert osu.minimal == 0
        assert osu.maximal is None
        assert osu.durability9 == 11

    def test_name_defaults_to_code(self, context):
        assert install_storage_type(context, "bsu-custom", {}).name == "bsu-custom"


class TestPriceTerm:
    def test_reservation(self, context):
        term = install_price_term(context, "RI - 1 Y", 12)
        assert term.code == "ri-1y"
        assert term.name == "RI - 1 Y"
        assert term.period == 12
        assert term.reservation is True
        assert term.convertible_os is True
        assert term.convertible_family is False
        assert term.ephemeral is False

    def test_on_demand(self, context):
        assert install_price_term(context, "On-Demand", 0).reservation is False

"""Tests for license attribute inference."""

from __future__ import annotations

import pytest
from pricefold.catalog.inference import (
    infer_license,
    license_to_billing_period,
    license_to_increment_cpu,
    license_to_min_cpu,
    license_to_os,
    license_to_software,
)
from pricefold.catalog.reader import CsvPrice
from pricefold.models import BillingPeriod, VmOs


class TestOs:
    @pytest.mark.parametrize(
        "code,expected",
        [
            ("c_fcu_lic_oracle_linux_hourly", VmOs.ORACLE),
            ("c_fcu_lic_rhel_hourly", VmOs.RHEL),
            ("c_fcu_lic_suse_sles_hourly", VmOs.SUSE),
            ("c_fcu_lic_windows_2cores_hourly", VmOs.WINDOWS),
        ],
    )
    def test_rules(self, code, expected):
        assert license_to_os(code) == expected

    def test_case_insensitive(self):
        assert license_to_os("C_FCU_LIC_RHEL") == VmOs.RHEL

    def test_first_rule_wins(self):
        assert license_to_os("oracle_on_rhel") == VmOs.ORACLE


class TestSoftware:
    def test_edition_is_extracted(self):
        assert license_to_software("Microsoft SQL Server Web Edition") == "SQL SERVER WEB"

    def test_abbreviations_are_expanded(self):
        assert license_to_software("Microsoft SQL Server STD Edition, 4 core min") == "SQL SERVER STANDARD"
        assert license_to_software("SQL Server Ent Edition") == "SQL SERVER ENTERPRISE"

    def test_no_edition(self):
        assert license_to_software("Microsoft Windows Server 2019") is None


class TestBillingPeriod:
    @pytest.mark.parametrize(
        "code,expected",
        [
            ("c_fcu_lic_windows_hourly", BillingPeriod.HOURLY),
            ("c_fcu_lic_windows_2cores_monthly", BillingPeriod.MONTHLY),
            ("c_fcu_lic_sql_yearly", BillingPeriod.YEARLY),
        ],
    )
    def test_suffix(self, code, expected):
        assert license_to_billing_period(code) == expected

    def test_defaults_to_hourly(self):
        assert license_to_billing_period("c_fcu_lic_windows") == BillingPeriod.HOURLY

    def test_unknown_token_defaults_to_hourly(self):
        assert license_to_billing_period("c_fcu_lic_weekly") == BillingPeriod.HOURLY


class TestCpu:
    def test_min_cpu(self):
        assert license_to_min_cpu("Microsoft Windows Server 2019, 4 core min") == 4
        assert license_to_min_cpu("SQL Server Standard Edition 16 cores min") == 16

    def test_min_cpu_defaults_to_zero(self):
        assert license_to_min_cpu("Red Hat Enterprise Linux") == 0

    def test_increment_cpu(self):
        assert license_to_increment_cpu("c_fcu_lic_windows_2cores_hourly") == 2.0

    def test_per_vm_has_no_increment(self):
        assert license_to_increment_cpu("c_fcu_lic_rhel_hourly") is None

    def test_zero_cores_is_per_vm(self):
        assert license_to_increment_cpu("c_fcu_lic_windows_0cores_monthly") is None


class TestInferLicense:
    def test_all_attributes(self):
        price = CsvPrice(
            service="Licences",
            type="SQL Server",
            code="c_fcu_lic_sql_server_std_2cores_monthly",
            name="Microsoft SQL Server STD Edition, 4 core min",
        )
        infer_license(price)
        assert price.os == VmOs.WINDOWS
        assert price.software == "SQL SERVER STANDARD"
        assert price.billing_period == BillingPeriod.MONTHLY
        assert price.min_cpu == 4
        assert price.increment_cpu == 2.0
        assert price.billing_periods == []

    def test_is_idempotent(self):
        price = CsvPrice(code="c_fcu_lic_rhel_hourly", name="Red Hat Enterprise Linux")
        first = infer_license(price)
        snapshot = (first.os, first.software, first.billing_period, first.min_cpu, first.increment_cpu)
        second = infer_license(price)
        assert (second.os, second.software, second.billing_period, second.min_cpu, second.increment_cpu) == snapshot

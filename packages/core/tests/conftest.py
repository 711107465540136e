"""Shared fixtures for core tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from pricefold.catalog.store import PriceStore
from pricefold.config import ImportSettings

# Banner lines, header, compute rows, licenses, storage rows and one short row.
# Columns: SKU, Service, Type, Description, reference code, Unit, then the 5 regions.
CATALOG_CSV = """\
Outscale public price list,,,
Prices in EUR excluding taxes,,,

SKU,Service,Type,Description,Excel named range for reference,Unit,eu-west-2,cloudgouv-eu-west-1,us-west-1,us-east-2,cn-southeast-1
c_fcu_vcorev5_high,FCU,Virtual machines,Tina v5 vCore high,c_fcu_vcorev5_high,hour,0.05,0.06,0.055,,
c_fcu_vcorev3_medium,FCU,Virtual machines,Tina v3 vCore medium,,hour,0.03,,,,
c_fcu_ram,FCU,Virtual machines,RAM per GiB,c_fcu_ram,hour,0.005,0.006,0.005,,
c_fcu_dedicated_vm_extra_hourly,FCU,Virtual machines,Dedicated VM surcharge,c_fcu_dedicated_vm_extra_hourly,hour,0.1,0.1,0.1,,
c_fcu_gpu_k2,FCU,Virtual machines,GPU Nvidia K2,c_fcu_gpu_k2,hour,0.4,,,,
lic_win_h,Licences,Windows Server,"Microsoft Windows Server 2019, 4 core min",c_fcu_lic_windows_2cores_hourly,hour,0.01,0.01,0.01,,
lic_win_m,Licences,Windows Server,"Microsoft Windows Server 2019, 4 core min",c_fcu_lic_windows_2cores_monthly,month,10,10,10,,
lic_sql_m,Licences,SQL Server,"Microsoft SQL Server STD Edition, 4 core min",c_fcu_lic_sql_server_std_2cores_monthly,month,40,40,,,
lic_rhel_h,Licences,Red Hat,Red Hat Enterprise Linux,c_fcu_lic_rhel_hourly,hour,0.02,0.02,0.02,,
lic_w10,Licences,Windows 10,Microsoft Windows 10,c_fcu_lic_win10_hourly,hour,0.5,,,,
c_bsu_std,BSU,Bloc storage,Magnetic volume per GiB,c_bsu_std,month,0.04,0.05,,,
c_bsu_gp2,BSU,Bloc storage,Performance volume per GiB,c_bsu_gp2,month,0.11,0.12,,,
c_bsu_unknown,BSU,Bloc storage,Unknown volume,c_bsu_unknown,month,1,,,,
c_osu_enterprise,OSU,Object storage,OSU per GiB,c_osu_enterprise,month,0.02,,,,
footnote,only,three
"""

# One monthly reservation, as in the documented pricing example.
TERMS_YAML = """\
RI - 1 M:
  billing_period: MONTHLY
  period: 1
  rate: 0.9
"""


@pytest.fixture
def catalog_csv() -> str:
    return CATALOG_CSV


@pytest.fixture
def catalog_stream():
    return io.StringIO(CATALOG_CSV, newline="")


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    p = tmp_path / "outscale-prices.csv"
    p.write_text(CATALOG_CSV)
    return p


@pytest.fixture
def terms_file(tmp_path: Path) -> Path:
    p = tmp_path / "terms.yaml"
    p.write_text(TERMS_YAML)
    return p


@pytest.fixture
def store(tmp_path: Path) -> PriceStore:
    return PriceStore(tmp_path / "catalog.db")


@pytest.fixture
def settings(tmp_path: Path, terms_file: Path) -> ImportSettings:
    """eu-west-2 only, one RI - 1 M term, 720 hours a month."""
    return ImportSettings(
        regions="eu-west-2",
        hours_month=720,
        db_path=tmp_path / "catalog.db",
        terms_file=terms_file,
    )

"""Tests for import settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest
from pricefold.config import HOURS_MONTH, ImportSettings, find_project_root, load_settings
from pydantic import ValidationError


def _project(tmp_path: Path, config: str) -> Path:
    (tmp_path / ".pricefold").mkdir()
    (tmp_path / ".pricefold" / "config.yaml").write_text(config)
    return tmp_path


class TestDefaults:
    def test_defaults(self, tmp_path):
        settings = load_settings(start=tmp_path, environ={})
        assert settings.hours_month == HOURS_MONTH == 730
        assert settings.regions == ".*"
        assert settings.node == "service:prov:outscale"
        assert settings.terms_file is None

    def test_catalog_url(self):
        assert ImportSettings(prices_url="https://prices.example/").catalog_url == (
            "https://prices.example/prices/outscale-prices.csv"
        )

    def test_hours_month_must_be_positive(self):
        with pytest.raises(ValidationError):
            ImportSettings(hours_month=0)


class TestPrecedence:
    def test_project_config(self, tmp_path):
        root = _project(tmp_path, "regions: eu-west-2\nhours_month: 720\n")
        nested = root / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == root
        settings = load_settings(start=nested, environ={})
        assert settings.regions == "eu-west-2"
        assert settings.hours_month == 720

    def test_environment_over_project(self, tmp_path):
        _project(tmp_path, "regions: eu-west-2\n")
        environ = {"PRICEFOLD_REGIONS": "us-.*", "PRICEFOLD_HOURS_MONTH": "744"}
        settings = load_settings(start=tmp_path, environ=environ)
        assert settings.regions == "us-.*"
        assert settings.hours_month == 744

    def test_overrides_win(self, tmp_path):
        _project(tmp_path, "regions: eu-west-2\n")
        settings = load_settings(
            {"regions": "cn-.*", "os": None}, start=tmp_path, environ={"PRICEFOLD_REGIONS": "us-.*"}
        )
        assert settings.regions == "cn-.*"
        assert settings.os == ".*"

    def test_empty_config_file(self, tmp_path):
        _project(tmp_path, "")
        assert load_settings(start=tmp_path, environ={}).regions == ".*"

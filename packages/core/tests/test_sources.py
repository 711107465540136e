"""Tests for the catalog stream supplier. HTTP is mocked."""

from __future__ import annotations

import io
import urllib.error
from unittest.mock import MagicMock, patch

import pytest
from pricefold.catalog.reader import read_prices
from pricefold.sources import open_catalog


class TestOpenCatalog:
    def test_local_file(self, catalog_file):
        with open_catalog(catalog_file) as stream:
            assert len(list(read_prices(stream))) == 14

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            with open_catalog(tmp_path / "missing.csv"):
                pass

    def test_remote(self, catalog_csv):
        resp = io.BytesIO(catalog_csv.encode("utf-8"))
        with patch("pricefold.sources.urlopen_safe", return_value=resp) as urlopen:
            with open_catalog("https://prices.example/prices/outscale-prices.csv") as stream:
                prices = list(read_prices(stream))
        assert len(prices) == 14
        req = urlopen.call_args[0][0]
        assert req.full_url == "https://prices.example/prices/outscale-prices.csv"

    def test_remote_error_propagates(self):
        error = urllib.error.URLError("unreachable")
        with patch("pricefold.sources.urlopen_safe", side_effect=error):
            with pytest.raises(urllib.error.URLError):
                with open_catalog("https://prices.example/prices/outscale-prices.csv"):
                    pass

    def test_ssl_context_uses_certifi(self):
        with patch("pricefold.sources.urllib.request.urlopen", return_value=MagicMock()) as urlopen:
            from pricefold.sources import urlopen_safe

            urlopen_safe(MagicMock(), timeout=5)
        assert urlopen.call_args.kwargs["timeout"] == 5
        assert urlopen.call_args.kwargs["context"] is not None

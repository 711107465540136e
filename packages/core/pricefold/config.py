"""Import settings: defaults, project config file and environment overrides.

Precedence (lowest first): built-in defaults, ``.pricefold/config.yaml`` found
from the working directory upwards, ``PRICEFOLD_*`` environment variables,
then explicit overrides passed by the caller (the CLI options).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from pricefold.models import DEFAULT_NODE

DEFAULT_PRICES_URL = "https://outscale.ligoj.io"
DEFAULT_DB_PATH = Path.home() / ".pricefold" / "catalog.db"

# 24 * 365 / 12
HOURS_MONTH = 730.0

_ENV_PREFIX = "PRICEFOLD_"
_PROJECT_DIR = ".pricefold"


class ImportSettings(BaseModel):
    prices_url: str = DEFAULT_PRICES_URL
    # Filters, matched against the whole value. None-equivalent is ".*".
    regions: str = ".*"
    instance_type: str = ".*"
    os: str = ".*"
    hours_month: float = Field(default=HOURS_MONTH, gt=0)
    node: str = DEFAULT_NODE
    db_path: Path = DEFAULT_DB_PATH
    # Term definitions; the bundled ones when unset
    terms_file: Path | None = None

    @property
    def catalog_url(self) -> str:
        return self.prices_url.rstrip("/") + "/prices/outscale-prices.csv"


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for a .pricefold/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / _PROJECT_DIR).is_dir():
            return parent
    return None


def load_project_config(project_root: Path) -> dict[str, Any]:
    """Load .pricefold/config.yaml if it exists."""
    config_path = project_root / _PROJECT_DIR / "config.yaml"
    if config_path.exists():
        return yaml.safe_load(config_path.read_text()) or {}
    return {}


def _env_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name in ImportSettings.model_fields:
        raw = environ.get(_ENV_PREFIX + name.upper())
        if raw:
            values[name] = raw
    return values


def load_settings(
    overrides: dict[str, Any] | None = None,
    start: Path | None = None,
    environ: dict[str, str] | None = None,
) -> ImportSettings:
    """Merge every configuration source into validated settings."""
    values: dict[str, Any] = {}
    root = find_project_root(start)
    if root:
        values.update(load_project_config(root))
    values.update(_env_overrides(environ))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return ImportSettings(**values)

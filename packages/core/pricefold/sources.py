"""Catalog stream supplier: opens the vendor price CSV from a URL or a local file."""

from __future__ import annotations

import io
import logging
import ssl
import urllib.request
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

import certifi

logger = logging.getLogger(__name__)

_TIMEOUT = 60  # seconds


def _ssl_context() -> ssl.SSLContext:
    """Create an SSL context using the certifi CA bundle."""
    return ssl.create_default_context(cafile=certifi.where())


def urlopen_safe(req: urllib.request.Request, timeout: int = _TIMEOUT):
    """urlopen with certifi SSL; the caller owns (and closes) the response."""
    return urllib.request.urlopen(req, timeout=timeout, context=_ssl_context())


@contextmanager
def open_catalog(location: str | Path, timeout: int = _TIMEOUT) -> Iterator[TextIO]:
    """Yield a text stream over the catalog.

    ``location`` is an http(s) URL or a filesystem path. Network and file
    errors propagate: a catalog that cannot be read aborts the import.
    """
    text = str(location)
    if text.startswith(("http://", "https://")):
        logger.debug("Opening remote catalog %s", text)
        req = urllib.request.Request(text, headers={"Accept": "text/csv, */*"})
        with urlopen_safe(req, timeout=timeout) as resp:
            yield io.TextIOWrapper(resp, encoding="utf-8", newline="")
    else:
        logger.debug("Opening local catalog %s", text)
        with open(Path(text).expanduser(), encoding="utf-8", newline="") as f:
            yield f

"""pricefold command line interface."""

from pricefold import __version__

__all__ = ["__version__"]

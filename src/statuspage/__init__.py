"""statuspage - multi-tenant status pages with live incident updates."""

__version__ = "1.0.0"

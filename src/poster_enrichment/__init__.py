"""Entity resolution and enrichment for poster catalog records."""

__version__ = "0.1.0"

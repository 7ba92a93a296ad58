"""Business logic services for poster enrichment."""

from poster_enrichment.services.auto_link import AutoLinker, PosterAnalysis

__all__ = [
    "AutoLinker",
    "PosterAnalysis",
]

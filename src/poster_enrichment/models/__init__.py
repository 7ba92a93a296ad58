"""Database models for poster enrichment."""

from poster_enrichment.models.base import Base
from poster_enrichment.models.book import Book
from poster_enrichment.models.country import Country
from poster_enrichment.models.entity import (
    ENTITY_MODELS,
    Artist,
    EnrichedEntityMixin,
    Printer,
    Publisher,
)
from poster_enrichment.models.enums import Confidence, EntityKind
from poster_enrichment.models.poster import Poster

__all__ = [
    "ENTITY_MODELS",
    "Artist",
    "Base",
    "Book",
    "Confidence",
    "Country",
    "EnrichedEntityMixin",
    "EntityKind",
    "Poster",
    "Printer",
    "Publisher",
]

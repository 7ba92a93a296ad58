"""Enumerations for the poster enrichment data model."""

from enum import Enum


class EntityKind(str, Enum):
    """Which knowledge-base table a free-text name resolves into."""

    ARTIST = "artist"
    PRINTER = "printer"
    PUBLISHER = "publisher"
    BOOK = "book"


class Confidence(str, Enum):
    """Confidence labels emitted by the image analysis.

    Only CONFIRMED is strong enough to create artist and printer records.
    """

    CONFIRMED = "confirmed"
    LIKELY = "likely"
    UNCERTAIN = "uncertain"
    UNKNOWN = "unknown"

"""Knowledge-base entities: artists, printers and publishers.

All three share the same shape: a unique (case-insensitive) name, read-only
aliases, type-specific structured fields, and the enrichment block
(wikipedia_url, bio, image_url, verified).
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from poster_enrichment.models.base import Base
from poster_enrichment.models.enums import EntityKind


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class EnrichedEntityMixin:
    """Columns shared by every externally enriched entity."""

    kind: ClassVar[EntityKind]

    # Type-specific enrichment columns
    structured_fields: ClassVar[tuple[str, ...]] = ()
    # Fields that make the LLM fallback unnecessary when search already set one
    key_fields: ClassVar[tuple[str, ...]] = ()

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    aliases: Mapped[list[str] | None] = mapped_column(
        JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")
    )
    wikipedia_url: Mapped[str | None] = mapped_column(String(500))
    bio: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(500))
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def is_incomplete(self) -> bool:
        """True when no enrichment field at all is populated."""
        enrichment = (*self.structured_fields, "wikipedia_url", "bio")
        return all(_is_blank(getattr(self, f)) for f in enrichment)


class Artist(EnrichedEntityMixin, Base):
    """A poster artist, illustrator or studio."""

    __tablename__ = "artists"

    kind = EntityKind.ARTIST
    structured_fields = ("nationality", "birth_year", "death_year")
    key_fields = ("nationality", "birth_year")

    nationality: Mapped[str | None] = mapped_column(String(100))
    birth_year: Mapped[int | None] = mapped_column(Integer)
    death_year: Mapped[int | None] = mapped_column(Integer)


class Printer(EnrichedEntityMixin, Base):
    """A printing house or lithography workshop."""

    __tablename__ = "printers"

    kind = EntityKind.PRINTER
    structured_fields = ("location", "country", "founded_year", "closed_year")
    key_fields = ("location", "country", "founded_year")

    location: Mapped[str | None] = mapped_column(String(100))
    country: Mapped[str | None] = mapped_column(String(100))
    founded_year: Mapped[int | None] = mapped_column(Integer)
    closed_year: Mapped[int | None] = mapped_column(Integer)


class Publisher(EnrichedEntityMixin, Base):
    """A magazine, newspaper, journal or publishing house."""

    __tablename__ = "publishers"

    kind = EntityKind.PUBLISHER
    structured_fields = ("publication_type", "country", "founded_year", "ceased_year")
    key_fields = ("publication_type", "country", "founded_year")

    publication_type: Mapped[str | None] = mapped_column(String(50))
    country: Mapped[str | None] = mapped_column(String(100))
    founded_year: Mapped[int | None] = mapped_column(Integer)
    ceased_year: Mapped[int | None] = mapped_column(Integer)


Index("uq_artists_name_lower", func.lower(Artist.name), unique=True)
Index("uq_printers_name_lower", func.lower(Printer.name), unique=True)
Index("uq_publishers_name_lower", func.lower(Publisher.name), unique=True)

ENTITY_MODELS: dict[EntityKind, type[Artist] | type[Printer] | type[Publisher]] = {
    EntityKind.ARTIST: Artist,
    EntityKind.PRINTER: Printer,
    EntityKind.PUBLISHER: Publisher,
}

"""Poster model.

Posters belong to the cataloging application; only the columns the
auto-linker writes are mapped here.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from poster_enrichment.models.base import Base


class Poster(Base):
    """A catalogued poster and its links into the knowledge base."""

    __tablename__ = "posters"

    id: Mapped[int] = mapped_column(primary_key=True)
    artist_id: Mapped[int | None] = mapped_column(ForeignKey("artists.id"), index=True)
    printer_id: Mapped[int | None] = mapped_column(ForeignKey("printers.id"), index=True)
    publisher_id: Mapped[int | None] = mapped_column(ForeignKey("publishers.id"), index=True)
    book_id: Mapped[int | None] = mapped_column(ForeignKey("books.id"), index=True)
    last_modified: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

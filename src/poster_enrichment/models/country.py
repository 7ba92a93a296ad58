"""Country model for the managed country list."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from poster_enrichment.models.base import Base


class Country(Base):
    """A canonical country name.

    Rows are matched on name OR code, so a country seen once under a historical
    alias ("USSR", "Soviet Union") is never inserted twice.
    """

    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    code: Mapped[str | None] = mapped_column(String(3))
    display_order: Mapped[int] = mapped_column(Integer, default=0, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

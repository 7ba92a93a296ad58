"""Country normalization against the managed country list.

Free-text country names ("U.S.A.", "Soviet Union", "England") are mapped to
a two-letter code through a static alias table, then matched against stored
rows by name, stored code, or derived code. The first spelling seen for a
country becomes its canonical name; later aliases resolve to it.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from poster_enrichment.models.country import Country

logger = logging.getLogger(__name__)

# Lowercased free-text name -> ISO-like code (historical states keep their own)
COUNTRY_CODES: dict[str, str] = {
    # United States
    "usa": "US",
    "u.s.a.": "US",
    "us": "US",
    "u.s.": "US",
    "america": "US",
    "united states": "US",
    "united states of america": "US",
    "american": "US",
    # United Kingdom
    "uk": "GB",
    "u.k.": "GB",
    "united kingdom": "GB",
    "great britain": "GB",
    "britain": "GB",
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "british": "GB",
    # Soviet Union / Russia
    "ussr": "SU",
    "u.s.s.r.": "SU",
    "soviet union": "SU",
    "russia": "RU",
    "russian federation": "RU",
    # Germany
    "germany": "DE",
    "west germany": "DE",
    "deutschland": "DE",
    "east germany": "DD",
    "gdr": "DD",
    "german democratic republic": "DD",
    # Czechoslovakia and successors
    "czechoslovakia": "CS",
    "czech republic": "CZ",
    "czechia": "CZ",
    "slovakia": "SK",
    # Yugoslavia
    "yugoslavia": "YU",
    "former yugoslavia": "YU",
    # Western Europe
    "france": "FR",
    "italy": "IT",
    "spain": "ES",
    "portugal": "PT",
    "belgium": "BE",
    "netherlands": "NL",
    "holland": "NL",
    "the netherlands": "NL",
    "switzerland": "CH",
    "austria": "AT",
    "ireland": "IE",
    "luxembourg": "LU",
    # Northern / Eastern Europe
    "denmark": "DK",
    "norway": "NO",
    "sweden": "SE",
    "finland": "FI",
    "poland": "PL",
    "hungary": "HU",
    "romania": "RO",
    "bulgaria": "BG",
    "greece": "GR",
    "ukraine": "UA",
    "turkey": "TR",
    # Americas
    "canada": "CA",
    "mexico": "MX",
    "cuba": "CU",
    "argentina": "AR",
    "brazil": "BR",
    "chile": "CL",
    "peru": "PE",
    # Asia / Oceania / Africa
    "japan": "JP",
    "china": "CN",
    "india": "IN",
    "vietnam": "VN",
    "australia": "AU",
    "new zealand": "NZ",
    "egypt": "EG",
    "south africa": "ZA",
    "azerbaijan": "AZ",
}


def derive_country_code(free_text: str) -> str | None:
    """Return the code for a free-text country name, if known."""
    return COUNTRY_CODES.get(free_text.strip().lower())


class CountryNormalizer:
    """Canonicalizes country names against the ``countries`` table.

    Usage:
        normalizer = CountryNormalizer(session)
        canonical = await normalizer.normalize("U.S.A.")
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def normalize(self, free_text: str) -> str:
        """Return the canonical stored name for ``free_text``.

        Creates a country row on first sight. Storage errors are logged and
        the trimmed input is returned so callers are never blocked.
        """
        trimmed = free_text.strip()
        if not trimmed:
            return trimmed

        lowered = trimmed.lower()
        code = derive_country_code(trimmed)

        try:
            conditions = [
                func.lower(Country.name) == lowered,
                func.lower(Country.code) == lowered,
            ]
            if code is not None:
                conditions.append(func.lower(Country.code) == code.lower())

            stmt = (
                select(Country)
                .where(or_(*conditions))
                .order_by(Country.display_order, Country.id)
                .limit(1)
            )
            result = await self._session.execute(stmt)
            existing = result.scalar_one_or_none()
            if existing is not None:
                return existing.name

            max_order = await self._session.scalar(
                select(func.coalesce(func.max(Country.display_order), 0))
            )
            # Only the savepoint rolls back if the insert is rejected
            async with self._session.begin_nested():
                self._session.add(
                    Country(name=trimmed, code=code, display_order=(max_order or 0) + 1)
                )
                await self._session.flush()
            logger.info("Created country %r (code=%s)", trimmed, code)
        except SQLAlchemyError:
            logger.exception("Country normalization failed for %r", trimmed)

        return trimmed

"""Reconciliation store: find-or-create for knowledge-base entities.

State machine per ``find_or_create`` call:

1. Lookup by case-insensitive name, then by alias membership.
2. Found, complete and not suspicious: return it without any external call.
3. Found but incomplete or suspicious: re-run search (+ LLM fallback),
   normalize the country, and merge into the record.
4. Not found: run search (+ LLM fallback) and insert a new row.

A record is suspicious when its stored bio names a wrong profession, which
means an earlier run matched the wrong encyclopedia page. Merging never
overwrites populated columns, except that a suspicious record's encyclopedia
link, image and bio are replaced (or cleared) by re-validation.

Storage errors propagate as ``SQLAlchemyError``; callers decide whether a
failure is fatal. The store flushes but never commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from poster_enrichment.enrichment.keywords import has_negative_keyword
from poster_enrichment.enrichment.llm_research import LLMResearcher
from poster_enrichment.enrichment.schemas import EnrichmentFields
from poster_enrichment.enrichment.search import EntitySearcher
from poster_enrichment.models.book import Book
from poster_enrichment.models.entity import ENTITY_MODELS, EnrichedEntityMixin
from poster_enrichment.models.enums import Confidence, EntityKind
from poster_enrichment.resolution.countries import CountryNormalizer

logger = logging.getLogger(__name__)

# Kinds that are only created from a confirmed attribution
GATED_KINDS = frozenset({EntityKind.ARTIST, EntityKind.PRINTER})

# Names the image analysis emits when it could not read anything useful
PLACEHOLDER_NAMES = frozenset(
    {"unknown", "unidentified", "n/a", "none", "anonymous", "illegible", "-", "?"}
)


def is_placeholder_name(name: str | None) -> bool:
    """True for blank names and known placeholders like "Unknown"."""
    if name is None:
        return True
    stripped = name.strip()
    return not stripped or stripped.lower() in PLACEHOLDER_NAMES


def is_confirmed(confidence: Confidence | str | None) -> bool:
    return bool(confidence) and confidence.strip().lower() == Confidence.CONFIRMED.value


@dataclass
class ResolvedEntity:
    """Outcome of a find-or-create call."""

    id: int
    is_new: bool


@dataclass
class Discovery:
    """Everything the external sources returned for one name."""

    wikipedia_url: str | None = None
    image_url: str | None = None
    fields: EnrichmentFields = field(default_factory=EnrichmentFields)

    @property
    def matched(self) -> bool:
        return self.wikipedia_url is not None


class ReconciliationStore:
    """Resolves free-text names to knowledge-base rows.

    Usage:
        async with async_session_factory() as session:
            store = ReconciliationStore(session, searcher=searcher, researcher=researcher)
            resolved = await store.find_or_create("Paul Colin", EntityKind.ARTIST, "confirmed")
            await session.commit()
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        searcher: EntitySearcher,
        researcher: LLMResearcher,
        countries: CountryNormalizer | None = None,
    ) -> None:
        self._session = session
        self._searcher = searcher
        self._researcher = researcher
        self._countries = countries or CountryNormalizer(session)

    async def find_or_create(
        self,
        name: str,
        kind: EntityKind,
        confidence: Confidence | str | None = None,
    ) -> ResolvedEntity | None:
        """Find or create the artist, printer or publisher called ``name``.

        Args:
            name: Free-text name from the image analysis.
            kind: Which table to resolve into (not BOOK; see find_or_create_book).
            confidence: Analysis confidence. Artists and printers require
                "confirmed"; publishers ignore it.

        Returns:
            ResolvedEntity, or None when the name is ineligible.

        Raises:
            SQLAlchemyError: On any storage failure.
        """
        if kind not in ENTITY_MODELS:
            raise ValueError(f"find_or_create does not handle {kind.value!r}")
        if is_placeholder_name(name):
            return None
        if kind in GATED_KINDS and not is_confirmed(confidence):
            logger.debug(
                "Skipping %s %r: confidence %r is not confirmed", kind.value, name, confidence
            )
            return None

        name = name.strip()
        existing = await self._lookup(name, kind)

        if existing is not None:
            suspicious = has_negative_keyword(existing.bio)
            if not suspicious and not existing.is_incomplete():
                logger.debug("Found complete %s %r (id=%d)", kind.value, name, existing.id)
                return ResolvedEntity(id=existing.id, is_new=False)

            logger.info(
                "Re-validating %s %r (id=%d, suspicious=%s)",
                kind.value,
                name,
                existing.id,
                suspicious,
            )
            discovery = await self._discover(name, kind)
            if suspicious:
                _heal_suspicious(existing, discovery)
            else:
                _coalesce_into(existing, discovery)
            await self._session.flush()
            return ResolvedEntity(id=existing.id, is_new=False)

        discovery = await self._discover(name, kind)
        return await self._insert(name, kind, discovery)

    async def find_or_create_book(
        self,
        title: str,
        *,
        author: str | None = None,
        publication_year: int | None = None,
    ) -> ResolvedEntity | None:
        """Find a book by exact (case-insensitive) title, or create it.

        Missing author/year on an existing book are filled from the caller's
        values. Books are never externally enriched, so new rows are
        unverified.
        """
        if is_placeholder_name(title):
            return None
        title = title.strip()
        author = author.strip() if author and author.strip() else None

        existing = await self._lookup_book(title)
        if existing is not None:
            if existing.author is None and author is not None:
                existing.author = author
            if existing.publication_year is None and publication_year is not None:
                existing.publication_year = publication_year
            await self._session.flush()
            return ResolvedEntity(id=existing.id, is_new=False)

        book = Book(
            title=title,
            author=author,
            publication_year=publication_year,
            verified=False,
        )
        self._session.add(book)
        try:
            await self._session.flush()
        except IntegrityError:
            logger.warning("Concurrent insert of book %r; re-reading", title)
            await self._session.rollback()
            existing = await self._lookup_book(title)
            if existing is None:
                raise
            return ResolvedEntity(id=existing.id, is_new=False)

        logger.info("Created book %r (id=%d)", title, book.id)
        return ResolvedEntity(id=book.id, is_new=True)

    # ── Lookup ──────────────────────────────────────────────────────────────

    async def _lookup(self, name: str, kind: EntityKind) -> Any:
        model = ENTITY_MODELS[kind]

        stmt = select(model).where(func.lower(model.name) == name.lower()).limit(1)
        result = await self._session.execute(stmt)
        found = result.scalar_one_or_none()
        if found is not None:
            return found

        aliases = self._alias_elements(model)
        alias_match = select(aliases.c.value).where(aliases.c.value == name).exists()
        stmt = select(model).where(alias_match).order_by(model.id).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _alias_elements(self, model: Any) -> Any:
        """Table-valued expansion of ``model.aliases`` for the bound dialect."""
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return func.jsonb_array_elements_text(model.aliases).table_valued("value")
        return func.json_each(model.aliases).table_valued("value")

    async def _lookup_book(self, title: str) -> Book | None:
        stmt = select(Book).where(func.lower(Book.title) == title.lower()).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    # ── Enrichment ──────────────────────────────────────────────────────────

    async def _discover(self, name: str, kind: EntityKind) -> Discovery:
        """Search the encyclopedia, then ask the LLM if that was not enough."""
        discovery = Discovery()

        candidate = await self._searcher.search_entity(name, kind)
        if candidate is not None:
            discovery.wikipedia_url = candidate.wikipedia_url
            discovery.image_url = candidate.image_url
            discovery.fields = candidate.fields

        if candidate is None or not discovery.fields.has_structured_fields(kind):
            researched = await self._researcher.research(name, kind)
            if researched is not None:
                logger.info("Using LLM research for %s %r", kind.value, name)
                discovery.fields = discovery.fields.coalesce(researched)

        if discovery.fields.country:
            discovery.fields.country = await self._countries.normalize(discovery.fields.country)

        return discovery

    # ── Insert ──────────────────────────────────────────────────────────────

    async def _insert(self, name: str, kind: EntityKind, discovery: Discovery) -> ResolvedEntity:
        model = ENTITY_MODELS[kind]
        values = {
            column: getattr(discovery.fields, column)
            for column in model.structured_fields
            if not _is_blank(getattr(discovery.fields, column))
        }
        record = model(
            name=name,
            wikipedia_url=discovery.wikipedia_url,
            image_url=discovery.image_url,
            bio=discovery.fields.bio,
            verified=discovery.matched,
            **values,
        )
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError:
            # Another writer inserted the same name first; return theirs
            logger.warning("Concurrent insert of %s %r; re-reading", kind.value, name)
            await self._session.rollback()
            existing = await self._lookup(name, kind)
            if existing is None:
                raise
            return ResolvedEntity(id=existing.id, is_new=False)

        logger.info(
            "Created %s %r (id=%d, verified=%s)", kind.value, name, record.id, record.verified
        )
        return ResolvedEntity(id=record.id, is_new=True)



def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coalesce_structured(record: EnrichedEntityMixin, fields: EnrichmentFields) -> None:
    for column in record.structured_fields:
        new_value = getattr(fields, column)
        if _is_blank(getattr(record, column)) and not _is_blank(new_value):
            setattr(record, column, new_value)


def _coalesce_into(record: EnrichedEntityMixin, discovery: Discovery) -> None:
    """Fill empty columns only; verified latches on once a page is found."""
    _coalesce_structured(record, discovery.fields)
    if _is_blank(record.wikipedia_url) and discovery.wikipedia_url:
        record.wikipedia_url = discovery.wikipedia_url
    if _is_blank(record.image_url) and discovery.image_url:
        record.image_url = discovery.image_url
    if _is_blank(record.bio) and not _is_blank(discovery.fields.bio):
        record.bio = discovery.fields.bio
    record.verified = record.verified or discovery.matched


def _heal_suspicious(record: EnrichedEntityMixin, discovery: Discovery) -> None:
    """Replace a wrong-profession match. Name and aliases are never touched."""
    _coalesce_structured(record, discovery.fields)

    if discovery.matched:
        logger.info("Replaced suspicious match for %r with %s", record.name, discovery.wikipedia_url)
        record.wikipedia_url = discovery.wikipedia_url
        record.image_url = discovery.image_url
        record.bio = discovery.fields.bio
        record.verified = True
        return

    logger.info("Cleared suspicious match for %r; no valid replacement found", record.name)
    record.wikipedia_url = None
    record.image_url = None
    record.verified = False
    if not _is_blank(discovery.fields.bio):
        record.bio = discovery.fields.bio

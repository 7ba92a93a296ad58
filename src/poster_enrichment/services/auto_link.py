"""Auto-linking of a poster's analysed attributions to knowledge-base rows.

Fields are resolved strictly in order: artist, printer, publisher, book.
Each field runs in its own session and commits on its own, so a storage
failure on one field rolls back only that field and the rest still link.
Ineligible or unresolved fields are simply absent from the result.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from poster_enrichment.enrichment.llm_research import LLMResearcher
from poster_enrichment.enrichment.search import EntitySearcher
from poster_enrichment.models.enums import Confidence, EntityKind
from poster_enrichment.models.poster import Poster
from poster_enrichment.resolution.store import (
    ReconciliationStore,
    ResolvedEntity,
    is_placeholder_name,
)

logger = logging.getLogger(__name__)

Resolver = Callable[[ReconciliationStore], Awaitable[ResolvedEntity | None]]


class PosterAnalysis(BaseModel):
    """Attributions read off a poster by the image analysis.

    Accepts both snake_case and the analysis service's camelCase keys
    (``artistConfidence``, ``bookAuthor``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    artist: str | None = None
    artist_confidence: Confidence | None = None
    printer: str | None = None
    printer_confidence: Confidence | None = None
    publication: str | None = None
    book: str | None = None
    book_author: str | None = None
    book_year: int | None = None

    @field_validator("artist_confidence", "printer_confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, v: Any) -> Any:
        # Unrecognised labels mean "not confirmed", not a bad payload
        if isinstance(v, str):
            label = v.strip().lower()
            return label if label in {c.value for c in Confidence} else None
        return v


class AutoLinker:
    """Links a poster to its artist, printer, publisher and book.

    Usage:
        linker = AutoLinker(async_session_factory, searcher, researcher)
        linked = await linker.auto_link(42, PosterAnalysis(artist="Paul Colin", ...))
        # {"artist_linked": ResolvedEntity(id=7, is_new=True), ...}
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: EntitySearcher,
        researcher: LLMResearcher,
    ) -> None:
        self._session_factory = session_factory
        self._searcher = searcher
        self._researcher = researcher

    async def auto_link(
        self, poster_id: int, analysis: PosterAnalysis
    ) -> dict[str, ResolvedEntity]:
        """Resolve each eligible field and write its foreign key on the poster.

        Args:
            poster_id: Primary key of the poster to update.
            analysis: The poster's image-analysis attributions.

        Returns:
            Map of ``artist_linked``/``printer_linked``/``publisher_linked``/
            ``book_linked`` to the resolved entity, for linked fields only.
        """
        linked: dict[str, ResolvedEntity] = {}

        steps: list[tuple[str, str, str | None, Resolver]] = [
            (
                "artist_linked",
                "artist_id",
                analysis.artist,
                lambda store: store.find_or_create(
                    analysis.artist or "", EntityKind.ARTIST, analysis.artist_confidence
                ),
            ),
            (
                "printer_linked",
                "printer_id",
                analysis.printer,
                lambda store: store.find_or_create(
                    analysis.printer or "", EntityKind.PRINTER, analysis.printer_confidence
                ),
            ),
            (
                "publisher_linked",
                "publisher_id",
                analysis.publication,
                lambda store: store.find_or_create(
                    analysis.publication or "", EntityKind.PUBLISHER
                ),
            ),
            (
                "book_linked",
                "book_id",
                analysis.book,
                lambda store: store.find_or_create_book(
                    analysis.book or "",
                    author=analysis.book_author,
                    publication_year=analysis.book_year,
                ),
            ),
        ]

        for key, column, name, resolve in steps:
            if is_placeholder_name(name):
                continue
            resolved = await self._link_field(poster_id, column, resolve)
            if resolved is not None:
                linked[key] = resolved

        logger.info("Auto-linked poster %d: %s", poster_id, sorted(linked))
        return linked

    async def _link_field(
        self, poster_id: int, column: str, resolve: Resolver
    ) -> ResolvedEntity | None:
        async with self._session_factory() as session:
            try:
                store = ReconciliationStore(
                    session, searcher=self._searcher, researcher=self._researcher
                )
                resolved = await resolve(store)
                if resolved is None:
                    return None

                await session.execute(
                    update(Poster)
                    .where(Poster.id == poster_id)
                    .values({column: resolved.id, "last_modified": datetime.now(UTC)})
                )
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Failed to link %s on poster %d", column, poster_id)
                return None

        return resolved

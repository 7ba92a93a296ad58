"""Encyclopedia search for artists, printers and publishers.

Pipeline per name (all sequential, no retries):
1. open-search for up to ``limit`` candidates
2. one batch request for their short descriptions/extracts
3. drop disambiguation pages, score, select (see scoring.py)
4. for the accepted candidate: page summary + wikitext -> structured fields

Any network failure or malformed payload at any step ends the pipeline with
None.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from poster_enrichment.clients.wikipedia import PageSummary, WikipediaClient
from poster_enrichment.config import settings
from poster_enrichment.enrichment.infobox import extract_fields
from poster_enrichment.enrichment.schemas import EnrichmentCandidate
from poster_enrichment.enrichment.scoring import CandidateScorer, SearchHit
from poster_enrichment.models.enums import EntityKind

logger = logging.getLogger(__name__)

FETCH_ERRORS = (httpx.HTTPError, ValidationError, ValueError)

SEARCHABLE_KINDS = frozenset({EntityKind.ARTIST, EntityKind.PRINTER, EntityKind.PUBLISHER})


class EntitySearcher:
    """Finds and extracts the best Wikipedia page for a name.

    Usage:
        async with WikipediaClient() as client:
            searcher = EntitySearcher(client)
            candidate = await searcher.search_entity("Paul Colin", EntityKind.ARTIST)
    """

    def __init__(
        self,
        client: WikipediaClient,
        scorer: CandidateScorer | None = None,
        *,
        limit: int | None = None,
    ) -> None:
        self._client = client
        self._scorer = scorer or CandidateScorer()
        self._limit = limit or settings.search_limit

    async def search_entity(self, name: str, kind: EntityKind) -> EnrichmentCandidate | None:
        """Return the accepted encyclopedia match for ``name``, or None."""
        name = name.strip()
        if not name or kind not in SEARCHABLE_KINDS:
            return None

        try:
            results = await self._client.open_search(name, limit=self._limit)
        except FETCH_ERRORS as e:
            logger.warning("Wikipedia search failed for %r: %s", name, e)
            return None
        if not results:
            logger.info("No Wikipedia results for %r", name)
            return None

        titles = [title for title, _ in results[: self._limit]]
        try:
            extracts = await self._client.batch_summaries(titles)
        except FETCH_ERRORS as e:
            logger.warning("Wikipedia batch summary failed for %r: %s", name, e)
            return None

        hits: list[SearchHit] = []
        for title, url in results[: self._limit]:
            page = extracts.get(title)
            description = ""
            if page is not None:
                description = " ".join(p for p in (page.description, page.extract) if p)
            hits.append(SearchHit(title=title, url=url, description=description))

        best = self._scorer.select(name, kind, hits)
        if best is None:
            return None

        try:
            summary = await self._client.page_summary(best.title)
        except FETCH_ERRORS as e:
            logger.warning("Wikipedia summary failed for %r: %s", best.title, e)
            return None

        try:
            wikitext = await self._client.wikitext(best.title)
        except FETCH_ERRORS as e:
            logger.warning("Wikipedia wikitext fetch failed for %r: %s", best.title, e)
            return None

        extracted = extract_fields(wikitext, summary.extract, kind)
        extracted.bio = summary.extract or None

        logger.info(
            "Matched %s %r to Wikipedia page %r (score=%d)",
            kind.value,
            name,
            best.title,
            best.score,
        )
        return EnrichmentCandidate(
            title=best.title,
            wikipedia_url=best.url,
            score=best.score,
            description=summary.extract,
            image_url=_thumbnail_url(summary),
            fields=extracted,
        )


def _thumbnail_url(summary: PageSummary) -> str | None:
    return summary.thumbnail.source if summary.thumbnail else None

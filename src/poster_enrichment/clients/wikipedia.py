"""Async client for the Wikipedia endpoints used during enrichment.

Four calls, all plain GETs:
- open-search: up to N title/URL candidates for a name
- batch summaries: short description + intro extract for several titles
- page summary: REST summary (extract + thumbnail) for one title
- wikitext: raw page markup for infobox parsing

Methods raise ``httpx.HTTPError`` on transport/status failures and
``ValueError`` (including ``pydantic.ValidationError``) on payloads of the
wrong shape. Callers decide how to degrade.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from poster_enrichment.config import settings

logger = logging.getLogger(__name__)


# ── Wikipedia payloads ──────────────────────────────────────────────────────

# [query, titles[], descriptions[], urls[]]
OpenSearchResponse = TypeAdapter(tuple[str, list[str], list[str], list[str]])


class PageExtract(BaseModel):
    """One page from a batch extracts/description query."""

    title: str
    extract: str | None = None
    description: str | None = None
    missing: bool = False

    @classmethod
    def from_page(cls, raw: dict[str, Any]) -> PageExtract:
        # MediaWiki flags missing pages with an empty-string "missing" key
        data = dict(raw)
        data["missing"] = "missing" in raw
        return cls.model_validate(data)


class TitleMapping(BaseModel):
    """A normalized/redirected title pair from a MediaWiki query."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")


class BatchQuery(BaseModel):
    pages: dict[str, dict[str, Any]] = Field(default_factory=dict)
    normalized: list[TitleMapping] = Field(default_factory=list)
    redirects: list[TitleMapping] = Field(default_factory=list)


class BatchSummaryResponse(BaseModel):
    """Page-keyed map returned by ``action=query&prop=extracts|description``."""

    query: BatchQuery


class Thumbnail(BaseModel):
    source: str


class PageSummary(BaseModel):
    """REST ``page/summary/{title}`` payload (only the fields we read)."""

    title: str | None = None
    extract: str | None = None
    thumbnail: Thumbnail | None = None


class ParsedWikitext(BaseModel):
    title: str | None = None
    wikitext: dict[str, str]


class ParseResponse(BaseModel):
    """``action=parse&prop=wikitext`` payload."""

    parse: ParsedWikitext

    @property
    def text(self) -> str:
        return self.parse.wikitext.get("*", "")


class WikipediaClient:
    """Thin typed wrapper over the MediaWiki action API and REST API.

    The underlying ``httpx.AsyncClient`` may be injected (tests pass one with
    a ``MockTransport``); otherwise one is created and owned by this client.
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        *,
        api_url: str | None = None,
        rest_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_url = api_url or settings.wikipedia_api_url
        self._rest_url = (rest_url or settings.wikipedia_rest_url).rstrip("/")
        self._headers = {"User-Agent": user_agent or settings.wikipedia_user_agent}
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=timeout or settings.http_timeout_seconds,
            headers=self._headers,
        )

    async def __aenter__(self) -> WikipediaClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def open_search(self, query: str, limit: int = 5) -> list[tuple[str, str]]:
        """Return up to ``limit`` (title, url) pairs for ``query``."""
        payload = await self._get_json(
            self._api_url,
            params={
                "action": "opensearch",
                "search": query,
                "limit": limit,
                "namespace": 0,
                "format": "json",
            },
        )
        _, titles, _, urls = OpenSearchResponse.validate_python(payload)
        return list(zip(titles, urls))[:limit]

    async def batch_summaries(self, titles: list[str]) -> dict[str, PageExtract]:
        """Fetch short descriptions and intro extracts for several titles at once.

        Returns a map keyed by the titles as requested; normalized and
        redirected titles are mapped back. Missing pages are omitted.
        """
        if not titles:
            return {}

        payload = await self._get_json(
            self._api_url,
            params={
                "action": "query",
                "prop": "extracts|description",
                "exintro": 1,
                "explaintext": 1,
                "exlimit": len(titles),
                "redirects": 1,
                "titles": "|".join(titles),
                "format": "json",
            },
        )
        response = BatchSummaryResponse.model_validate(payload)

        pages_by_title: dict[str, PageExtract] = {}
        for raw in response.query.pages.values():
            page = PageExtract.from_page(raw)
            if not page.missing:
                pages_by_title[page.title] = page

        renames = {m.source: m.target for m in response.query.normalized}
        redirects = {m.source: m.target for m in response.query.redirects}

        result: dict[str, PageExtract] = {}
        for title in titles:
            resolved = renames.get(title, title)
            resolved = redirects.get(resolved, resolved)
            page = pages_by_title.get(resolved)
            if page is not None:
                result[title] = page
        return result

    async def page_summary(self, title: str) -> PageSummary:
        """Fetch the REST summary (extract + thumbnail) for an exact title."""
        path = quote(title.replace(" ", "_"), safe="")
        payload = await self._get_json(f"{self._rest_url}/page/summary/{path}")
        return PageSummary.model_validate(payload)

    async def wikitext(self, title: str) -> str:
        """Fetch the raw wikitext for an exact title."""
        payload = await self._get_json(
            self._api_url,
            params={
                "action": "parse",
                "page": title,
                "prop": "wikitext",
                "redirects": 1,
                "format": "json",
            },
        )
        return ParseResponse.model_validate(payload).text

    async def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        start_time = time.time()
        response = await self._http.get(url, params=params, headers=self._headers)
        response.raise_for_status()
        data = response.json()

        if settings.log_api_calls:
            elapsed = (time.time() - start_time) * 1000  # ms
            action = (params or {}).get("action", "rest")
            logger.info("[WIKI] %s %s (%.0fms)", action, url, elapsed)

        return data

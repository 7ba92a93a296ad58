"""Tests for the encyclopedia search pipeline."""

from __future__ import annotations

from typing import Any

import httpx

from poster_enrichment.clients.wikipedia import WikipediaClient
from poster_enrichment.enrichment.scoring import CandidateScorer, ScoringWeights
from poster_enrichment.enrichment.search import EntitySearcher
from poster_enrichment.models.enums import EntityKind

API_URL = "https://wiki.test/w/api.php"
REST_URL = "https://wiki.test/api/rest_v1"

COLIN_WIKITEXT = """\
{{Infobox artist
| name        = Paul Colin
| birth_date  = {{birth date|1892|6|27}}
| death_date  = {{death date and age|1985|6|18|1892|6|27}}
| nationality = French
}}"""


class FakeWikipedia:
    """Routes MockTransport requests to canned Wikipedia payloads."""

    def __init__(self) -> None:
        self.search_results: list[tuple[str, str]] = []
        self.pages: dict[str, dict[str, Any]] = {}
        self.summaries: dict[str, dict[str, Any]] = {}
        self.wikitexts: dict[str, str] = {}
        self.fail_on: set[str] = set()
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        action = params.get("action", "rest")
        self.requests.append(action)
        if action in self.fail_on:
            return httpx.Response(500)

        if action == "opensearch":
            titles = [t for t, _ in self.search_results]
            urls = [u for _, u in self.search_results]
            return httpx.Response(200, json=[params["search"], titles, [""] * len(titles), urls])
        if action == "query":
            pages = {
                str(i): {"title": title, **self.pages.get(title, {})}
                for i, title in enumerate(params["titles"].split("|"), start=1)
            }
            return httpx.Response(200, json={"query": {"pages": pages}})
        if action == "parse":
            text = self.wikitexts.get(params["page"], "")
            return httpx.Response(200, json={"parse": {"wikitext": {"*": text}}})

        title = request.url.path.rsplit("/", 1)[-1].replace("_", " ")
        return httpx.Response(200, json=self.summaries.get(title, {"title": title}))

    def searcher(self) -> EntitySearcher:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        client = WikipediaClient(http, api_url=API_URL, rest_url=REST_URL)
        return EntitySearcher(client, CandidateScorer(ScoringWeights()), limit=5)


def _colin_wiki() -> FakeWikipedia:
    wiki = FakeWikipedia()
    wiki.search_results = [
        ("Paul Colin", "https://en.wikipedia.org/wiki/Paul_Colin"),
        ("Paul Colin (footballer)", "https://en.wikipedia.org/wiki/Paul_Colin_(footballer)"),
    ]
    wiki.pages = {
        "Paul Colin": {"description": "French poster artist", "extract": "Paul Colin was..."},
        "Paul Colin (footballer)": {"description": "Belgian footballer"},
    }
    wiki.summaries = {
        "Paul Colin": {
            "title": "Paul Colin",
            "extract": "Paul Colin (1892–1985) was a French poster artist.",
            "thumbnail": {"source": "https://img.test/colin.jpg"},
        }
    }
    wiki.wikitexts = {"Paul Colin": COLIN_WIKITEXT}
    return wiki


class TestSearchEntity:
    async def test_full_pipeline(self) -> None:
        wiki = _colin_wiki()
        candidate = await wiki.searcher().search_entity("Paul Colin", EntityKind.ARTIST)

        assert candidate is not None
        assert candidate.title == "Paul Colin"
        assert candidate.wikipedia_url == "https://en.wikipedia.org/wiki/Paul_Colin"
        assert candidate.image_url == "https://img.test/colin.jpg"
        assert candidate.fields.nationality == "French"
        assert candidate.fields.birth_year == 1892
        assert candidate.fields.death_year == 1985
        assert candidate.fields.bio == "Paul Colin (1892–1985) was a French poster artist."
        assert wiki.requests == ["opensearch", "query", "rest", "parse"]

    async def test_no_results(self) -> None:
        wiki = FakeWikipedia()
        assert await wiki.searcher().search_entity("Nobody", EntityKind.ARTIST) is None
        assert wiki.requests == ["opensearch"]

    async def test_wrong_profession_rejected(self) -> None:
        wiki = FakeWikipedia()
        wiki.search_results = [("Jane Doe", "https://en.wikipedia.org/wiki/Jane_Doe")]
        wiki.pages = {"Jane Doe": {"description": "American physicist"}}

        assert await wiki.searcher().search_entity("Jane Doe", EntityKind.ARTIST) is None
        # Rejected before any page fetch
        assert wiki.requests == ["opensearch", "query"]

    async def test_search_failure_returns_none(self) -> None:
        wiki = _colin_wiki()
        wiki.fail_on = {"opensearch"}
        assert await wiki.searcher().search_entity("Paul Colin", EntityKind.ARTIST) is None

    async def test_late_failure_returns_none(self) -> None:
        wiki = _colin_wiki()
        wiki.fail_on = {"parse"}
        assert await wiki.searcher().search_entity("Paul Colin", EntityKind.ARTIST) is None

    async def test_books_not_searched(self) -> None:
        wiki = _colin_wiki()
        assert await wiki.searcher().search_entity("Paul Colin", EntityKind.BOOK) is None
        assert wiki.requests == []

    async def test_blank_name(self) -> None:
        wiki = _colin_wiki()
        assert await wiki.searcher().search_entity("   ", EntityKind.ARTIST) is None
        assert wiki.requests == []

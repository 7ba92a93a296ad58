"""Tests for poster auto-linking."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from poster_enrichment.models import Poster, Publisher
from poster_enrichment.models.enums import Confidence
from poster_enrichment.resolution.store import ReconciliationStore
from poster_enrichment.services.auto_link import AutoLinker, PosterAnalysis

if TYPE_CHECKING:
    from conftest import MakeCandidate, StubResearcher, StubSearcher


async def _add_poster(session_factory: async_sessionmaker[AsyncSession], poster_id: int) -> None:
    async with session_factory() as session:
        session.add(Poster(id=poster_id))
        await session.commit()


async def _get_poster(
    session_factory: async_sessionmaker[AsyncSession], poster_id: int
) -> Poster | None:
    async with session_factory() as session:
        return await session.get(Poster, poster_id)


class TestPosterAnalysis:
    def test_camel_case_keys(self) -> None:
        analysis = PosterAnalysis.model_validate(
            {
                "artist": "Paul Colin",
                "artistConfidence": "Confirmed",
                "bookAuthor": "Colette",
                "bookYear": "1925",
            }
        )
        assert analysis.artist_confidence == Confidence.CONFIRMED
        assert analysis.book_author == "Colette"
        assert analysis.book_year == 1925

    def test_unrecognised_confidence(self) -> None:
        analysis = PosterAnalysis.model_validate({"printerConfidence": "very high"})
        assert analysis.printer_confidence is None


class TestAutoLink:
    async def test_poster_42_scenario(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: StubSearcher,
        researcher: StubResearcher,
        make_candidate: MakeCandidate,
    ) -> None:
        await _add_poster(session_factory, 42)
        searcher.candidates["Paul Colin"] = make_candidate(
            "Paul Colin", bio="French poster artist.", nationality="French", birth_year=1892
        )
        searcher.candidates["Le Figaro"] = make_candidate(
            "Le Figaro", bio="French daily newspaper.", publication_type="Newspaper"
        )
        linker = AutoLinker(session_factory, searcher, researcher)  # type: ignore[arg-type]

        linked = await linker.auto_link(
            42,
            PosterAnalysis(
                artist="Paul Colin",
                artist_confidence=Confidence.CONFIRMED,
                printer="Unknown",
                publication="Le Figaro",
            ),
        )

        assert set(linked) == {"artist_linked", "publisher_linked"}
        assert linked["artist_linked"].is_new is True
        assert linked["publisher_linked"].is_new is True
        assert [name for name, _ in searcher.calls] == ["Paul Colin", "Le Figaro"]

        poster = await _get_poster(session_factory, 42)
        assert poster is not None
        assert poster.artist_id == linked["artist_linked"].id
        assert poster.publisher_id == linked["publisher_linked"].id
        assert poster.printer_id is None
        assert poster.book_id is None
        assert poster.last_modified is not None

    async def test_relinking_reuses_records(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: StubSearcher,
        researcher: StubResearcher,
        make_candidate: MakeCandidate,
    ) -> None:
        await _add_poster(session_factory, 1)
        await _add_poster(session_factory, 2)
        searcher.candidates["Le Figaro"] = make_candidate(
            "Le Figaro", bio="French daily newspaper.", publication_type="Newspaper"
        )
        linker = AutoLinker(session_factory, searcher, researcher)  # type: ignore[arg-type]
        analysis = PosterAnalysis(publication="Le Figaro")

        first = await linker.auto_link(1, analysis)
        second = await linker.auto_link(2, analysis)

        assert second["publisher_linked"].id == first["publisher_linked"].id
        assert second["publisher_linked"].is_new is False
        assert len(searcher.calls) == 1

    async def test_unconfirmed_fields_absent(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: StubSearcher,
        researcher: StubResearcher,
    ) -> None:
        await _add_poster(session_factory, 7)
        linker = AutoLinker(session_factory, searcher, researcher)  # type: ignore[arg-type]

        linked = await linker.auto_link(
            7,
            PosterAnalysis(
                artist="Paul Colin",
                artist_confidence=Confidence.LIKELY,
                printer="Chaix",
                printer_confidence=None,
            ),
        )

        assert linked == {}
        assert searcher.calls == []

    async def test_book_linked(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: StubSearcher,
        researcher: StubResearcher,
    ) -> None:
        await _add_poster(session_factory, 3)
        linker = AutoLinker(session_factory, searcher, researcher)  # type: ignore[arg-type]

        linked = await linker.auto_link(
            3, PosterAnalysis(book="Chéri", book_author="Colette", book_year=1920)
        )

        assert set(linked) == {"book_linked"}
        poster = await _get_poster(session_factory, 3)
        assert poster is not None
        assert poster.book_id == linked["book_linked"].id

    async def test_storage_failure_isolated_to_one_field(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        searcher: StubSearcher,
        researcher: StubResearcher,
        make_candidate: MakeCandidate,
    ) -> None:
        await _add_poster(session_factory, 5)
        searcher.candidates["Le Figaro"] = make_candidate(
            "Le Figaro", bio="French daily newspaper.", publication_type="Newspaper"
        )
        linker = AutoLinker(session_factory, searcher, researcher)  # type: ignore[arg-type]

        original = ReconciliationStore.find_or_create

        async def flaky(self: ReconciliationStore, name: str, *args: Any) -> Any:
            if name == "Paul Colin":
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return await original(self, name, *args)

        with patch.object(ReconciliationStore, "find_or_create", flaky):
            linked = await linker.auto_link(
                5,
                PosterAnalysis(
                    artist="Paul Colin",
                    artist_confidence=Confidence.CONFIRMED,
                    publication="Le Figaro",
                    book="Chéri",
                ),
            )

        assert set(linked) == {"publisher_linked", "book_linked"}
        async with session_factory() as session:
            publisher = await session.get(Publisher, linked["publisher_linked"].id)
            poster = await session.get(Poster, 5)
        assert publisher is not None
        assert poster is not None
        assert poster.artist_id is None
        assert poster.publisher_id == publisher.id

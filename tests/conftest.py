"""Shared pytest fixtures for poster enrichment tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from poster_enrichment.enrichment.schemas import EnrichmentCandidate, EnrichmentFields
from poster_enrichment.models import Base
from poster_enrichment.models.enums import EntityKind

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


class StubSearcher:
    """Stands in for EntitySearcher; answers from a name -> candidate map."""

    def __init__(self) -> None:
        self.candidates: dict[str, EnrichmentCandidate] = {}
        self.calls: list[tuple[str, EntityKind]] = []

    async def search_entity(self, name: str, kind: EntityKind) -> EnrichmentCandidate | None:
        self.calls.append((name, kind))
        return self.candidates.get(name)


class StubResearcher:
    """Stands in for LLMResearcher; answers from a name -> fields map."""

    def __init__(self) -> None:
        self.results: dict[str, EnrichmentFields] = {}
        self.calls: list[tuple[str, EntityKind]] = []

    async def research(self, name: str, kind: EntityKind) -> EnrichmentFields | None:
        self.calls.append((name, kind))
        return self.results.get(name)


@pytest.fixture
def searcher() -> StubSearcher:
    return StubSearcher()


@pytest.fixture
def researcher() -> StubResearcher:
    return StubResearcher()


MakeCandidate = Callable[..., EnrichmentCandidate]


@pytest.fixture
def make_candidate() -> MakeCandidate:
    """Factory fixture for accepted encyclopedia matches."""

    def _make(
        title: str,
        *,
        bio: str | None = None,
        image_url: str | None = None,
        **fields: Any,
    ) -> EnrichmentCandidate:
        return EnrichmentCandidate(
            title=title,
            wikipedia_url=f"https://en.wikipedia.org/wiki/{title.replace(' ', '_')}",
            score=145,
            description=bio,
            image_url=image_url,
            fields=EnrichmentFields(bio=bio, **fields),
        )

    return _make

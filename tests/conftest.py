from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shelfmatch.adapters.catalog.mock import MockCatalogAdapter
from shelfmatch.database import (
    build_engine,
    build_session_factory,
    init_models,
    seed_sample_users,
)
from shelfmatch.domain.errors import NotFoundError
from shelfmatch.ports.catalog import AuthorCandidate, AuthorWork, Edition, SubjectWork
from shelfmatch.ports.profiles import UserProfilePort

TODAY = date(2025, 6, 15)


class StaticProfiles(UserProfilePort):
    """Profile store over a plain dict, for pipeline tests."""

    def __init__(self, favorites: dict[int, list[str]]) -> None:
        self._favorites = favorites

    async def get_favorite_authors(self, reader_id: int) -> list[str]:
        if reader_id not in self._favorites:
            raise NotFoundError(f"User ID {reader_id} not found")
        return list(self._favorites[reader_id])


def _author(name: str, key: str, works: int = 10) -> list[AuthorCandidate]:
    return [AuthorCandidate(name=name, key=key, work_count=works)]


@pytest.fixture
def scenario_catalog() -> MockCatalogAdapter:
    """
    Two readers whose authors weigh out as
    A = {fantasy: 3, science_fiction: 1} and
    B = {science_fiction: 2, history: 4}.
    """
    return MockCatalogAdapter(
        authors={
            "Alice Fable": _author("Alice Fable", "A1"),
            "Bram Wold": _author("Bram Wold", "A2"),
            "Cora Vane": _author("Cora Vane", "A3"),
            "Dev Orbit": _author("Dev Orbit", "B1"),
            "Esme Quill": _author("Esme Quill", "B2"),
            "Finn Ledger": _author("Finn Ledger", "B3"),
            "Gail Annal": _author("Gail Annal", "B4"),
        },
        author_works={
            "A1": [
                AuthorWork("Dragon Road", ("Fantasy", "science_fiction")),
                AuthorWork("Dragon Return", ("fantasy ",)),
            ],
            "A2": [AuthorWork("Oak Crown", ("Fantasy",))],
            "A3": [AuthorWork("Moon Well", ("FANTASY",))],
            "B1": [AuthorWork("Star Drift", ("Science_Fiction", "History"))],
            "B2": [AuthorWork("Void Bloom", ("science_fiction", "history"))],
            "B3": [AuthorWork("Old Rome", ("History",))],
            "B4": [AuthorWork("Iron Age", ("History",))],
        },
        subject_works={
            "science_fiction": [
                SubjectWork("W1", "Quiet Stars", ("Nia Cole",), ("2025",)),
                SubjectWork("W2", "Tidal Engines", ("Omar Hale",), (), 2024),
                SubjectWork("W3", "Far Harbor", ("Pia Stone",), ("1998",)),
                SubjectWork("W4", "Next Year's Model", ("Rex Vale",), ("2027",)),
                SubjectWork("W5", "The Reprint", ("Sol Grey",), ("1990",)),
                SubjectWork("W6", "Copper Moons", ("Tia Park",), ("March 2, 2023",)),
                SubjectWork("W7", "Undated", ("Uma Lee",)),
            ],
        },
        editions={
            "W5": [Edition("E1", "1990"), Edition("E2", "Reissued 2024")],
        },
        descriptions={
            "W1": {"type": "/type/text", "value": "Signals from a silent star."},
            "W2": "Engines that run on tides.",
        },
    )


@pytest.fixture
def scenario_profiles() -> StaticProfiles:
    return StaticProfiles(
        {
            1: ["Alice Fable", "Bram Wold", "Cora Vane"],
            2: ["Dev Orbit", "Esme Quill", "Finn Ledger", "Gail Annal"],
            3: ["Nobody Known", "Also Unknown"],
            4: [],
        }
    )


@pytest.fixture
async def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """A seeded SQLite profile database in a temporary directory."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    await init_models(engine)
    factory = build_session_factory(engine)
    await seed_sample_users(factory)
    yield factory
    await engine.dispose()

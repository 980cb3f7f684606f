"""Tests for the SQL-backed reader profile store."""

import pytest
from sqlalchemy import func, select

from shelfmatch.adapters.profiles.sql import SqlUserProfileStore
from shelfmatch.database import SAMPLE_USERS, build_engine, build_session_factory, seed_sample_users
from shelfmatch.domain.errors import NotFoundError, UpstreamError
from shelfmatch.domain.models import User


@pytest.mark.asyncio
async def test_seeded_reader_favorites(session_factory):
    store = SqlUserProfileStore(session_factory)

    names = await store.get_favorite_authors(1)

    assert names == SAMPLE_USERS[0][1]
    assert len(names) == 5


@pytest.mark.asyncio
async def test_unknown_reader_is_not_found(session_factory):
    with pytest.raises(NotFoundError, match="User ID 42 not found"):
        await SqlUserProfileStore(session_factory).get_favorite_authors(42)


@pytest.mark.asyncio
async def test_favorites_are_trimmed_and_capped(session_factory):
    async with session_factory() as session:
        user = User(
            username="Crowded",
            favorite_authors=[" A ", "", "B", "   ", "C", "D", "E", "F", 9],
        )
        session.add(user)
        await session.commit()
        reader_id = user.id

    names = await SqlUserProfileStore(session_factory, max_authors=3).get_favorite_authors(
        reader_id
    )

    assert names == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_empty_favorites_return_empty_list(session_factory):
    async with session_factory() as session:
        user = User(username="Blank", favorite_authors=[])
        session.add(user)
        await session.commit()
        reader_id = user.id

    assert await SqlUserProfileStore(session_factory).get_favorite_authors(reader_id) == []


@pytest.mark.asyncio
async def test_seeding_is_idempotent(session_factory):
    assert await seed_sample_users(session_factory) == 0

    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(User))
    assert count == len(SAMPLE_USERS)


@pytest.mark.asyncio
async def test_missing_table_is_upstream_error(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    try:
        store = SqlUserProfileStore(build_session_factory(engine))
        with pytest.raises(UpstreamError):
            await store.get_favorite_authors(1)
    finally:
        await engine.dispose()

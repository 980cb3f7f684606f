"""Async SQLAlchemy engine, session factory, and sample data seeding."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shelfmatch.domain.models import Base, User

logger = logging.getLogger(__name__)

SAMPLE_USERS: tuple[tuple[str, list[str]], ...] = (
    (
        "Sandra",
        [
            "Andy Weir",
            "Brandon Sanderson",
            "Arthur C. Clarke",
            "Ursula K. Le Guin",
            "H.G. Wells",
        ],
    ),
    (
        "JDoe",
        [
            "George R. R. Martin",
            "Robert Jordan",
            "Neil Gaiman",
            "Robin Hobb",
            "Steven Erikson",
        ],
    ),
    (
        "NonFicFan3",
        [
            "Patrick Radden Keefe",
            "Jon Krakauer",
            "David Grann",
            "Charles Montgomery",
            "Jeff Speck",
        ],
    ),
)


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_sample_users(
    session_factory: async_sessionmaker[AsyncSession],
) -> int:
    """Insert the sample readers that are missing. Returns how many were added."""
    added = 0
    async with session_factory() as session:
        for username, authors in SAMPLE_USERS:
            existing = await session.execute(
                select(User).where(User.username == username)
            )
            if existing.scalar_one_or_none():
                continue
            session.add(User(username=username, favorite_authors=authors))
            added += 1
        await session.commit()
    if added:
        logger.info("Seeded %d sample users", added)
    return added

"""Reader profile store backed by the users table."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shelfmatch.domain.errors import NotFoundError, UpstreamError
from shelfmatch.domain.models import User
from shelfmatch.ports.profiles import UserProfilePort

logger = logging.getLogger(__name__)


class SqlUserProfileStore(UserProfilePort):
    """Read favorite authors from the database, one session per lookup."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_authors: int = 5,
    ) -> None:
        self._session_factory = session_factory
        self._max_authors = max_authors

    async def get_favorite_authors(self, reader_id: int) -> list[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(User.favorite_authors).where(User.id == reader_id)
                )
                row = result.one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Profile lookup failed for user %d: %s", reader_id, exc)
            raise UpstreamError("Profile store unavailable") from exc

        if row is None:
            raise NotFoundError(f"User ID {reader_id} not found")

        names = [
            name.strip()
            for name in (row.favorite_authors or [])
            if isinstance(name, str) and name.strip()
        ]
        return names[: self._max_authors]

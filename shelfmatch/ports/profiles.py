"""Profile port: where a reader's favorite authors come from."""

from abc import ABC, abstractmethod


class UserProfilePort(ABC):
    """Abstraction for the reader profile store."""

    @abstractmethod
    async def get_favorite_authors(self, reader_id: int) -> list[str]:
        """
        Return the reader's favorite author names in stored order.

        Raises NotFoundError if the reader does not exist.
        """
        ...

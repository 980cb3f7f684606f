"""Catalog port: abstract interface for the remote bibliographic catalog."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class AuthorCandidate:
    """One hit from an author search."""

    name: str
    key: str
    work_count: int


@dataclass(frozen=True)
class AuthorWork:
    title: str
    subjects: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubjectWork:
    """A work listed under a subject, with whatever dating the listing carries."""

    key: str | None
    title: str
    authors: tuple[str, ...] = ()
    publish_dates: tuple[str, ...] = ()
    first_publish_year: int | None = None


@dataclass(frozen=True)
class Edition:
    key: str | None
    publish_date: str | None


class DescriptionKind(str, Enum):
    PLAIN = "plain"
    WRAPPED = "wrapped"
    ABSENT = "absent"


@dataclass(frozen=True)
class Description:
    """
    Decoded work description.

    The catalog sends either a bare string or an object with a ``value``
    string. Anything else, including empty text, decodes to ABSENT.
    """

    kind: DescriptionKind
    text: str | None = None

    @classmethod
    def decode(cls, raw: Any) -> "Description":
        if isinstance(raw, str) and raw.strip():
            return cls(DescriptionKind.PLAIN, raw.strip())
        if isinstance(raw, dict):
            value = raw.get("value")
            if isinstance(value, str) and value.strip():
                return cls(DescriptionKind.WRAPPED, value.strip())
        return cls(DescriptionKind.ABSENT)


@dataclass(frozen=True)
class WorkDetail:
    key: str
    description: Description = field(
        default_factory=lambda: Description(DescriptionKind.ABSENT)
    )


class CatalogPort(ABC):
    """Abstraction over the catalog lookups the pipeline needs.

    Every method raises CatalogError when the call cannot produce a result.
    """

    @abstractmethod
    async def search_authors(self, name: str) -> list[AuthorCandidate]:
        """Return author candidates for a free-text name, in catalog order."""
        ...

    @abstractmethod
    async def get_author_works(self, author_key: str, limit: int) -> list[AuthorWork]:
        """Return up to ``limit`` of the author's most relevant works."""
        ...

    @abstractmethod
    async def get_subject_works(self, subject: str, limit: int) -> list[SubjectWork]:
        """Return up to ``limit`` works tagged with the subject, newest first."""
        ...

    @abstractmethod
    async def get_work_editions(self, work_key: str, limit: int) -> list[Edition]:
        ...

    @abstractmethod
    async def get_work(self, work_key: str) -> WorkDetail:
        ...

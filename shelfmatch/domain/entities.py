"""Immutable value objects passed between pipeline stages."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResolvedAuthor:
    """An author name matched to its catalog identity."""

    name: str
    catalog_key: str
    work_count: int


@dataclass(frozen=True)
class SubjectProfile:
    """
    Subject weights for one reader's authors.

    Attributes:
        weights:    normalized subject -> number of distinct authors tagged with it.
        per_author: resolved author -> that author's normalized subject set.
    """

    weights: dict[str, int] = field(default_factory=dict)
    per_author: dict[ResolvedAuthor, frozenset[str]] = field(default_factory=dict)

    def weight(self, subject: str) -> int:
        return self.weights.get(subject, 0)


@dataclass(frozen=True)
class SharedSubject:
    """The subject both readers share, with its combined author weight."""

    name: str
    weight: int


@dataclass(frozen=True)
class RecommendedWork:
    title: str
    authors: tuple[str, ...]
    description: str | None
    most_recent_in_print_year: int


@dataclass(frozen=True)
class Recommendation:
    """Final pipeline output: the chosen subject and its ranked works."""

    subject: SharedSubject
    works: tuple[RecommendedWork, ...]

"""Subject weighting per reader and shared-subject selection."""

import logging
from collections import Counter

from shelfmatch.domain.entities import ResolvedAuthor, SharedSubject, SubjectProfile
from shelfmatch.domain.errors import CatalogError, NotFoundError
from shelfmatch.ports.catalog import CatalogPort
from shelfmatch.services.fanout import bounded_map

logger = logging.getLogger(__name__)


def normalize_subject(subject: str) -> str:
    return subject.strip().lower()


class SubjectAggregator:
    """
    Counts, for each subject, how many of a reader's authors are known for it.

    An author counts at most once per subject no matter how many of their
    sampled works carry it.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        concurrency: int = 20,
        works_per_author: int = 100,
    ) -> None:
        self._catalog = catalog
        self._concurrency = concurrency
        self._works_per_author = works_per_author

    async def aggregate(self, authors: list[ResolvedAuthor]) -> SubjectProfile:
        subject_sets = await bounded_map(
            authors, self._author_subjects, self._concurrency
        )

        weights: Counter[str] = Counter()
        per_author: dict[ResolvedAuthor, frozenset[str]] = {}
        for author, subjects in zip(authors, subject_sets):
            if subjects is None:
                continue
            weights.update(subjects)
            per_author[author] = subjects

        logger.info(
            "Aggregated %d subjects from %d of %d authors",
            len(weights),
            len(per_author),
            len(authors),
        )
        return SubjectProfile(weights=dict(weights), per_author=per_author)

    async def _author_subjects(self, author: ResolvedAuthor) -> frozenset[str] | None:
        try:
            works = await self._catalog.get_author_works(
                author.catalog_key, self._works_per_author
            )
        except CatalogError as exc:
            logger.warning("Works fetch failed for author '%s': %s", author.name, exc)
            return None

        return frozenset(
            normalized
            for work in works
            for normalized in map(normalize_subject, work.subjects)
            if normalized
        )


def select_shared_subject(first: dict[str, int], second: dict[str, int]) -> SharedSubject:
    """
    Pick the subject with the highest combined weight among those both readers have.

    Ties go to the lexicographically smallest subject name.
    Raises NotFoundError when the readers share no subject.
    """
    combined = {
        subject: weight + second[subject]
        for subject, weight in first.items()
        if subject in second
    }
    if not combined:
        raise NotFoundError("No common subjects found between the users")

    name = min(combined, key=lambda subject: (-combined[subject], subject))
    return SharedSubject(name=name, weight=combined[name])

"""Recent, in-print book recommendations for a subject."""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from shelfmatch.domain.entities import RecommendedWork
from shelfmatch.domain.errors import CatalogError, NotFoundError, UpstreamError
from shelfmatch.ports.catalog import CatalogPort, SubjectWork
from shelfmatch.services.fanout import bounded_map

logger = logging.getLogger(__name__)

# Four-digit years 1000-2999, as whole tokens.
_YEAR_PATTERN = re.compile(r"\b(1[0-9]{3}|2[0-9]{3})\b")


def parse_year(publish_date: str | None) -> int | None:
    """Extract the first four-digit year from a free-form date string."""
    if not publish_date:
        return None
    match = _YEAR_PATTERN.search(publish_date)
    return int(match.group(1)) if match else None


def latest_in_print_year(
    years: Iterable[int], current_year: int, window_years: int
) -> int | None:
    """Most recent year inside [current_year - window_years, current_year], if any."""
    qualifying = [
        year for year in years if current_year - window_years <= year <= current_year
    ]
    return max(qualifying) if qualifying else None


@dataclass(frozen=True)
class _Candidate:
    position: int
    work: RecommendedWork


class BookRecommender:
    """
    Picks the newest still-in-print works for a subject.

    A work is in print when the work itself or one of its editions carries a
    publish year within the recency window. Years past the current year are
    bad data and never count.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        concurrency: int = 10,
        subject_works_limit: int = 50,
        editions_limit: int = 50,
        window_years: int = 2,
        max_results: int = 3,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._catalog = catalog
        self._concurrency = concurrency
        self._subject_works_limit = subject_works_limit
        self._editions_limit = editions_limit
        self._window_years = window_years
        self._max_results = max_results
        self._today = today

    async def recommend(self, subject: str) -> list[RecommendedWork]:
        """
        Return up to ``max_results`` works for the subject, newest first.

        Raises UpstreamError if the subject listing cannot be fetched, and
        NotFoundError if no listed work is in print.
        """
        try:
            listing = await self._catalog.get_subject_works(
                subject, self._subject_works_limit
            )
        except CatalogError as exc:
            logger.error("Subject listing failed for '%s': %s", subject, exc)
            raise UpstreamError(f"Error fetching books for subject '{subject}'") from exc

        current_year = self._today().year
        candidates = await bounded_map(
            list(enumerate(listing)),
            lambda item: self._evaluate(item[0], item[1], current_year),
            self._concurrency,
        )

        survivors = [c for c in candidates if c is not None]
        if not survivors:
            raise NotFoundError(f"No recent books found for subject '{subject}'")

        survivors.sort(
            key=lambda c: (-c.work.most_recent_in_print_year, c.position)
        )
        works = [c.work for c in survivors[: self._max_results]]
        logger.info(
            "Subject '%s': %d listed, %d in print, returning %d",
            subject,
            len(listing),
            len(survivors),
            len(works),
        )
        return works

    async def _evaluate(
        self, position: int, listed: SubjectWork, current_year: int
    ) -> _Candidate | None:
        years = [
            year
            for year in (parse_year(d) for d in listed.publish_dates)
            if year is not None
        ]
        if listed.first_publish_year:
            years.append(listed.first_publish_year)

        if listed.key:
            try:
                editions = await self._catalog.get_work_editions(
                    listed.key, self._editions_limit
                )
            except CatalogError as exc:
                logger.warning(
                    "Edition fetch failed for '%s', using listing dates only: %s",
                    listed.title,
                    exc,
                )
            else:
                years.extend(
                    year
                    for year in (parse_year(e.publish_date) for e in editions)
                    if year is not None
                )

        in_print_year = latest_in_print_year(years, current_year, self._window_years)
        if in_print_year is None:
            if years and min(years) > current_year:
                logger.info(
                    "Excluded '%s' with future publish year: %d",
                    listed.title,
                    min(years),
                )
            return None

        return _Candidate(
            position=position,
            work=RecommendedWork(
                title=listed.title,
                authors=listed.authors,
                description=await self._description(listed),
                most_recent_in_print_year=in_print_year,
            ),
        )

    async def _description(self, listed: SubjectWork) -> str | None:
        if not listed.key:
            return None
        try:
            detail = await self._catalog.get_work(listed.key)
        except CatalogError as exc:
            logger.warning("Description fetch failed for '%s': %s", listed.title, exc)
            return None
        return detail.description.text

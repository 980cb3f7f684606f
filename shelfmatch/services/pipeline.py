"""Two-reader recommendation pipeline."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from shelfmatch.domain.entities import Recommendation, SubjectProfile
from shelfmatch.domain.errors import (
    DeadlineExceededError,
    NotFoundError,
    RecommendationError,
)
from shelfmatch.ports.profiles import UserProfilePort
from shelfmatch.services.authors import AuthorResolver
from shelfmatch.services.books import BookRecommender
from shelfmatch.services.subjects import SubjectAggregator, select_shared_subject

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    STARTED = "started"
    AUTHORS_FETCHED = "authors_fetched"
    AUTHORS_RESOLVED = "authors_resolved"
    SUBJECTS_AGGREGATED = "subjects_aggregated"
    SUBJECT_SELECTED = "subject_selected"
    BOOKS_FETCHED = "books_fetched"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


_PROGRESS = [
    PipelineState.STARTED,
    PipelineState.AUTHORS_FETCHED,
    PipelineState.AUTHORS_RESOLVED,
    PipelineState.SUBJECTS_AGGREGATED,
    PipelineState.SUBJECT_SELECTED,
    PipelineState.BOOKS_FETCHED,
    PipelineState.COMPLETED,
]
_TERMINAL = {PipelineState.COMPLETED, PipelineState.FAILED, PipelineState.TIMED_OUT}


@dataclass
class PipelineTrace:
    """
    Request-scoped record of how far a pipeline run got.

    The per-reader stages run concurrently, so the request only moves past
    AUTHORS_RESOLVED and SUBJECTS_AGGREGATED once every reader has.
    """

    state: PipelineState = PipelineState.STARTED
    history: list[PipelineState] = field(
        default_factory=lambda: [PipelineState.STARTED]
    )
    readers: dict[str, PipelineState] = field(default_factory=dict)
    reason: str | None = None

    @property
    def finished(self) -> bool:
        return self.state in _TERMINAL

    def advance(self, state: PipelineState) -> None:
        if self.finished or _PROGRESS.index(state) <= _PROGRESS.index(self.state):
            return
        self.state = state
        self.history.append(state)

    def reader_reached(self, reader: str, state: PipelineState) -> None:
        self.readers[reader] = state
        slowest = min(self.readers.values(), key=_PROGRESS.index)
        self.advance(slowest)

    def fail(self, reason: str, timed_out: bool = False) -> None:
        if self.finished:
            return
        self.state = PipelineState.TIMED_OUT if timed_out else PipelineState.FAILED
        self.history.append(self.state)
        self.reason = reason


class PipelineOrchestrator:
    """
    Runs the full recommendation flow for a pair of readers.

    Each reader goes through author resolution and subject aggregation in
    its own task; the two meet at subject selection, and books are fetched
    once for the chosen subject. The whole run shares one deadline.
    """

    def __init__(
        self,
        profiles: UserProfilePort,
        resolver: AuthorResolver,
        aggregator: SubjectAggregator,
        recommender: BookRecommender,
        deadline_seconds: float = 30.0,
    ) -> None:
        self._profiles = profiles
        self._resolver = resolver
        self._aggregator = aggregator
        self._recommender = recommender
        self._deadline_seconds = deadline_seconds

    async def recommend(
        self,
        first_reader: int,
        second_reader: int,
        trace: PipelineTrace | None = None,
    ) -> Recommendation:
        trace = trace if trace is not None else PipelineTrace()
        try:
            async with asyncio.timeout(self._deadline_seconds):
                recommendation = await self._run(first_reader, second_reader, trace)
        except TimeoutError as exc:
            stalled_in = trace.state
            trace.fail("deadline exceeded", timed_out=True)
            logger.warning(
                "Recommendation for users %d/%d timed out after %.1fs in state %s",
                first_reader,
                second_reader,
                self._deadline_seconds,
                stalled_in.value,
            )
            raise DeadlineExceededError(
                f"Recommendation did not complete within {self._deadline_seconds:g}s"
            ) from exc
        except RecommendationError as exc:
            trace.fail(exc.message)
            logger.info("Recommendation failed: %s", exc.message)
            raise

        trace.advance(PipelineState.COMPLETED)
        return recommendation

    async def _run(
        self, first_reader: int, second_reader: int, trace: PipelineTrace
    ) -> Recommendation:
        first_names = await self._favorite_authors(first_reader)
        second_names = await self._favorite_authors(second_reader)
        trace.advance(PipelineState.AUTHORS_FETCHED)
        trace.reader_reached("user1", PipelineState.AUTHORS_FETCHED)
        trace.reader_reached("user2", PipelineState.AUTHORS_FETCHED)

        try:
            async with asyncio.TaskGroup() as group:
                first_task = group.create_task(
                    self._reader_subjects("user1", first_reader, first_names, trace)
                )
                second_task = group.create_task(
                    self._reader_subjects("user2", second_reader, second_names, trace)
                )
        except BaseExceptionGroup as group_error:
            raise _first_leaf(group_error) from None

        first_profile = first_task.result()
        second_profile = second_task.result()

        shared = select_shared_subject(first_profile.weights, second_profile.weights)
        trace.advance(PipelineState.SUBJECT_SELECTED)
        logger.info("Common subject: %s (weight %d)", shared.name, shared.weight)

        works = await self._recommender.recommend(shared.name)
        trace.advance(PipelineState.BOOKS_FETCHED)
        return Recommendation(subject=shared, works=tuple(works))

    async def _favorite_authors(self, reader_id: int) -> list[str]:
        names = await self._profiles.get_favorite_authors(reader_id)
        if not names:
            raise NotFoundError(f"No favorite authors found for user ID {reader_id}")
        return names

    async def _reader_subjects(
        self, label: str, reader_id: int, names: list[str], trace: PipelineTrace
    ) -> SubjectProfile:
        authors = await self._resolver.resolve(names)
        if not authors:
            raise NotFoundError(f"No catalog authors matched for user ID {reader_id}")
        trace.reader_reached(label, PipelineState.AUTHORS_RESOLVED)

        profile = await self._aggregator.aggregate(authors)
        if not profile.weights:
            raise NotFoundError(f"No subjects found for user ID {reader_id}")
        trace.reader_reached(label, PipelineState.SUBJECTS_AGGREGATED)

        for author, subjects in profile.per_author.items():
            logger.debug(
                "%s, Author: %s (%s), subjects: %s",
                label,
                author.name,
                author.catalog_key,
                sorted(subjects),
            )
        return profile


def _first_leaf(group_error: BaseExceptionGroup) -> BaseException:
    """Unwrap the first concrete error raised inside a task group."""
    error: BaseException = group_error
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error

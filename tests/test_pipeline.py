"""End-to-end tests for the two-reader pipeline."""

import asyncio

import pytest

from shelfmatch.adapters.catalog.mock import MockCatalogAdapter
from shelfmatch.domain.entities import ResolvedAuthor, SubjectProfile
from shelfmatch.domain.errors import DeadlineExceededError, NotFoundError
from shelfmatch.ports.catalog import AuthorCandidate, AuthorWork, SubjectWork
from shelfmatch.services.authors import AuthorResolver
from shelfmatch.services.books import BookRecommender
from shelfmatch.services.pipeline import (
    PipelineOrchestrator,
    PipelineState,
    PipelineTrace,
)
from shelfmatch.services.subjects import SubjectAggregator

from conftest import TODAY, StaticProfiles


class RecordingAggregator(SubjectAggregator):
    """Aggregator that remembers which author sets it was asked about."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.requests: list[list[str]] = []

    async def aggregate(self, authors: list[ResolvedAuthor]) -> SubjectProfile:
        self.requests.append([a.catalog_key for a in authors])
        return await super().aggregate(authors)


def _orchestrator(catalog, profiles, deadline: float = 30.0, aggregator=None):
    return PipelineOrchestrator(
        profiles=profiles,
        resolver=AuthorResolver(catalog, concurrency=2),
        aggregator=aggregator or SubjectAggregator(catalog, concurrency=2),
        recommender=BookRecommender(catalog, concurrency=2, today=lambda: TODAY),
        deadline_seconds=deadline,
    )


@pytest.mark.asyncio
async def test_shared_subject_scenario(scenario_catalog, scenario_profiles):
    trace = PipelineTrace()
    result = await _orchestrator(scenario_catalog, scenario_profiles).recommend(
        1, 2, trace
    )

    assert result.subject.name == "science_fiction"
    assert result.subject.weight == 3
    assert [w.title for w in result.works] == [
        "Quiet Stars",
        "Tidal Engines",
        "The Reprint",
    ]
    assert trace.state is PipelineState.COMPLETED
    assert trace.history == [
        PipelineState.STARTED,
        PipelineState.AUTHORS_FETCHED,
        PipelineState.AUTHORS_RESOLVED,
        PipelineState.SUBJECTS_AGGREGATED,
        PipelineState.SUBJECT_SELECTED,
        PipelineState.BOOKS_FETCHED,
        PipelineState.COMPLETED,
    ]
    assert scenario_catalog.calls_for("get_subject_works") == ["science_fiction"]


@pytest.mark.asyncio
async def test_no_shared_subject_is_not_found():
    catalog = MockCatalogAdapter(
        authors={
            "Alice Fable": [AuthorCandidate("Alice Fable", "A1", 10)],
            "Dev Orbit": [AuthorCandidate("Dev Orbit", "B1", 10)],
        },
        author_works={
            "A1": [AuthorWork("Dragon Road", ("Fantasy",))],
            "B1": [AuthorWork("Star Drift", ("History",))],
        },
        subject_works={
            "fantasy": [SubjectWork("W1", "Quiet Stars", ("Nia Cole",), ("2025",))],
        },
    )
    profiles = StaticProfiles({1: ["Alice Fable"], 2: ["Dev Orbit"]})
    trace = PipelineTrace()

    with pytest.raises(NotFoundError, match="No common subjects"):
        await _orchestrator(catalog, profiles).recommend(1, 2, trace)

    assert trace.state is PipelineState.FAILED
    assert PipelineState.SUBJECTS_AGGREGATED in trace.history
    assert catalog.calls_for("get_subject_works") == []


@pytest.mark.asyncio
async def test_reader_without_resolvable_authors_fails_before_aggregation(
    scenario_catalog, scenario_profiles
):
    aggregator = RecordingAggregator(scenario_catalog)
    trace = PipelineTrace()

    with pytest.raises(NotFoundError, match="user ID 3"):
        await _orchestrator(
            scenario_catalog, scenario_profiles, aggregator=aggregator
        ).recommend(3, 2, trace)

    # Reader 3 never reached the aggregator.
    assert [] not in aggregator.requests
    assert all(key.startswith("B") for keys in aggregator.requests for key in keys)
    assert trace.state is PipelineState.FAILED
    assert PipelineState.AUTHORS_RESOLVED not in trace.history


@pytest.mark.asyncio
async def test_unknown_reader_is_not_found(scenario_catalog, scenario_profiles):
    with pytest.raises(NotFoundError, match="User ID 99 not found"):
        await _orchestrator(scenario_catalog, scenario_profiles).recommend(1, 99)
    assert scenario_catalog.calls == []


@pytest.mark.asyncio
async def test_reader_with_no_favorites_is_not_found(scenario_catalog, scenario_profiles):
    with pytest.raises(NotFoundError, match="No favorite authors"):
        await _orchestrator(scenario_catalog, scenario_profiles).recommend(4, 1)


@pytest.mark.asyncio
async def test_deadline_cancels_in_flight_work(scenario_catalog, scenario_profiles):
    scenario_catalog.latency = 0.5
    trace = PipelineTrace()

    with pytest.raises(DeadlineExceededError):
        await _orchestrator(scenario_catalog, scenario_profiles, deadline=0.05).recommend(
            1, 2, trace
        )

    assert trace.state is PipelineState.TIMED_OUT
    assert trace.reason == "deadline exceeded"
    # Nothing is left running against the catalog.
    await asyncio.sleep(0)
    assert scenario_catalog.in_flight == 0


@pytest.mark.asyncio
async def test_failing_reader_cancels_sibling(scenario_catalog, scenario_profiles):
    scenario_catalog.latency = 0.05
    scenario_catalog.failing.update({"Alice Fable", "Bram Wold", "Cora Vane"})

    with pytest.raises(NotFoundError):
        await _orchestrator(scenario_catalog, scenario_profiles).recommend(1, 2)

    assert scenario_catalog.in_flight == 0


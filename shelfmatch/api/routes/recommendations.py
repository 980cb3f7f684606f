"""Shared-interest recommendation route."""

import re

from fastapi import APIRouter, Depends, Query, Request

from shelfmatch.adapters.profiles.sql import SqlUserProfileStore
from shelfmatch.api.schemas import (
    ErrorResponse,
    RecommendationItem,
    RecommendationsResponse,
)
from shelfmatch.config import Settings
from shelfmatch.domain.errors import InvalidRequestError
from shelfmatch.services.authors import AuthorResolver
from shelfmatch.services.books import BookRecommender
from shelfmatch.services.pipeline import PipelineOrchestrator
from shelfmatch.services.subjects import SubjectAggregator

router = APIRouter(tags=["Recommendations"])

_READER_ID_PATTERN = re.compile(r"-?[0-9]+")
# Reader ids are stored as signed 64-bit integers.
_READER_ID_MIN = -(2**63)
_READER_ID_MAX = 2**63 - 1


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """Wire a pipeline from the long-lived resources held on app.state."""
    cfg: Settings = request.app.state.settings
    catalog = request.app.state.catalog
    return PipelineOrchestrator(
        profiles=SqlUserProfileStore(
            request.app.state.session_factory,
            max_authors=cfg.max_favorite_authors,
        ),
        resolver=AuthorResolver(catalog, concurrency=cfg.author_concurrency),
        aggregator=SubjectAggregator(
            catalog,
            concurrency=cfg.subject_concurrency,
            works_per_author=cfg.works_per_author,
        ),
        recommender=BookRecommender(
            catalog,
            concurrency=cfg.book_concurrency,
            subject_works_limit=cfg.subject_works_limit,
            editions_limit=cfg.editions_limit,
            window_years=cfg.recency_window_years,
            max_results=cfg.max_recommendations,
        ),
        deadline_seconds=cfg.request_deadline_seconds,
    )


def parse_reader_id(raw: str | None, param: str) -> int:
    if raw is None or not raw.strip():
        raise InvalidRequestError("Both 'user1' and 'user2' query parameters are required.")
    cleaned = raw.strip()
    if not _READER_ID_PATTERN.fullmatch(cleaned):
        raise InvalidRequestError(f"'{param}' must be a valid integer.")
    reader_id = int(cleaned)
    if not _READER_ID_MIN <= reader_id <= _READER_ID_MAX:
        raise InvalidRequestError(f"'{param}' is out of range.")
    return reader_id


@router.get(
    "/recommendations",
    response_model=RecommendationsResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def get_recommendations(
    user1: str | None = Query(None),
    user2: str | None = Query(None),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> RecommendationsResponse:
    """Recommend recent books in the subject two readers' favorite authors share."""
    first_reader = parse_reader_id(user1, "user1")
    second_reader = parse_reader_id(user2, "user2")

    result = await orchestrator.recommend(first_reader, second_reader)
    return RecommendationsResponse(
        recommendations=[RecommendationItem.from_work(w) for w in result.works]
    )

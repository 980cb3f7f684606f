"""Pydantic response schemas."""

from pydantic import BaseModel

from shelfmatch.domain.entities import RecommendedWork


class RecommendationItem(BaseModel):
    title: str
    authors: list[str]
    description: str | None = None

    @classmethod
    def from_work(cls, work: RecommendedWork) -> "RecommendationItem":
        return cls(
            title=work.title,
            authors=list(work.authors),
            description=work.description,
        )


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]


class ErrorResponse(BaseModel):
    detail: str

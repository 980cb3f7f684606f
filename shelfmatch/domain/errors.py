"""Error taxonomy for the recommendation pipeline.

Each error carries the HTTP status the API layer answers with. Per-item
catalog failures never reach this level; they are absorbed by the services
and only surface once a whole stage comes back empty.
"""


class RecommendationError(Exception):
    """Base class for classified pipeline failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(RecommendationError):
    """Malformed request parameters."""

    status_code = 400


class NotFoundError(RecommendationError):
    """Unknown reader, or a stage produced nothing to continue with."""

    status_code = 404


class UpstreamError(RecommendationError):
    """Catalog or profile store failed for a whole batch."""

    status_code = 500


class DeadlineExceededError(RecommendationError):
    """The shared request deadline elapsed before the pipeline finished."""

    status_code = 504


class CatalogError(Exception):
    """A single catalog call failed (transport, status, or payload shape).

    Raised by catalog adapters and handled per item by the services.
    """

"""Mapping from fetch outcomes to service responses.

Pure functions only; no I/O. Error causes never reach the response body.
"""

from pydantic import BaseModel, ConfigDict, Field

from src.fetch.constants import (
    HTTP_STATUS_CODE_MAX,
    HTTP_STATUS_CODE_MIN,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
)
from src.fetch.models import FetchOutcome, Success, UpstreamStatus


HTTP_STATUS_OK = 200


class ServiceResponse(BaseModel):
    """Externally visible result of a /feed request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=HTTP_STATUS_CODE_MIN, le=HTTP_STATUS_CODE_MAX)
    body: dict[str, object] | None = Field(
        default=None, description="Feed JSON on success, empty otherwise"
    )

    @property
    def is_success(self) -> bool:
        """Whether the response carries a feed."""
        return self.body is not None


def to_service_response(outcome: FetchOutcome) -> ServiceResponse:
    """Map a terminal FetchOutcome to the response sent to the caller.

    Args:
        outcome: Outcome returned by the resolver.

    Returns:
        ServiceResponse with status code and optional JSON body.
    """
    if isinstance(outcome, Success):
        return ServiceResponse(
            status_code=HTTP_STATUS_OK,
            body=outcome.feed.to_json_dict(),
        )

    if isinstance(outcome, UpstreamStatus):
        return ServiceResponse(status_code=outcome.code)

    # RedirectFailure, TransportFailure, DecodeFailure (and a stray Redirected)
    return ServiceResponse(status_code=HTTP_STATUS_INTERNAL_SERVER_ERROR)

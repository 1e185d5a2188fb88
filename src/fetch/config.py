"""Configuration model for the HTTP fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from src.fetch.constants import (
    DEFAULT_MAX_REDIRECT_HOPS,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class FetchConfig(BaseModel):
    """Configuration for the fetch resolver.

    Central configuration for outbound feed fetches: request identity,
    per-attempt deadline, body cap and redirect budget.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[int, Field(ge=1, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    max_redirect_hops: Annotated[
        int,
        Field(ge=0, le=10, description="Location redirects followed per request"),
    ] = DEFAULT_MAX_REDIRECT_HOPS

    def build_headers(self) -> dict[str, str]:
        """Build outbound request headers.

        Returns:
            Headers sent with every fetch.
        """
        return {"User-Agent": self.user_agent}

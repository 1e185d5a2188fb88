"""Data models for the HTTP fetch layer."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.feed.models import Feed
from src.fetch.constants import HTTP_STATUS_CODE_MAX, HTTP_STATUS_CODE_MIN


class StatusClass(str, Enum):
    """How the resolver treats an upstream response status.

    - SUCCESS: 2xx, read the body and decode it
    - REDIRECT: 3xx while the hop budget allows following it
    - TERMINAL: anything else, passed through to the caller
    """

    SUCCESS = "SUCCESS"
    REDIRECT = "REDIRECT"
    TERMINAL = "TERMINAL"


class OutcomeKind(str, Enum):
    """Discriminator for FetchOutcome variants."""

    SUCCESS = "success"
    REDIRECTED = "redirected"
    UPSTREAM_STATUS = "upstream_status"
    REDIRECT_FAILURE = "redirect_failure"
    TRANSPORT_FAILURE = "transport_failure"
    DECODE_FAILURE = "decode_failure"


class FetchRequest(BaseModel):
    """A single outbound GET and the redirect budget left for it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: Annotated[str, Field(min_length=1, description="URL to fetch")]
    redirects_remaining: Annotated[int, Field(ge=0)] = 0

    @property
    def redirects_allowed(self) -> bool:
        """Whether a redirect response to this request may be followed."""
        return self.redirects_remaining > 0

    def follow(self, target_url: str) -> "FetchRequest":
        """Create the request for a redirect target, spending one hop.

        Args:
            target_url: Absolute URL taken from the Location header.

        Returns:
            New FetchRequest with one fewer hop remaining.
        """
        return FetchRequest(
            url=target_url,
            redirects_remaining=max(self.redirects_remaining - 1, 0),
        )


class Success(BaseModel):
    """Upstream returned 2xx and the bounded body decoded into a feed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.SUCCESS] = OutcomeKind.SUCCESS
    body_bytes: bytes = Field(default=b"", description="Bounded response body")
    content_limit_applied: int = Field(
        ge=1, description="Body cap in effect for the read"
    )
    feed: Feed

    @property
    def body_size(self) -> int:
        """Get the size of the response body in bytes."""
        return len(self.body_bytes)


class Redirected(BaseModel):
    """Upstream redirected and the hop will be followed.

    Only ever seen inside the resolver loop.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.REDIRECTED] = OutcomeKind.REDIRECTED
    target_url: Annotated[str, Field(min_length=1)]


class UpstreamStatus(BaseModel):
    """Terminal non-2xx status that is passed through verbatim."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.UPSTREAM_STATUS] = OutcomeKind.UPSTREAM_STATUS
    code: int = Field(
        ge=HTTP_STATUS_CODE_MIN,
        le=HTTP_STATUS_CODE_MAX,
        description="Upstream HTTP status code",
    )


class RedirectFailure(BaseModel):
    """Redirect eligible for following had a missing or unusable Location."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.REDIRECT_FAILURE] = OutcomeKind.REDIRECT_FAILURE
    status_code: int = Field(ge=300, le=399)
    location: str | None = None


class TransportFailure(BaseModel):
    """Connection, DNS, timeout or mid-read transport error."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.TRANSPORT_FAILURE] = OutcomeKind.TRANSPORT_FAILURE
    cause: Annotated[str, Field(min_length=1)]


class DecodeFailure(BaseModel):
    """Body exceeded the size cap or the feed decoder rejected it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal[OutcomeKind.DECODE_FAILURE] = OutcomeKind.DECODE_FAILURE
    cause: Annotated[str, Field(min_length=1)]


FetchOutcome = Annotated[
    Success
    | Redirected
    | UpstreamStatus
    | RedirectFailure
    | TransportFailure
    | DecodeFailure,
    Field(discriminator="kind"),
]


class ResponseSizeExceededError(Exception):
    """Raised when response size exceeds the configured limit."""

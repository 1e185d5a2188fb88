"""Fetch layer: resolve a feed URL with bounded redirects and body size.

This module provides the outbound side of the relay:
- One GET per hop with a fixed User-Agent and per-hop deadline
- A configurable redirect budget (one Location hop by default)
- Streaming body reads aborted past the size cap
- Every failure classified as a FetchOutcome value
"""

from src.fetch.client import FeedResolver, classify_status, resolve_location
from src.fetch.config import FetchConfig
from src.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_REDIRECT_HOPS,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)
from src.fetch.models import (
    DecodeFailure,
    FetchOutcome,
    FetchRequest,
    OutcomeKind,
    Redirected,
    RedirectFailure,
    ResponseSizeExceededError,
    StatusClass,
    Success,
    TransportFailure,
    UpstreamStatus,
)
from src.fetch.redact import redact_url_credentials


__all__ = [
    # Resolver
    "FeedResolver",
    "classify_status",
    "resolve_location",
    # Config
    "FetchConfig",
    # Models
    "FetchRequest",
    "FetchOutcome",
    "OutcomeKind",
    "StatusClass",
    "Success",
    "Redirected",
    "UpstreamStatus",
    "RedirectFailure",
    "TransportFailure",
    "DecodeFailure",
    "ResponseSizeExceededError",
    # Constants
    "DEFAULT_USER_AGENT",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_MAX_RESPONSE_SIZE_BYTES",
    "DEFAULT_MAX_REDIRECT_HOPS",
    "DEFAULT_CHUNK_SIZE",
    # Redaction
    "redact_url_credentials",
]

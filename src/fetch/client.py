"""Fetch resolver: outbound request, bounded redirects, capped body read."""

import asyncio
import time
from collections.abc import Callable
from io import BytesIO

import httpx
import structlog

from src.feed.decoder import decode_feed
from src.feed.errors import ParseError
from src.feed.models import Feed
from src.fetch.config import FetchConfig
from src.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_REDIRECT_MAX,
    HTTP_STATUS_REDIRECT_MIN,
)
from src.fetch.models import (
    DecodeFailure,
    FetchOutcome,
    FetchRequest,
    Redirected,
    RedirectFailure,
    ResponseSizeExceededError,
    StatusClass,
    Success,
    TransportFailure,
    UpstreamStatus,
)
from src.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

FeedDecoder = Callable[[bytes], Feed]


def classify_status(status_code: int, redirects_allowed: bool) -> StatusClass:
    """Classify an upstream status code.

    Args:
        status_code: HTTP status code of the response head.
        redirects_allowed: Whether the request still has a redirect hop.

    Returns:
        How the resolver should proceed with the response.
    """
    if HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
        return StatusClass.SUCCESS

    if (
        HTTP_STATUS_REDIRECT_MIN <= status_code < HTTP_STATUS_REDIRECT_MAX
        and redirects_allowed
    ):
        return StatusClass.REDIRECT

    return StatusClass.TERMINAL


def resolve_location(base_url: httpx.URL, location: str | None) -> str | None:
    """Turn a Location header value into an absolute URL.

    Relative references are joined against the URL that was requested.

    Args:
        base_url: URL of the request that was redirected.
        location: Raw Location header value.

    Returns:
        Absolute target URL, or None if the header is missing or unusable.
    """
    if not location or not location.strip():
        return None

    # Header values must be visible ASCII to be usable as a URL
    if not location.isascii() or not location.isprintable():
        return None

    try:
        return str(base_url.join(location.strip()))
    except httpx.InvalidURL:
        return None


class FeedResolver:
    """Resolves a feed URL to a decoded feed or a classified failure.

    Each call to resolve() is independent:
    - One outbound GET per hop, with a fixed User-Agent and a per-hop deadline
    - At most max_redirect_hops Location redirects are followed
    - Response bodies are streamed and aborted past the size cap
    - Every failure becomes a FetchOutcome value; nothing is retried
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        decoder: FeedDecoder = decode_feed,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: Fetch configuration.
            decoder: Callable turning bounded body bytes into a Feed.
            transport: Optional httpx transport (used to stub the network).
        """
        self._config = config or FetchConfig()
        self._decoder = decoder
        self._transport = transport
        self._log = logger.bind(component="fetch")

    @property
    def config(self) -> FetchConfig:
        """Get the fetch configuration."""
        return self._config

    async def resolve(self, url: str) -> FetchOutcome:
        """Fetch a URL, following at most the configured redirect hops.

        Args:
            url: The URL to fetch.

        Returns:
            Terminal FetchOutcome (never Redirected).
        """
        start_time_ns = time.perf_counter_ns()
        request = FetchRequest(
            url=url,
            redirects_remaining=self._config.max_redirect_hops,
        )
        log = self._log.bind(url=redact_url_credentials(url))
        hops = 0

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout_seconds,
            follow_redirects=False,
            headers=self._config.build_headers(),
        ) as client:
            while True:
                outcome = await self._execute_single(client, request, log)
                if not isinstance(outcome, Redirected):
                    break
                hops += 1
                log.info(
                    "redirect_followed",
                    target_url=redact_url_credentials(outcome.target_url),
                    hop=hops,
                )
                request = request.follow(outcome.target_url)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        log.info(
            "fetch_complete",
            outcome=outcome.kind.value,
            redirects=hops,
            duration_ms=round(duration_ms, 2),
        )
        return outcome

    async def _execute_single(
        self,
        client: httpx.AsyncClient,
        request: FetchRequest,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchOutcome:
        """Execute one GET and classify its response.

        Args:
            client: HTTP client for this resolve call.
            request: Request to issue.
            log: Bound logger.

        Returns:
            FetchOutcome for this hop, possibly Redirected.
        """
        limit = self._config.max_response_size_bytes
        log = log.bind(request_url=redact_url_credentials(request.url))

        try:
            async with asyncio.timeout(self._config.timeout_seconds):
                async with client.stream("GET", request.url) as response:
                    step = classify_status(
                        response.status_code, request.redirects_allowed
                    )

                    if step is StatusClass.REDIRECT:
                        return self._follow_location(response, request, log)

                    if step is StatusClass.TERMINAL:
                        log.warning(
                            "upstream_status",
                            status_code=response.status_code,
                        )
                        return UpstreamStatus(code=response.status_code)

                    body = await self._read_body_with_limit(response, limit)

        except ResponseSizeExceededError as e:
            log.warning("response_size_exceeded", error=str(e), limit=limit)
            return DecodeFailure(cause=str(e))

        except TimeoutError:
            cause = f"Request timed out after {self._config.timeout_seconds}s"
            log.warning("fetch_transport_error", error=cause)
            return TransportFailure(cause=cause)

        except httpx.TimeoutException as e:
            cause = f"Request timed out: {e}"
            log.warning("fetch_transport_error", error=cause)
            return TransportFailure(cause=cause)

        except httpx.InvalidURL as e:
            cause = f"Invalid URL: {e}"
            log.warning("fetch_transport_error", error=cause)
            return TransportFailure(cause=cause)

        except httpx.HTTPError as e:
            cause = f"{type(e).__name__}: {e}"
            log.warning("fetch_transport_error", error=cause)
            return TransportFailure(cause=cause)

        return await self._decode(body, limit, log)

    def _follow_location(
        self,
        response: httpx.Response,
        request: FetchRequest,
        log: structlog.stdlib.BoundLogger,
    ) -> Redirected | RedirectFailure:
        """Turn a followable redirect into the next hop, or a failure.

        Args:
            response: Redirect response (head only).
            request: Request that produced it.
            log: Bound logger.

        Returns:
            Redirected with the absolute target, or RedirectFailure.
        """
        location = response.headers.get("location")
        target = resolve_location(response.request.url, location)
        if target is None:
            log.warning(
                "redirect_location_invalid",
                status_code=response.status_code,
                location=location,
                redirects_remaining=request.redirects_remaining,
            )
            return RedirectFailure(
                status_code=response.status_code,
                location=location,
            )
        return Redirected(target_url=target)

    async def _read_body_with_limit(
        self,
        response: httpx.Response,
        max_size: int,
    ) -> bytes:
        """Read response body with size limit.

        Args:
            response: Streaming HTTP response.
            max_size: Maximum number of body bytes accepted.

        Returns:
            Response body bytes.

        Raises:
            ResponseSizeExceededError: If the body is larger than max_size.
        """
        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > max_size:
                msg = f"Response size {size} exceeds limit {max_size}"
                raise ResponseSizeExceededError(msg)

        buffer = BytesIO()
        total_read = 0

        async for chunk in response.aiter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise ResponseSizeExceededError(msg)
            buffer.write(chunk)

        return buffer.getvalue()

    async def _decode(
        self,
        body: bytes,
        limit: int,
        log: structlog.stdlib.BoundLogger,
    ) -> Success | DecodeFailure:
        """Hand bounded bytes to the feed decoder off the event loop.

        Args:
            body: Bounded response body.
            limit: Body cap that was applied.
            log: Bound logger.

        Returns:
            Success with the decoded feed, or DecodeFailure.
        """
        try:
            feed = await asyncio.to_thread(self._decoder, body)
        except ParseError as e:
            log.error("feed_decode_failed", error=str(e), bytes=len(body))
            return DecodeFailure(cause=str(e))

        return Success(body_bytes=body, content_limit_applied=limit, feed=feed)

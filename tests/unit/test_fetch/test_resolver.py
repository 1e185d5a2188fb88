"""Unit tests for FeedResolver against a scripted transport."""

import asyncio
from collections.abc import AsyncIterator, Callable

import httpx
import pytest

from src.feed.errors import ParseError
from src.feed.models import Feed
from src.fetch.client import FeedResolver
from src.fetch.config import FetchConfig
from src.fetch.models import (
    DecodeFailure,
    FetchOutcome,
    OutcomeKind,
    RedirectFailure,
    Success,
    TransportFailure,
    UpstreamStatus,
)
from tests.helpers.feeds import RSS_FEED, rss_of_size


ONE_MIB = 1_048_576

Handler = Callable[[httpx.Request], httpx.Response]


class ChunkedStream(httpx.AsyncByteStream):
    """Response body without Content-Length, optionally failing mid-read."""

    def __init__(
        self,
        chunks: list[bytes],
        error: Exception | None = None,
    ) -> None:
        self._chunks = chunks
        self._error = error

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it serves."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


def routes(table: dict[str, httpx.Response]) -> Handler:
    """Build a handler serving fixed responses by URL.

    Buffered responses are copied per request so a URL can be hit twice;
    streamed ones are single-use.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        response = table.get(str(request.url))
        if response is None:
            return httpx.Response(404)
        if isinstance(response.stream, ChunkedStream):
            return response
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            content=response.content,
        )

    return handler


def resolve(
    transport: httpx.MockTransport,
    url: str,
    config: FetchConfig | None = None,
) -> FetchOutcome:
    resolver = FeedResolver(config=config, transport=transport)
    return asyncio.run(resolver.resolve(url))


class TestSuccess:
    """Tests for the 2xx branch."""

    def test_feed_decoded(self) -> None:
        """A 200 with a valid feed yields Success with the decoded feed."""
        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=RSS_FEED)})
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, Success)
        assert outcome.feed.title == "Example Blog"
        assert len(outcome.feed.items) == 2
        assert outcome.body_bytes == RSS_FEED
        assert outcome.content_limit_applied == ONE_MIB

    def test_user_agent_sent(self) -> None:
        """Every fetch identifies itself with the configured User-Agent."""
        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=RSS_FEED)})
        )

        resolve(transport, "https://example.com/feed")

        assert transport.requests[0].headers["user-agent"] == "rssss"
        assert transport.requests[0].method == "GET"

    def test_decoder_failure(self) -> None:
        """A body the decoder rejects yields DecodeFailure."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/feed": httpx.Response(
                        200, content=b"<html><body>nope</body></html>"
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, DecodeFailure)

    def test_custom_decoder(self) -> None:
        """The decoder is a pluggable collaborator."""
        seen: list[bytes] = []

        def decoder(body: bytes) -> Feed:
            seen.append(body)
            return Feed(title="stub")

        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=b"raw")})
        )
        resolver = FeedResolver(decoder=decoder, transport=transport)

        outcome = asyncio.run(resolver.resolve("https://example.com/feed"))

        assert isinstance(outcome, Success)
        assert outcome.feed.title == "stub"
        assert seen == [b"raw"]

    def test_decoder_parse_error_message_kept_in_outcome(self) -> None:
        """ParseError detail is carried on the outcome for logging."""

        def decoder(body: bytes) -> Feed:
            raise ParseError("bad channel", line=3)

        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=b"raw")})
        )
        resolver = FeedResolver(decoder=decoder, transport=transport)

        outcome = asyncio.run(resolver.resolve("https://example.com/feed"))

        assert isinstance(outcome, DecodeFailure)
        assert "bad channel" in outcome.cause


class TestBodyLimit:
    """Tests for the streaming body cap."""

    def test_exactly_at_limit_succeeds(self) -> None:
        """A valid feed of exactly 1 MiB is accepted."""
        body = rss_of_size(ONE_MIB)
        assert len(body) == ONE_MIB
        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=body)})
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, Success)
        assert outcome.body_size == ONE_MIB

    def test_one_byte_over_limit_fails(self) -> None:
        """A body of 1 MiB + 1 byte is rejected via the decode-failure path."""
        body = rss_of_size(ONE_MIB + 1)
        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=body)})
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, DecodeFailure)

    def test_streaming_cap_without_content_length(self) -> None:
        """The cap applies while streaming when no Content-Length is sent."""
        chunks = [b"x" * 8192] * 128 + [b"y"]
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/feed": httpx.Response(
                        200, stream=ChunkedStream(chunks)
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, DecodeFailure)
        assert "exceeded limit" in outcome.cause

    def test_streaming_at_limit_without_content_length(self) -> None:
        """Exactly the cap streamed without Content-Length is accepted."""
        body = rss_of_size(ONE_MIB)
        chunks = [body[i : i + 10_000] for i in range(0, len(body), 10_000)]
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/feed": httpx.Response(
                        200, stream=ChunkedStream(chunks)
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, Success)

    def test_configured_limit(self) -> None:
        """A smaller configured cap is enforced."""
        transport = RecordingTransport(
            routes({"https://example.com/feed": httpx.Response(200, content=RSS_FEED)})
        )
        config = FetchConfig(max_response_size_bytes=100)

        outcome = resolve(transport, "https://example.com/feed", config)

        assert isinstance(outcome, DecodeFailure)


class TestRedirects:
    """Tests for redirect handling."""

    def test_single_hop_followed(self) -> None:
        """A redirect to a 200 resolves to the target's feed."""
        transport = RecordingTransport(
            routes(
                {
                    "https://a.example.com/feed": httpx.Response(
                        301, headers={"Location": "https://b.example.com/feed"}
                    ),
                    "https://b.example.com/feed": httpx.Response(
                        200, content=RSS_FEED
                    ),
                }
            )
        )

        redirected = resolve(transport, "https://a.example.com/feed")
        direct = resolve(transport, "https://b.example.com/feed")

        assert isinstance(redirected, Success)
        assert isinstance(direct, Success)
        assert redirected.feed == direct.feed
        assert transport.urls[:2] == [
            "https://a.example.com/feed",
            "https://b.example.com/feed",
        ]

    def test_relative_location(self) -> None:
        """Relative Location values are resolved against the request URL."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/old": httpx.Response(
                        302, headers={"Location": "/new"}
                    ),
                    "https://example.com/new": httpx.Response(200, content=RSS_FEED),
                }
            )
        )

        outcome = resolve(transport, "https://example.com/old")

        assert isinstance(outcome, Success)

    def test_two_hop_chain_not_resolved(self) -> None:
        """A→B→C passes B's redirect status through and never fetches C."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/a": httpx.Response(
                        302, headers={"Location": "https://example.com/b"}
                    ),
                    "https://example.com/b": httpx.Response(
                        307, headers={"Location": "https://example.com/c"}
                    ),
                    "https://example.com/c": httpx.Response(200, content=RSS_FEED),
                }
            )
        )

        outcome = resolve(transport, "https://example.com/a")

        assert outcome == UpstreamStatus(code=307)
        assert "https://example.com/c" not in transport.urls
        assert len(transport.requests) == 2

    def test_configured_hop_budget(self) -> None:
        """Raising the hop budget lets a longer chain resolve."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/a": httpx.Response(
                        302, headers={"Location": "https://example.com/b"}
                    ),
                    "https://example.com/b": httpx.Response(
                        302, headers={"Location": "https://example.com/c"}
                    ),
                    "https://example.com/c": httpx.Response(200, content=RSS_FEED),
                }
            )
        )

        outcome = resolve(
            transport, "https://example.com/a", FetchConfig(max_redirect_hops=2)
        )

        assert isinstance(outcome, Success)

    def test_no_hops_passes_redirect_through(self) -> None:
        """With a zero hop budget the first redirect is terminal."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/a": httpx.Response(
                        301, headers={"Location": "https://example.com/b"}
                    ),
                }
            )
        )

        outcome = resolve(
            transport, "https://example.com/a", FetchConfig(max_redirect_hops=0)
        )

        assert outcome == UpstreamStatus(code=301)

    def test_missing_location(self) -> None:
        """A followable redirect without Location is a RedirectFailure."""
        transport = RecordingTransport(
            routes({"https://example.com/a": httpx.Response(302)})
        )

        outcome = resolve(transport, "https://example.com/a")

        assert isinstance(outcome, RedirectFailure)
        assert outcome.location is None
        assert len(transport.requests) == 1

    def test_unparseable_location(self) -> None:
        """A Location httpx cannot parse is a RedirectFailure."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/a": httpx.Response(
                        302, headers={"Location": "http://example.com:notaport/"}
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/a")

        assert isinstance(outcome, RedirectFailure)
        assert outcome.status_code == 302


class TestTerminalStatus:
    """Tests for pass-through statuses."""

    @pytest.mark.parametrize("status_code", [400, 403, 404, 410, 500, 502, 503])
    def test_status_passed_through(self, status_code: int) -> None:
        """Non-2xx, non-redirect statuses become UpstreamStatus."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/feed": httpx.Response(
                        status_code, content=b"upstream error page"
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/feed")

        assert outcome == UpstreamStatus(code=status_code)


class TestTransportFailure:
    """Tests for transport-level failures."""

    def test_connect_error(self) -> None:
        """Connection failures become TransportFailure without retry."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = RecordingTransport(handler)

        outcome = resolve(transport, "https://example.com/feed")

        assert isinstance(outcome, TransportFailure)
        assert "connection refused" in outcome.cause
        assert len(transport.requests) == 1

    def test_connect_error_on_redirect_target(self) -> None:
        """A failing redirect target is a TransportFailure too."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "a.example.com":
                return httpx.Response(
                    302, headers={"Location": "https://b.example.com/feed"}
                )
            raise httpx.ConnectError("no route to host", request=request)

        outcome = resolve(RecordingTransport(handler), "https://a.example.com/feed")

        assert isinstance(outcome, TransportFailure)

    def test_read_error_mid_body(self) -> None:
        """A transport error while streaming the body is a TransportFailure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                stream=ChunkedStream(
                    [b"<rss>"], error=httpx.ReadError("connection reset")
                ),
            )

        outcome = resolve(RecordingTransport(handler), "https://example.com/feed")

        assert isinstance(outcome, TransportFailure)

    def test_attempt_deadline(self) -> None:
        """A response head slower than the deadline is a TransportFailure."""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, content=RSS_FEED)

        transport = httpx.MockTransport(handler)
        config = FetchConfig(timeout_seconds=0.05)

        outcome = resolve(transport, "https://example.com/feed", config)

        assert isinstance(outcome, TransportFailure)
        assert "timed out" in outcome.cause

    def test_outcome_kind_is_terminal(self) -> None:
        """resolve() never hands a Redirected outcome to the caller."""
        transport = RecordingTransport(
            routes(
                {
                    "https://example.com/a": httpx.Response(
                        302, headers={"Location": "https://example.com/a"}
                    )
                }
            )
        )

        outcome = resolve(transport, "https://example.com/a")

        assert outcome.kind is not OutcomeKind.REDIRECTED
        assert outcome == UpstreamStatus(code=302)

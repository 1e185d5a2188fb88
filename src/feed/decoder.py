"""RSS/Atom feed decoder."""

import calendar
import io
from datetime import UTC, datetime

import feedparser  # type: ignore[import-untyped]
import structlog
from bs4 import BeautifulSoup

from src.feed.errors import ParseError
from src.feed.models import Feed, FeedItem


logger = structlog.get_logger()

# Warnings feedparser raises for documents that still parsed cleanly
_BENIGN_BOZO_EXCEPTIONS = (
    feedparser.CharacterEncodingOverride,
    feedparser.NonXMLContentType,
)


def decode_feed(body: bytes) -> Feed:
    """Decode raw response bytes into a Feed.

    Parses RSS 0.9x/1.0/2.0 and Atom documents using feedparser. Entry and
    channel descriptions are reduced to plain text.

    Args:
        body: Response body, already bounded by the fetch layer.

    Returns:
        Decoded Feed.

    Raises:
        ParseError: If the body is empty, malformed, or not a feed.
    """
    if not body.strip():
        msg = "Empty document"
        raise ParseError(msg)

    # Wrapped so feedparser never treats the bytes as a path or URL
    try:
        parsed = feedparser.parse(io.BytesIO(body))
    except Exception as e:  # noqa: BLE001
        msg = f"Unexpected error: {e}"
        raise ParseError(msg) from e

    bozo_exception = parsed.get("bozo_exception")
    if parsed.bozo and not isinstance(bozo_exception, _BENIGN_BOZO_EXCEPTIONS):
        raise _parse_error_from(bozo_exception)

    if not parsed.version:
        msg = "Document is not an RSS or Atom feed"
        raise ParseError(msg)

    channel = parsed.feed
    feed = Feed(
        title=_clean_text(channel.get("title")),
        link=channel.get("link") or None,
        description=_clean_text(
            channel.get("subtitle") or channel.get("description")
        ),
        items=[_decode_entry(entry) for entry in parsed.entries],
    )

    logger.debug(
        "feed_decoded",
        component="feed",
        version=parsed.version,
        items=len(feed.items),
    )
    return feed


def _parse_error_from(exc: Exception | None) -> ParseError:
    """Build a ParseError from a feedparser bozo exception."""
    if exc is None:
        return ParseError("Malformed feed")

    line = column = None
    # xml.sax.SAXParseException carries a location
    if hasattr(exc, "getLineNumber"):
        line = exc.getLineNumber()
        column = exc.getColumnNumber()

    message = str(exc)
    if hasattr(exc, "getMessage"):
        message = exc.getMessage()
    return ParseError(f"Malformed feed: {message}", line=line, column=column)


def _decode_entry(entry: feedparser.FeedParserDict) -> FeedItem:
    link = entry.get("link", "")
    if not link:
        # Atom entries may only carry rel="alternate" links
        links = entry.get("links", [])
        for link_entry in links:
            if link_entry.get("rel") == "alternate":
                link = link_entry.get("href", "")
                break
        if not link and links:
            link = links[0].get("href", "")

    return FeedItem(
        title=_clean_text(entry.get("title")),
        link=link or None,
        description=_clean_text(
            entry.get("summary") or entry.get("description")
        ),
        guid=entry.get("id") or None,
        published=_extract_date(entry),
    )


def _extract_date(entry: feedparser.FeedParserDict) -> datetime | None:
    """Extract publication date from entry, falling back to updated."""
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if not value:
            continue
        try:
            return datetime.fromtimestamp(calendar.timegm(value), tz=UTC)
        except (ValueError, OverflowError, TypeError):
            continue
    return None


def _clean_text(value: str | None) -> str | None:
    """Strip HTML markup and surrounding whitespace from a text field."""
    if not value:
        return None
    if "<" in value:
        value = BeautifulSoup(value, "lxml").get_text(" ", strip=True)
    value = value.strip()
    return value or None

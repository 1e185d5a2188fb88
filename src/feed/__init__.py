"""Feed decoding: RSS/Atom bytes to a JSON-serializable Feed."""

from src.feed.decoder import decode_feed
from src.feed.errors import ParseError
from src.feed.models import Feed, FeedItem


__all__ = [
    "Feed",
    "FeedItem",
    "ParseError",
    "decode_feed",
]

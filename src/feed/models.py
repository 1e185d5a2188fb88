"""Data models for decoded feeds."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FeedItem(BaseModel):
    """A single entry of a decoded feed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = None
    link: str | None = None
    description: str | None = Field(
        default=None, description="Entry summary reduced to plain text"
    )
    guid: str | None = None
    published: datetime | None = Field(
        default=None, description="Publication (or last update) time in UTC"
    )


class Feed(BaseModel):
    """Structured form of an RSS or Atom document, serialized as JSON."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = None
    link: str | None = None
    description: str | None = None
    items: list[FeedItem] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, object]:
        """Convert the feed to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

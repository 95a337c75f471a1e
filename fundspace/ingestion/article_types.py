"""Shared ingestion data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def as_list(value: Any) -> List[Any]:
    """Feeds may declare a field once or many times; always hand back a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v is not None]
    return [value]


@dataclass(frozen=True)
class RawFeedItem:
    """One ``<item>``/``<entry>`` as parsed from a feed.

    Namespaced media fields are lists of plain dicts (``url``, ``type``,
    ``medium``) no matter how many elements the feed declared.
    """

    title: Optional[str] = None
    link: Optional[str] = None
    guid: Optional[str] = None
    published: Optional[str] = None
    pub_date: Optional[datetime] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    enclosures: List[Dict[str, Any]] = field(default_factory=list)
    media_content: List[Dict[str, Any]] = field(default_factory=list)
    media_thumbnail: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class FetchedFeed:
    """A feed URL that was fetched and parsed successfully."""

    url: str
    title: Optional[str]
    items: List[RawFeedItem]


@dataclass(frozen=True)
class Article:
    """Canonical article record served to clients.

    ``full_content`` and ``pub_date`` are internal (relevance filtering and
    ranking) and are not serialized.
    """

    id: str
    title: str
    summary: str
    url: Optional[str]
    image: Optional[str]
    time_ago: str
    category: str
    source: str
    pub_date: Optional[datetime] = None
    full_content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "category": self.category,
            "timeAgo": self.time_ago,
            "image": self.image,
            "url": self.url,
            "source": self.source,
        }

"""Static feed configuration: category -> ordered feed URLs."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Mapping, Sequence


class UnknownCategoryError(KeyError):
    """Raised when a category is not present in the feed map."""

    def __init__(self, category: str):
        super().__init__(category)
        self.category = category

    def __str__(self) -> str:
        return f"Unknown feed category: {self.category!r}"


RSS_FEEDS: Dict[str, List[str]] = {
    "general": [
        "https://feeds.npr.org/1001/rss.xml",
        "https://feeds.a.dj.com/rss/RSSMarketsMain.xml",
        "https://www.latimes.com/local/rss2.0.xml",
    ],
    "funder": [
        "https://www.philanthropy.com/feed",
        "https://nonprofitquarterly.org/feed/",
        "https://www.mercurynews.com/feed/",
        "https://www.sfchronicle.com/bayarea/feed/Bay-Area-News-435.php",
        "https://calmatters.org/feed/",
    ],
    "nonprofit": [
        "https://www.philanthropy.com/feed",
        "https://nonprofitquarterly.org/feed/",
        "https://www.mercurynews.com/feed/",
        "https://www.sfchronicle.com/bayarea/feed/Bay-Area-News-435.php",
        "https://calmatters.org/feed/",
    ],
}

# Categories whose articles must pass the geography + philanthropy filter.
COMMUNITY_CATEGORIES: FrozenSet[str] = frozenset({"funder", "nonprofit"})


def feeds_for(category: str, feeds: Mapping[str, Sequence[str]] = RSS_FEEDS) -> List[str]:
    """Return the feed URLs for ``category``.

    A configured category with no URLs returns an empty list; an unconfigured
    one raises ``UnknownCategoryError``.
    """
    if category not in feeds:
        raise UnknownCategoryError(category)
    return list(feeds[category])

"""Category-keyed in-memory response cache.

One instance per process, handed to whoever serves requests. Entries are
valid while ``now - timestamp < ttl``; stale entries are never read and get
overwritten by the next successful pipeline run. There is no locking: an
entry is replaced by a single assignment, so readers never observe a
half-written one, and concurrent writers simply race (last write wins).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fundspace.ingestion.article_types import Article


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    timestamp: float
    articles: Tuple[Article, ...]


class ResponseCache:
    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, category: str) -> Optional[List[Article]]:
        """Cached articles for ``category``, or ``None`` on a miss or stale entry."""
        entry = self._entries.get(category)
        if entry is None:
            return None
        age = self.clock() - entry.timestamp
        if age >= self.ttl:
            return None
        logger.debug(f"Cache hit for {category} (age {age:.1f}s)")
        return list(entry.articles)

    def put(self, category: str, articles: Sequence[Article]) -> None:
        self._entries[category] = CacheEntry(timestamp=self.clock(), articles=tuple(articles))

    def clear(self) -> None:
        self._entries = {}
        logger.info("Response cache cleared")

"""Category -> articles pipeline.

fetch (concurrent) -> resolve image -> normalize -> off-topic drop ->
relevance (community categories only) -> dedupe/rank -> cache.

Both the HTTP handler and the ingestion worker go through ``NewsPipeline``;
there is exactly one implementation of this flow.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence

from fundspace.cache.response_cache import ResponseCache
from fundspace.config import Settings
from fundspace.ingestion.article_types import Article, FetchedFeed
from fundspace.ingestion.dedupe import dedupe_and_rank
from fundspace.ingestion.feed_fetcher import FeedFetcher
from fundspace.ingestion.feed_sources import COMMUNITY_CATEGORIES, RSS_FEEDS, feeds_for
from fundspace.ingestion.image_resolver import ImageResolver
from fundspace.ingestion.normalizer import ArticleNormalizer
from fundspace.scoring.relevance import RelevanceFilter, is_excluded_topic


logger = logging.getLogger(__name__)


class NewsPipeline:
    def __init__(
        self,
        fetcher: FeedFetcher,
        cache: ResponseCache,
        *,
        feeds: Mapping[str, Sequence[str]] = RSS_FEEDS,
        community_categories: FrozenSet[str] = COMMUNITY_CATEGORIES,
        resolver: Optional[ImageResolver] = None,
        normalizer: Optional[ArticleNormalizer] = None,
        relevance: Optional[RelevanceFilter] = None,
        result_limit: int = 10,
        clock: Callable[[], float] = time.time,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.feeds = feeds
        self.community_categories = community_categories
        self.resolver = resolver or ImageResolver()
        self.normalizer = normalizer or ArticleNormalizer()
        self.relevance = relevance or RelevanceFilter()
        self.result_limit = result_limit
        self.clock = clock

    @property
    def categories(self) -> List[str]:
        return list(self.feeds.keys())

    def has_category(self, category: str) -> bool:
        return category in self.feeds

    def get_articles(self, category: str) -> List[Article]:
        """Cached articles for ``category``, running the pipeline on a miss.

        Raises:
            UnknownCategoryError: ``category`` is not configured.
        """
        urls = feeds_for(category, self.feeds)
        cached = self.cache.get(category)
        if cached is not None:
            return cached
        articles = self._run(category, urls)
        self.cache.put(category, articles)
        return articles

    def refresh(self, category: str) -> List[Article]:
        """Run the pipeline regardless of cache state and store the result."""
        articles = self._run(category, feeds_for(category, self.feeds))
        self.cache.put(category, articles)
        return articles

    def _run(self, category: str, urls: List[str]) -> List[Article]:
        started = self.clock()
        if not urls:
            logger.info(f"No feeds configured for {category}")
            return []

        feeds = self.fetcher.fetch_all(urls)
        now = datetime.fromtimestamp(self.clock(), tz=timezone.utc)
        candidates = self._normalize_all(feeds, now)

        kept = []
        for article in candidates:
            if is_excluded_topic(article.title, article.summary):
                logger.debug(f"Dropping off-topic '{article.title[:80]}'")
                continue
            kept.append(article)
        off_topic = len(candidates) - len(kept)

        rejected = 0
        if category in self.community_categories:
            kept, verdicts = self.relevance.filter(kept)
            rejected = len(verdicts)

        ranked = dedupe_and_rank(kept, limit=self.result_limit)
        logger.info(
            f"{category}: {len(feeds)}/{len(urls)} feeds ok, {len(candidates)} items, "
            f"{off_topic} off-topic, {rejected} irrelevant, {len(ranked)} returned "
            f"in {self.clock() - started:.2f}s"
        )
        return ranked

    def _normalize_all(self, feeds: Sequence[FetchedFeed], now: datetime) -> List[Article]:
        articles: List[Article] = []
        for feed in feeds:
            for item in feed.items:
                try:
                    image = self.resolver.resolve(item, feed.url)
                    article = self.normalizer.normalize(
                        item, image, feed.url, feed_title=feed.title, now=now
                    )
                except Exception as e:
                    logger.warning(f"Skipping item from {feed.url}: {e}")
                    continue
                if article is not None:
                    articles.append(article)
        return articles

    def payload(self, category: str, articles: Sequence[Article]) -> Dict[str, Any]:
        """JSON body served for ``category``; also what the worker snapshots."""
        return {
            "success": True,
            "category": category,
            "articles": [a.to_dict() for a in articles],
            "total": len(articles),
        }


def build_pipeline(
    settings: Optional[Settings] = None,
    *,
    session: Any = None,
    feeds: Mapping[str, Sequence[str]] = RSS_FEEDS,
    clock: Callable[[], float] = time.time,
) -> NewsPipeline:
    """Wire a pipeline from ``Settings``; one per process."""
    settings = settings or Settings()
    fetcher = FeedFetcher(
        timeout=settings.fetch_timeout,
        max_workers=settings.fetch_workers,
        items_per_feed=settings.items_per_feed,
        user_agent=settings.user_agent,
        session=session,
    )
    return NewsPipeline(
        fetcher,
        ResponseCache(ttl=settings.cache_ttl, clock=clock),
        feeds=feeds,
        normalizer=ArticleNormalizer(image_policy=settings.image_policy),
        result_limit=settings.result_limit,
        clock=clock,
    )

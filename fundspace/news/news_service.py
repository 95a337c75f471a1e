"""NewsAPI-backed headline aggregator with fixed fallback content.

Callers always get a non-empty list of ``Article``: a missing API key, an
HTTP error or an empty upstream answer all fall back to ``fallback_articles``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from fundspace.config import DEFAULT_USER_AGENT
from fundspace.ingestion.article_types import Article
from fundspace.ingestion.feed_fetcher import parse_datetime
from fundspace.ingestion.normalizer import (
    categorize_text,
    fallback_image_for,
    format_time_ago,
    strip_html,
)
from fundspace.news.fallback_data import fallback_articles


logger = logging.getLogger(__name__)

NEWS_API_BASE_URL = "https://newsapi.org/v2"
MAX_ARTICLES = 10

EXCLUSION_CLAUSE = (
    'NOT (job OR jobs OR hiring OR career OR careers OR event OR events OR webinar OR "4th of July")'
)

FUNDER_QUERIES = [
    '"Tipping Point Community" OR "Hewlett Foundation" OR "Packard Foundation" OR "Chan Zuckerberg Initiative"',
    '("San Francisco Foundation" OR "Silicon Valley Community Foundation" OR "Marin Community Foundation") '
    "AND (grant OR funding OR initiative OR report)",
    '("California State Assembly" OR "SF Board of Supervisors" OR "Oakland City Council") '
    "AND (funding OR budget OR bill OR policy)",
    '"California Budget and Policy Center"',
]

NONPROFIT_QUERIES = [
    '"Glide Memorial" OR "SF-Marin Food Bank" OR "Second Harvest of Silicon Valley" OR "SPUR"',
    '("Tenderloin Neighborhood Development Corporation" OR "Bay Area Legal Aid" OR "Hamilton Families")',
    '"Latino Community Foundation" OR "Asian Pacific Fund"',
    '("California nonprofit" OR "Bay Area nonprofit") AND (report OR study OR impact OR program OR serves)',
]

NEWS_KINDS = ("global", "funder", "nonprofit")


def combine_queries(queries: Sequence[str], exclusion: str = EXCLUSION_CLAUSE) -> str:
    """Fold several NewsAPI queries into one ``(a) OR (b) ... AND NOT (...)`` query."""
    combined = ") OR (".join(queries)
    return f"({combined}) AND {exclusion}"


def usable_articles(raw: Sequence[Any], limit: int = MAX_ARTICLES) -> List[Dict[str, Any]]:
    """First-seen title dedupe, drop untitled/undescribed/removed items, cap at ``limit``."""
    seen = set()
    out: List[Dict[str, Any]] = []
    for a in raw:
        if not isinstance(a, dict):
            continue
        title = a.get("title")
        if title in seen:
            continue
        seen.add(title)
        if not title or not a.get("description") or "[Removed]" in title:
            continue
        out.append(a)
        if len(out) >= limit:
            break
    return out


def to_article(raw: Dict[str, Any], index: int, now: Optional[datetime] = None) -> Article:
    title = str(raw.get("title") or "").strip() or "No title available"
    summary = strip_html(raw.get("description")) or "No description available"
    label = categorize_text(title, summary)
    url = (raw.get("url") or "").strip() or None
    src = raw.get("source")
    source = (src.get("name") if isinstance(src, dict) else None) or "newsapi"
    published = parse_datetime(raw.get("publishedAt"))
    return Article(
        id=f"{url or 'newsapi'}{index}",
        title=title,
        summary=summary,
        url=url,
        image=raw.get("urlToImage") or fallback_image_for(label),
        time_ago=format_time_ago(published, now),
        category=label,
        source=source,
        pub_date=published,
    )


class NewsService:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        session: Any = None,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        base_url: str = NEWS_API_BASE_URL,
    ):
        self.api_key = api_key
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")

    def get(self, kind: str) -> List[Article]:
        """Dispatch on ``kind`` (global, funder, nonprofit)."""
        if kind == "global":
            return self.get_global_breaking_news()
        if kind == "funder":
            return self.get_funder_news()
        if kind == "nonprofit":
            return self.get_nonprofit_news()
        raise ValueError(f"Unknown news feed: {kind!r}")

    def get_global_breaking_news(self) -> List[Article]:
        params = {"category": "general", "language": "en", "pageSize": 15}
        return self._fetch("top-headlines", params, "general")

    def get_funder_news(self) -> List[Article]:
        return self._fetch_community(FUNDER_QUERIES, "funder")

    def get_nonprofit_news(self) -> List[Article]:
        return self._fetch_community(NONPROFIT_QUERIES, "nonprofit")

    def _fetch_community(self, queries: Sequence[str], kind: str) -> List[Article]:
        params = {
            "q": combine_queries(queries),
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": 40,
        }
        return self._fetch("everything", params, kind)

    def _fetch(self, endpoint: str, params: Dict[str, Any], fallback_kind: str) -> List[Article]:
        if not self.api_key:
            logger.warning(f"News API key not configured, using fallback data for {fallback_kind}")
            return fallback_articles(fallback_kind)

        headers = {"X-Api-Key": self.api_key, "User-Agent": self.user_agent}
        try:
            resp = self.session.get(
                f"{self.base_url}/{endpoint}", params=params, headers=headers, timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"NewsAPI {endpoint} request failed: {e}")
            return fallback_articles(fallback_kind)

        raw = data.get("articles") if isinstance(data, dict) else None
        now = datetime.now(timezone.utc)
        articles = [
            to_article(a, i, now) for i, a in enumerate(usable_articles(raw or []))
        ]
        if not articles:
            logger.info(f"NewsAPI returned no usable articles for {fallback_kind}, using fallback data")
            return fallback_articles(fallback_kind)
        return articles

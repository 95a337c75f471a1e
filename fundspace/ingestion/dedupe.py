"""Title dedupe + recency ranking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from fundspace.ingestion.article_types import Article


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(article: Article) -> datetime:
    dt = article.pub_date
    if dt is None:
        return _OLDEST
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def dedupe_by_title(articles: Iterable[Article]) -> List[Article]:
    """Keep the first article seen for each title; later duplicates are dropped."""
    seen: Dict[str, Article] = {}
    for article in articles:
        if article.title not in seen:
            seen[article.title] = article
    return list(seen.values())


def dedupe_and_rank(articles: Iterable[Article], limit: Optional[int] = None) -> List[Article]:
    """Dedupe by title, sort newest first, cap at ``limit``.

    Articles without a publication date sort last; the sort is stable so
    ties keep their input order.
    """
    ranked = sorted(dedupe_by_title(articles), key=_sort_key, reverse=True)
    if limit is not None:
        ranked = ranked[: max(0, limit)]
    return ranked

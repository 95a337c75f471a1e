"""RawFeedItem -> Article normalization."""

from __future__ import annotations

import hashlib
import html
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional

from fundspace.config import IMAGE_POLICY_EXCLUDE, IMAGE_POLICY_FALLBACK, IMAGE_POLICIES
from fundspace.ingestion.article_types import Article, RawFeedItem


logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 200
NO_TITLE = "No Title"
DEFAULT_CATEGORY = "Breaking News"

# Checked in order; first label whose keyword appears in title+description wins.
CATEGORY_KEYWORDS = [
    ("Philanthropy", ("philanthrop", "foundation", "grant", "donation")),
    ("Nonprofit", ("nonprofit", "non-profit", "charity", "volunteer", "social service")),
    ("Technology", ("tech", "startup")),
    ("Business", ("business", "economic", "market")),
    ("Health", ("health", "medical", "hospital")),
    ("Environment", ("environment", "climate", "green")),
]

FALLBACK_IMAGES = {
    "general": "https://images.unsplash.com/photo-1504711434969-e33886168f5c?w=400&h=200&fit=crop",
    "business": "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=400&h=200&fit=crop",
    "technology": "https://images.unsplash.com/photo-1518709268805-4e9042af2176?w=400&h=200&fit=crop",
    "health": "https://images.unsplash.com/photo-1576091160399-112ba8d25d1f?w=400&h=200&fit=crop",
    "environment": "https://images.unsplash.com/photo-1569163139394-de44cb6296ec?w=400&h=200&fit=crop",
    "philanthropy": "https://images.unsplash.com/photo-1559827260-dc66d52bef19?w=400&h=200&fit=crop",
    "nonprofit": "https://images.unsplash.com/photo-1573164713714-d95e436ab8d6?w=400&h=200&fit=crop",
}

_TAG = re.compile(r"<[^>]*>")
_WS = re.compile(r"\s+")


def strip_html(text: Optional[str]) -> str:
    """Plain text from an HTML fragment: tags removed, entities decoded, whitespace collapsed."""
    if not text:
        return ""
    text = _TAG.sub(" ", text)
    text = html.unescape(text).replace("\xa0", " ")
    return _WS.sub(" ", text).strip()


def truncate_summary(text: str, limit: int = SUMMARY_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def format_time_ago(pub_date: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative age rendering; never raises."""
    if pub_date is None:
        return "Recently"
    try:
        now = now or datetime.now(timezone.utc)
        if pub_date.tzinfo is None:
            pub_date = pub_date.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        hours = math.floor((now - pub_date).total_seconds() / 3600)
    except (TypeError, ValueError, OverflowError):
        return "Recently"
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def categorize_text(title: Optional[str], description: Optional[str] = None) -> str:
    blob = f"{title or ''} {description or ''}".lower()
    for label, keywords in CATEGORY_KEYWORDS:
        if any(k in blob for k in keywords):
            return label
    return DEFAULT_CATEGORY


def fallback_image_for(label: Optional[str]) -> str:
    key = (label or "").strip().lower()
    return FALLBACK_IMAGES.get(key, FALLBACK_IMAGES["general"])


def make_article_id(item: RawFeedItem, source_url: str = "") -> str:
    """guid, else link, else a content hash so the same item always gets the same id."""
    if item.guid:
        return str(item.guid).strip()
    if item.link:
        return str(item.link).strip()
    published = item.pub_date.isoformat() if item.pub_date else (item.published or "")
    basis = "\n".join((source_url, item.title or "", published, item.description or ""))
    return hashlib.sha1(basis.encode("utf-8")).hexdigest()[:16]


class ArticleNormalizer:
    """Build ``Article`` records and apply the image policy.

    ``image_policy`` is ``"fallback"`` (substitute a category image) or
    ``"exclude"`` (drop items with no resolvable image).
    """

    def __init__(self, image_policy: str = IMAGE_POLICY_FALLBACK):
        if image_policy not in IMAGE_POLICIES:
            raise ValueError(f"Unknown image policy: {image_policy!r}")
        self.image_policy = image_policy

    def normalize(
        self,
        item: RawFeedItem,
        image: Optional[str],
        source_url: str,
        *,
        feed_title: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Article]:
        """Return the Article for ``item``, or ``None`` when the image policy excludes it."""
        now = now or datetime.now(timezone.utc)
        title = (item.title or "").strip() or NO_TITLE
        body_text = strip_html(item.content or item.description)
        snippet = strip_html(item.description) or body_text
        topical = categorize_text(title, snippet)

        if not image:
            if self.image_policy == IMAGE_POLICY_EXCLUDE:
                logger.debug(f"Excluding '{title[:80]}' from {source_url}: no image")
                return None
            image = fallback_image_for(topical)

        return Article(
            id=make_article_id(item, source_url),
            title=title,
            summary=truncate_summary(snippet) if snippet else "",
            url=(item.link or "").strip() or None,
            image=image,
            time_ago=format_time_ago(item.pub_date, now),
            category=(feed_title or "").strip() or topical,
            source=source_url,
            pub_date=item.pub_date,
            full_content=body_text,
        )

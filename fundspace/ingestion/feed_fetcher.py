"""Concurrent RSS/Atom fetching.

Every feed URL of a category is fetched in its own worker thread. A URL that
errors, times out or does not parse contributes nothing; it never fails the
request as a whole. There is no retry: one attempt per URL per request.
"""

from __future__ import annotations

import calendar
import logging
import re
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Sequence

import feedparser
import requests

from fundspace.config import DEFAULT_USER_AGENT
from fundspace.ingestion.article_types import FetchedFeed, RawFeedItem, as_list


logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8"

_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
# A bare "&" that does not already start a named or numeric entity.
_BARE_AMPERSAND = re.compile(r"&(?!(?:[a-zA-Z][a-zA-Z0-9]*|#[0-9]+|#[xX][0-9a-fA-F]+);)")


class FeedParseError(Exception):
    """Raised when a response body is not a usable RSS or Atom feed."""


def clean_xml(text: str) -> str:
    """Strip control characters and escape bare ampersands before parsing."""
    if not text:
        return ""
    text = _INVALID_XML_CHARS.sub("", text)
    return _BARE_AMPERSAND.sub("&amp;", text)


def parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    s = str(value).strip()
    if not s:
        return None
    try:
        parsed = parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _entry_pub_date(entry: Dict[str, Any]) -> Optional[datetime]:
    for field in ("published_parsed", "updated_parsed"):
        struct = entry.get(field)
        if struct:
            try:
                # feedparser normalizes *_parsed to UTC
                return datetime.fromtimestamp(calendar.timegm(struct), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError):
                continue
    return parse_datetime(entry.get("published") or entry.get("updated"))


def _entry_content(entry: Dict[str, Any]) -> Optional[str]:
    for block in as_list(entry.get("content")):
        value = block.get("value") if hasattr(block, "get") else block
        if value:
            return str(value)
    return None


def _entry_image(entry: Dict[str, Any]) -> Optional[str]:
    image = entry.get("image")
    if not image:
        return None
    if hasattr(image, "get"):
        return image.get("href") or image.get("url") or None
    return str(image).strip() or None


def _media_refs(values: Any) -> List[Dict[str, Any]]:
    refs = []
    for v in as_list(values):
        if not hasattr(v, "get"):
            if isinstance(v, str) and v.strip():
                refs.append({"url": v.strip(), "type": "", "medium": ""})
            continue
        url = v.get("url") or v.get("href")
        refs.append({
            "url": str(url).strip() if url else None,
            "type": str(v.get("type") or ""),
            "medium": str(v.get("medium") or ""),
        })
    return refs


def entry_to_item(entry: Dict[str, Any]) -> RawFeedItem:
    """Map a feedparser entry onto ``RawFeedItem`` with list-shaped media fields."""
    title = entry.get("title")
    return RawFeedItem(
        title=str(title) if title is not None else None,
        link=entry.get("link") or None,
        guid=entry.get("id") or entry.get("guid") or None,
        published=entry.get("published") or entry.get("updated") or None,
        pub_date=_entry_pub_date(entry),
        description=entry.get("summary") or entry.get("description") or None,
        content=_entry_content(entry),
        image=_entry_image(entry),
        enclosures=_media_refs(entry.get("enclosures")),
        media_content=_media_refs(entry.get("media_content")),
        media_thumbnail=_media_refs(entry.get("media_thumbnail")),
    )


def parse_feed(text: str, url: str, *, max_items: Optional[int] = None) -> FetchedFeed:
    """Parse an RSS/Atom body.

    Raises:
        FeedParseError: if the body yields neither entries nor a feed title.
    """
    # Item HTML is scanned for images and stripped to text, never rendered.
    parsed = feedparser.parse(clean_xml(text), sanitize_html=False)
    entries = list(parsed.entries or [])
    feed_title = parsed.feed.get("title") if parsed.feed else None

    if not entries and (parsed.bozo or not feed_title):
        reason = parsed.get("bozo_exception") or "no feed elements"
        raise FeedParseError(f"{url} is not a valid RSS or Atom feed: {reason}")
    if parsed.bozo:
        logger.warning(f"Feed {url} has formatting issues: {parsed.get('bozo_exception')}")

    if max_items is not None:
        entries = entries[: max(0, max_items)]

    items: List[RawFeedItem] = []
    for entry in entries:
        try:
            items.append(entry_to_item(entry))
        except Exception as e:
            logger.warning(f"Skipping malformed entry in {url}: {e}")
    return FetchedFeed(url=url, title=(feed_title or "").strip() or None, items=items)


class FeedFetcher:
    """Fetch and parse a list of feed URLs concurrently.

    ``session`` may be anything with a ``requests.Session``-compatible
    ``get``; tests pass a stub.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_workers: int = 8,
        items_per_feed: Optional[int] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Any = None,
    ):
        self.timeout = timeout
        self.max_workers = max(1, max_workers)
        self.items_per_feed = items_per_feed
        self.user_agent = user_agent
        self.session = session if session is not None else requests.Session()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": ACCEPT_HEADER,
            "Cache-Control": "no-cache",
        }

    def fetch_one(self, url: str) -> Optional[FetchedFeed]:
        """Fetch and parse one URL; ``None`` on any failure."""
        try:
            resp = self.session.get(url, headers=self.headers, timeout=self.timeout)
            if resp.status_code >= 400:
                logger.warning(f"Failed to fetch {url}: HTTP {resp.status_code}")
                return None
            feed = parse_feed(resp.text, url, max_items=self.items_per_feed)
            logger.info(f"Parsed {len(feed.items)} items from {url}")
            return feed
        except requests.Timeout:
            logger.warning(f"Timed out fetching {url} after {self.timeout}s")
        except requests.RequestException as e:
            logger.warning(f"Error fetching {url}: {e}")
        except FeedParseError as e:
            logger.warning(str(e))
        except Exception as e:
            logger.warning(f"Unexpected error fetching {url}: {e}")
        return None

    def fetch_all(self, urls: Sequence[str]) -> List[FetchedFeed]:
        """Fetch every URL concurrently and wait for all of them to settle.

        Results keep the order of ``urls``; failed URLs are dropped. Each URL
        gets its own window measured from when a worker starts fetching it,
        so URLs queued behind busy workers are not penalized. A URL still
        running once its window has passed is abandoned.
        """
        urls = list(urls)
        if not urls:
            return []

        # Small grace period over the socket timeout for parsing.
        window = self.timeout + 1.0
        started: Dict[int, float] = {}

        def run(index: int, url: str) -> Optional[FetchedFeed]:
            started[index] = time.monotonic()
            return self.fetch_one(url)

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(urls)),
            thread_name_prefix="feed-fetch",
        )
        try:
            futures = {executor.submit(run, i, url): i for i, url in enumerate(urls)}
            pending = set(futures)
            results: Dict[int, FetchedFeed] = {}
            while pending:
                deadlines = [started[futures[f]] + window for f in pending if futures[f] in started]
                wait_for = max(0.0, min(deadlines) - time.monotonic()) if deadlines else window
                done, pending = wait(pending, timeout=wait_for, return_when=FIRST_COMPLETED)
                for future in done:
                    feed = future.result()
                    if feed is not None:
                        results[futures[future]] = feed

                now = time.monotonic()
                for future in list(pending):
                    index = futures[future]
                    if index in started and now - started[index] >= window:
                        logger.warning(f"Abandoning {urls[index]}: no response within {self.timeout}s")
                        pending.discard(future)
            return [results[i] for i in sorted(results)]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

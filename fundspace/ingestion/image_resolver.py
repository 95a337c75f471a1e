"""Representative-image resolution for feed items.

Strategies run in a fixed order and the first hit wins:

1. the item's own ``image`` field
2. an enclosure whose MIME type mentions ``image``
3. ``media:content`` (explicit image first, then untyped entries)
4. ``media:thumbnail``
5. ``<img>`` scraping of the content body (``extract_image_from_html``)
6. ``og:image`` meta tag in the content body

``None`` means nothing matched; the caller decides what to do with that.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any, Iterable, Optional

from fundspace.ingestion.article_types import RawFeedItem, as_list


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "avif")

_IMAGE_URL_SUFFIX = re.compile(
    r"\.(?:%s)(?:\?[^\s\"'<>]*)?$" % "|".join(IMAGE_EXTENSIONS), re.IGNORECASE
)

_IMG_SRC = re.compile(r"<img\b[^>]*?\ssrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_IMG_DATA_SRC = re.compile(r"<img\b[^>]*?\sdata-src\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_FIGURE_IMG = re.compile(
    r"<figure\b[^>]*>.*?<img\b[^>]*?\s(?:data-)?src\s*=\s*[\"']([^\"']+)[\"']",
    re.IGNORECASE | re.DOTALL,
)
_BARE_IMAGE_URL = re.compile(
    r"https?://[^\s\"'<>]+?\.(?:%s)(?:\?[^\s\"'<>]*)?" % "|".join(IMAGE_EXTENSIONS),
    re.IGNORECASE,
)
_IMG_SRCSET = re.compile(r"<img\b[^>]*?\ssrcset\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_OG_IMAGE = (
    re.compile(
        r"<meta\b[^>]*?property\s*=\s*[\"']og:image[\"'][^>]*?content\s*=\s*[\"']([^\"']+)[\"']",
        re.IGNORECASE,
    ),
    re.compile(
        r"<meta\b[^>]*?content\s*=\s*[\"']([^\"']+)[\"'][^>]*?property\s*=\s*[\"']og:image[\"']",
        re.IGNORECASE,
    ),
)


def is_image_url(url: Optional[str]) -> bool:
    """True when ``url`` ends in a known image extension, optionally with a query string."""
    if not url:
        return False
    return bool(_IMAGE_URL_SUFFIX.search(url.strip()))


def _first_valid(candidates: Iterable[str]) -> Optional[str]:
    for raw in candidates:
        url = html.unescape(raw).strip()
        if is_image_url(url):
            return url
    return None


def _first_srcset_candidate(srcset: str) -> str:
    first = srcset.split(",")[0].strip()
    return first.split()[0] if first else ""


def extract_image_from_html(body: Optional[str]) -> Optional[str]:
    """Best-effort image URL from an HTML fragment, or ``None``.

    Tries ``<img src>``, ``<img data-src>``, the first image inside a
    ``<figure>``, a bare image URL, an ``<img srcset>`` first candidate, and
    finally an ``og:image`` meta tag. Entities are unescaped before a
    candidate is validated against the image-extension pattern.
    """
    if not body:
        return None

    for pattern in (_IMG_SRC, _IMG_DATA_SRC, _FIGURE_IMG):
        found = _first_valid(m.group(1) for m in pattern.finditer(body))
        if found:
            return found

    found = _first_valid(m.group(0) for m in _BARE_IMAGE_URL.finditer(html.unescape(body)))
    if found:
        return found

    found = _first_valid(_first_srcset_candidate(m.group(1)) for m in _IMG_SRCSET.finditer(body))
    if found:
        return found

    for pattern in _OG_IMAGE:
        m = pattern.search(body)
        if m:
            url = html.unescape(m.group(1)).strip()
            if url.lower().startswith(("http://", "https://")):
                return url
    return None


def _media_url(ref: Any) -> Optional[str]:
    if isinstance(ref, str):
        return ref.strip() or None
    if not hasattr(ref, "get"):
        return None
    url = ref.get("url") or ref.get("href")
    return str(url).strip() if url else None


def _media_attr(ref: Any, name: str) -> str:
    if not hasattr(ref, "get"):
        return ""
    return str(ref.get(name) or "").strip().lower()


class ImageResolver:
    """Resolve one image URL per feed item; see module docstring for order."""

    def resolve(self, item: RawFeedItem, source_url: str = "") -> Optional[str]:
        for strategy in (
            self._from_image_field,
            self._from_enclosures,
            self._from_media_content,
            self._from_media_thumbnail,
            self._from_body,
        ):
            url = strategy(item)
            if url:
                return url
        logger.debug(f"No image found for '{(item.title or '').strip()[:80]}' from {source_url}")
        return None

    @staticmethod
    def _from_image_field(item: RawFeedItem) -> Optional[str]:
        image = item.image
        if isinstance(image, dict):
            return _media_url(image)
        return (image or "").strip() or None

    @staticmethod
    def _from_enclosures(item: RawFeedItem) -> Optional[str]:
        for enc in as_list(item.enclosures):
            url = _media_url(enc)
            if url and "image" in _media_attr(enc, "type"):
                return url
        return None

    @staticmethod
    def _from_media_content(item: RawFeedItem) -> Optional[str]:
        media = as_list(item.media_content)
        for ref in media:
            url = _media_url(ref)
            if url and (_media_attr(ref, "medium") == "image" or "image" in _media_attr(ref, "type")):
                return url
        for ref in media:
            url = _media_url(ref)
            if url and not _media_attr(ref, "medium") and not _media_attr(ref, "type"):
                return url
        return None

    @staticmethod
    def _from_media_thumbnail(item: RawFeedItem) -> Optional[str]:
        for ref in as_list(item.media_thumbnail):
            url = _media_url(ref)
            if url:
                return url
        return None

    @staticmethod
    def _from_body(item: RawFeedItem) -> Optional[str]:
        return extract_image_from_html(item.content or item.description)

"""Keyword relevance filters.

Community categories (funder/nonprofit) only admit articles that mention a
California/Bay Area place AND philanthropy vocabulary. Independently, every
category drops sports and celebrity coverage.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from fundspace.ingestion.article_types import Article


logger = logging.getLogger(__name__)


# -----------------------------
# Geography
# -----------------------------
BAY_AREA_TERMS = [
    "san francisco", "sf", "oakland", "berkeley", "fremont", "san jose", "palo alto",
    "mountain view", "sunnyvale", "santa clara", "cupertino", "silicon valley", "menlo park",
    "redwood city", "san mateo", "daly city", "walnut creek", "richmond", "bay area",
    "east bay", "south bay", "north bay", "peninsula", "marin", "alameda", "hayward",
    "santa rosa", "vallejo",
]

CALIFORNIA_TERMS = [
    "california", "calif", "ca", "socal", "norcal", "sacramento", "los angeles",
    "san diego", "golden state",
] + BAY_AREA_TERMS

# -----------------------------
# Philanthropy / nonprofit vocabulary (stems)
# -----------------------------
PHILANTHROPY_TERMS = [
    "philanthrop", "foundation", "grant", "donation", "donor", "giving", "charity", "charitable",
    "nonprofit", "non-profit", "endowment", "fund", "volunteer", "social impact",
    "social good", "fundrais", "funder",
]

# -----------------------------
# Off-topic coverage (all categories)
# -----------------------------
EXCLUDED_TERMS = [
    # sports
    "sports", "nba", "nfl", "mlb", "nhl", "olympics", "playoffs", "soccer", "football",
    "basketball", "baseball", "hockey", "tennis", "athlete",
    # celebrity
    "celebrity", "kardashian", "taylor swift", "movie star", "red carpet", "gossip",
    "entertainment news", "hollywood", "actor", "actress",
]


def compile_terms(terms: Sequence[str], *, whole_words: bool = True) -> Optional[Pattern[str]]:
    """One case-insensitive alternation for ``terms``.

    ``whole_words=False`` treats terms as stems (``philanthrop`` matches
    ``philanthropy``). Returns ``None`` for an empty list, meaning "no
    constraint".
    """
    cleaned = [t.strip() for t in terms if t and t.strip()]
    if not cleaned:
        return None
    # Longest first so multi-word terms win over their prefixes.
    cleaned.sort(key=len, reverse=True)
    alternation = "|".join(re.escape(t) for t in cleaned)
    suffix = r"\b" if whole_words else ""
    return re.compile(rf"\b(?:{alternation}){suffix}", re.IGNORECASE)


def _matches(pattern: Optional[Pattern[str]], text: str) -> bool:
    if pattern is None:
        return True
    return bool(pattern.search(text))


@dataclass(frozen=True)
class RelevanceVerdict:
    title: str
    has_geography: bool
    has_topic: bool

    @property
    def admitted(self) -> bool:
        return self.has_geography and self.has_topic

    @property
    def reason(self) -> str:
        if self.admitted:
            return "admitted"
        missing = []
        if not self.has_geography:
            missing.append("geography")
        if not self.has_topic:
            missing.append("topic")
        return "missing " + "+".join(missing)


class RelevanceFilter:
    """Conjunctive geography + topic keyword check."""

    def __init__(
        self,
        geography_terms: Sequence[str] = CALIFORNIA_TERMS,
        topic_terms: Sequence[str] = PHILANTHROPY_TERMS,
    ):
        self._geography = compile_terms(geography_terms, whole_words=True)
        self._topic = compile_terms(topic_terms, whole_words=False)

    def check(self, article: Article) -> RelevanceVerdict:
        text = f"{article.title} {article.full_content}".lower()
        return RelevanceVerdict(
            title=article.title,
            has_geography=_matches(self._geography, text),
            has_topic=_matches(self._topic, text),
        )

    def is_relevant(self, article: Article) -> bool:
        return self.check(article).admitted

    def filter(self, articles: Iterable[Article]) -> Tuple[List[Article], List[RelevanceVerdict]]:
        """Split ``articles`` into (admitted, rejection verdicts)."""
        admitted: List[Article] = []
        rejected: List[RelevanceVerdict] = []
        for article in articles:
            verdict = self.check(article)
            if verdict.admitted:
                admitted.append(article)
            else:
                logger.debug(f"Rejected '{article.title[:80]}': {verdict.reason}")
                rejected.append(verdict)
        return admitted, rejected


_EXCLUDED = compile_terms(EXCLUDED_TERMS, whole_words=True)


def is_excluded_topic(title: Optional[str], summary: Optional[str] = None) -> bool:
    """Sports/celebrity coverage check on title + summary."""
    if _EXCLUDED is None:
        return False
    blob = f"{title or ''} {summary or ''}"
    return bool(_EXCLUDED.search(blob))

"""Fixed articles served when NewsAPI is unavailable or unconfigured."""

from __future__ import annotations

from typing import Dict, List, Tuple

from fundspace.ingestion.article_types import Article
from fundspace.ingestion.normalizer import fallback_image_for


# (title, summary, label, timeAgo)
_FALLBACK_ROWS: Dict[str, List[Tuple[str, str, str, str]]] = {
    "funder": [
        (
            "MacKenzie Scott Announces $2.7B in New Grants",
            "The philanthropist continues her commitment to unrestricted giving, focusing on "
            "organizations led by women and people of color across education, healthcare, and "
            "community development sectors.",
            "Philanthropy",
            "2h ago",
        ),
        (
            "Ford Foundation Launches $1B Economic Justice Initiative",
            "New comprehensive program aims to address wealth inequality through innovative "
            "funding mechanisms, policy advocacy, and community-led solutions nationwide.",
            "Philanthropy",
            "4h ago",
        ),
        (
            "Gates Foundation Invests in Climate Technology",
            "Breakthrough Energy announces new $3 billion fund for clean technology startups "
            "focusing on solutions for developing countries and carbon capture innovation.",
            "Technology",
            "6h ago",
        ),
        (
            "Community Foundation Network Reaches $100B Milestone",
            "Local foundations collectively manage record assets as community-led philanthropy "
            "experiences unprecedented growth across rural and urban areas.",
            "Philanthropy",
            "8h ago",
        ),
        (
            "Tech Leaders Pledge $5B for Education Equity",
            "Coalition of technology industry leaders commits unprecedented funding to address "
            "educational gaps in underserved communities nationwide.",
            "Technology",
            "12h ago",
        ),
    ],
    "nonprofit": [
        (
            "Bay Area Food Banks Report Record Volunteer Signups",
            "Local nonprofits see unprecedented community support as economic challenges drive "
            "increased demand for emergency food services across the region.",
            "Nonprofit",
            "1h ago",
        ),
        (
            "Nonprofit Collaboration Network Expands Statewide",
            "California organizations join forces to share resources, reduce duplication, and "
            "amplify collective impact across diverse communities and cause areas.",
            "Nonprofit",
            "3h ago",
        ),
        (
            "Mental Health Nonprofits Receive Emergency Funding",
            "Federal grant program provides $500M to organizations addressing post-pandemic "
            "mental health crisis, with focus on youth and underserved populations.",
            "Nonprofit",
            "5h ago",
        ),
        (
            "Environmental Justice Coalition Launches National Campaign",
            "40+ organizations unite to address climate impact on underserved communities, "
            "focusing on air quality, water access, and renewable energy transitions.",
            "Nonprofit",
            "7h ago",
        ),
        (
            "Youth Development Programs Show Record Impact",
            "Comprehensive study reveals significant improvements in educational outcomes and "
            "career readiness from community-based mentorship initiatives.",
            "Nonprofit",
            "10h ago",
        ),
    ],
    "general": [
        (
            "Global Education Summit Addresses Learning Gaps",
            "World leaders and education experts convene to discuss innovative solutions for "
            "educational inequality in post-pandemic recovery and digital transformation.",
            "Breaking News",
            "Just now",
        ),
        (
            "Climate Summit Yields New International Commitments",
            "195 countries agree to accelerated carbon reduction targets with $100B annual "
            "funding mechanism for developing nations' green transition programs.",
            "Breaking News",
            "2h ago",
        ),
        (
            "Tech Industry Announces AI Ethics Standards",
            "Major technology companies establish comprehensive voluntary guidelines for "
            "responsible artificial intelligence development and deployment practices.",
            "Technology",
            "4h ago",
        ),
        (
            "Global Health Initiative Receives Record Funding",
            "International donors commit $50B over five years to strengthen pandemic "
            "preparedness and build resilient healthcare systems worldwide.",
            "Breaking News",
            "6h ago",
        ),
        (
            "Economic Recovery Programs Show Promise",
            "New research indicates community-based economic initiatives are driving "
            "sustainable growth and job creation in rural and post-industrial areas.",
            "Business",
            "9h ago",
        ),
    ],
}


def fallback_articles(kind: str) -> List[Article]:
    """Fallback list for ``kind``; unknown kinds get the general list."""
    rows = _FALLBACK_ROWS.get(kind) or _FALLBACK_ROWS["general"]
    key = kind if kind in _FALLBACK_ROWS else "general"
    return [
        Article(
            id=f"fallback-{key}-{n}",
            title=title,
            summary=summary,
            url="#",
            image=fallback_image_for(label),
            time_ago=time_ago,
            category=label,
            source="fallback",
        )
        for n, (title, summary, label, time_ago) in enumerate(rows, start=1)
    ]

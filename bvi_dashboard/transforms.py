"""In-memory post-processing for the virality and keyword endpoints.

Both are single passes over the rows a query already fetched:
- velocity ranking: engagement per hour since posting
- keyword frequency: token counts over combinedText
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import datetime
from typing import Iterable

from .db_models import Post

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "as", "is", "was", "are", "were", "been", "be",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they",
})

# ASCII word boundaries: "café" yields "caf", not nothing
TOKEN_RE = re.compile(r"\b[a-z]{3,}\b", re.ASCII)

VIRALITY_WINDOW_HOURS = 24
VIRALITY_TOP_N = 10


def velocity(engagement: int, hours_since_post: float) -> float:
    if hours_since_post <= 0:
        return 0
    return engagement / hours_since_post


def rank_by_velocity(posts: Iterable[Post], now: datetime, top: int = VIRALITY_TOP_N) -> list[dict]:
    ranked = []
    for p in posts:
        hours = (now - p.time).total_seconds() / 3600
        item = p.to_dict()
        item["velocity"] = velocity(p.total_engagement, hours)
        item["hoursSincePost"] = round(hours, 1)
        ranked.append(item)

    ranked.sort(key=lambda x: x["velocity"], reverse=True)
    return ranked[:top]


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return [w for w in TOKEN_RE.findall(text.lower()) if w not in STOP_WORDS]


def count_keywords(texts: Iterable[str | None], limit: int = 20) -> list[dict]:
    counts = Counter()
    for text in texts:
        counts.update(tokenize(text))

    # most_common keeps first-seen order among equal counts
    return [{"word": w, "count": c} for w, c in counts.most_common(limit)]

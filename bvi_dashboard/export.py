from typing import Iterable

from .db_models import Post

EXPORT_FILENAME = "bvi-social-listening.csv"

CSV_HEADERS = [
    "Post ID", "Platform", "Source", "Text", "Sentiment", "Confidence",
    "Topics", "Likes", "Shares", "Comments", "Date",
]


def quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def csv_field(value) -> str:
    if value is None:
        return ""
    s = value.isoformat() if hasattr(value, "isoformat") else str(value)
    if any(c in s for c in (",", '"', "\n", "\r")):
        return quote(s)
    return s


def post_row(p: Post) -> str:
    return ",".join([
        csv_field(p.post_id),
        csv_field(p.platform),
        csv_field(p.source_id),
        quote(p.text or ""),  # always quoted
        csv_field(p.sentiment),
        csv_field(p.sentiment_confidence),
        csv_field(";".join(p.topics)),
        csv_field(p.likes or 0),
        csv_field(p.shares or 0),
        csv_field(p.comments or 0),
        csv_field(p.time),
    ])


def posts_to_csv(posts: Iterable[Post]) -> str:
    lines = [",".join(CSV_HEADERS)]
    lines.extend(post_row(p) for p in posts)
    return "\n".join(lines)

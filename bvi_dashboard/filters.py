from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from .db_models import Post, PostTopic
from .params import DateRange, PostFilter


def date_clauses(date_range: DateRange | None) -> list[ColumnElement[bool]]:
    """Inclusive bounds on Post.time; each side applies on its own."""
    if date_range is None:
        return []
    clauses = []
    if date_range.start is not None:
        clauses.append(Post.time >= date_range.start)
    if date_range.end is not None:
        clauses.append(Post.time <= date_range.end)
    return clauses


def keyword_clause(keyword: str | None) -> ColumnElement[bool] | None:
    if not keyword:
        return None
    # autoescape: % and _ in the keyword match literally
    return or_(
        Post.text.icontains(keyword, autoescape=True),
        Post.combined_text.icontains(keyword, autoescape=True),
    )


def topic_clause(topic: str) -> ColumnElement[bool]:
    return Post.topic_rows.any(PostTopic.topic == topic)


def build_post_filter(f: PostFilter) -> list[ColumnElement[bool]]:
    """Translate request filters into clauses to AND together with Query.filter(*clauses)."""
    clauses = []

    kw = keyword_clause(f.keyword)
    if kw is not None:
        clauses.append(kw)

    if f.sentiment:
        clauses.append(Post.sentiment == f.sentiment)
    if f.platform:
        clauses.append(Post.platform == f.platform)
    if f.source_id:
        clauses.append(Post.source_id == f.source_id)
    if f.topic:
        clauses.append(topic_clause(f.topic))

    clauses.extend(date_clauses(f.date_range))
    return clauses

"""
Read queries behind the dashboard endpoints.

Every function takes an open Session plus typed parameters and returns plain
JSON-ready structures. Engagement columns are always coalesced to 0 before
they are summed or averaged.
"""
from datetime import date, datetime, timedelta

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from .db_models import Post, PostTopic, Sentiment
from .filters import build_post_filter, date_clauses, topic_clause
from .params import DateRange, GroupBy, PostFilter
from .transforms import VIRALITY_WINDOW_HOURS, count_keywords, rank_by_velocity

EXPORT_MAX_ROWS = 10_000

_likes = func.coalesce(Post.likes, 0)
_shares = func.coalesce(Post.shares, 0)
_comments = func.coalesce(Post.comments, 0)
_engagement = _likes + _shares + _comments


def _num(value, default=0):
    # AVG comes back as Decimal on postgres
    return default if value is None else float(value)


def _day(value) -> str | None:
    # date() is a date on postgres and a string on sqlite
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return value


def _count_by(db: Session, column) -> list[dict]:
    n = func.count(Post.id)
    rows = db.query(column, n).group_by(column).order_by(n.desc(), column).all()
    return [{"_id": key, "count": count} for key, count in rows]


def overview_stats(db: Session) -> dict:
    total = db.query(func.count(Post.id)).scalar() or 0

    avg_likes, avg_shares, avg_comments = db.query(
        func.avg(_likes), func.avg(_shares), func.avg(_comments)
    ).one()

    return {
        "totalPosts": total,
        "sentiment": _count_by(db, Post.sentiment),
        "platforms": _count_by(db, Post.platform),
        "engagement": {
            "avgLikes": _num(avg_likes),
            "avgShares": _num(avg_shares),
            "avgComments": _num(avg_comments),
        },
    }


def list_posts(db: Session, f: PostFilter, limit: int = 50, skip: int = 0) -> dict:
    query = db.query(Post).filter(*build_post_filter(f)).order_by(Post.time.desc(), Post.id.desc())

    total = query.order_by(None).count()
    posts = query.offset(skip).limit(limit).all()

    return {
        "posts": [p.to_dict() for p in posts],
        "total": total,
        "page": skip // limit + 1,
    }


def export_posts(db: Session, f: PostFilter) -> list[Post]:
    return (
        db.query(Post)
        .filter(*build_post_filter(f))
        .order_by(Post.id)
        .limit(EXPORT_MAX_ROWS)
        .all()
    )


def sentiment_distribution(db: Session, date_range: DateRange, group_by: GroupBy = GroupBy.sentiment) -> list[dict]:
    n = func.count(Post.id)
    avg_conf = func.avg(Post.sentiment_confidence)

    if group_by == GroupBy.source:
        second = Post.source_id
        query = db.query(Post.sentiment, second, n, avg_conf)
    elif group_by == GroupBy.topic:
        # first topic only; posts without topics group under null
        second = PostTopic.topic
        query = db.query(Post.sentiment, second, n, avg_conf).outerjoin(
            PostTopic, and_(PostTopic.post_pk == Post.id, PostTopic.position == 0)
        )
    else:
        second = None
        query = db.query(Post.sentiment, n, avg_conf)

    keys = [Post.sentiment] if second is None else [Post.sentiment, second]
    rows = query.filter(*date_clauses(date_range)).group_by(*keys).order_by(n.desc(), *keys).all()

    out = []
    for row in rows:
        if second is None:
            sentiment, count, conf = row
            group_id = sentiment
        else:
            sentiment, other, count, conf = row
            group_id = {"sentiment": sentiment, group_by.value: other}
        out.append({"_id": group_id, "count": count, "avgConfidence": _num(conf, None)})
    return out


def topic_distribution(db: Session, date_range: DateRange) -> list[dict]:
    n = func.count(PostTopic.id)
    rows = (
        db.query(PostTopic.topic, n, func.avg(_engagement))
        .join(Post, PostTopic.post_pk == Post.id)
        .filter(*date_clauses(date_range))
        .group_by(PostTopic.topic)
        .order_by(n.desc(), PostTopic.topic)
        .all()
    )
    return [{"_id": topic, "count": count, "avgEngagement": _num(avg)} for topic, count, avg in rows]


def influencer_ranking(db: Session, date_range: DateRange, limit: int = 10) -> list[dict]:
    polarity = case(
        (Post.sentiment == Sentiment.positive.value, 1),
        (Post.sentiment == Sentiment.negative.value, -1),
        else_=0,
    )
    total_engagement = func.sum(_engagement)

    rows = (
        db.query(
            Post.source_id,
            func.count(Post.id),
            func.sum(_likes),
            func.sum(_shares),
            func.sum(_comments),
            func.avg(polarity),
        )
        .filter(*date_clauses(date_range))
        .group_by(Post.source_id)
        .order_by(total_engagement.desc(), Post.source_id)
        .limit(limit)
        .all()
    )

    out = []
    for source_id, total_posts, total_likes, total_shares, total_comments, avg_sentiment in rows:
        total_likes, total_shares, total_comments = int(total_likes), int(total_shares), int(total_comments)
        out.append({
            "_id": source_id,
            "totalPosts": total_posts,
            "totalLikes": total_likes,
            "totalShares": total_shares,
            "totalComments": total_comments,
            "avgSentiment": _num(avg_sentiment),
            "totalEngagement": total_likes + total_shares + total_comments,
        })
    return out


def virality_signals(db: Session, now: datetime) -> list[dict]:
    since = now - timedelta(hours=VIRALITY_WINDOW_HOURS)
    recent = db.query(Post).filter(Post.time >= since).all()
    return rank_by_velocity(recent, now)


def timeline(db: Session, date_range: DateRange, platform: str | None = None, topic: str | None = None) -> list[dict]:
    day = func.date(Post.time)
    clauses = date_clauses(date_range)
    if platform:
        clauses.append(Post.platform == platform)
    if topic:
        clauses.append(topic_clause(topic))

    rows = (
        db.query(day, Post.sentiment, func.count(Post.id))
        .filter(*clauses)
        .group_by(day, Post.sentiment)
        .order_by(day, Post.sentiment)
        .all()
    )
    return [{"_id": {"date": _day(d), "sentiment": s}, "count": count} for d, s, count in rows]


def keyword_frequency(db: Session, date_range: DateRange, limit: int = 20) -> list[dict]:
    rows = (
        db.query(Post.combined_text)
        .filter(*date_clauses(date_range))
        .order_by(Post.id)
        .all()
    )
    return count_keywords((r[0] for r in rows), limit=limit)


def _distinct(db: Session, column) -> list[str]:
    values = db.query(column).distinct().order_by(column).all()
    return [v for (v,) in values if v]


def filter_options(db: Session) -> dict:
    return {
        "sources": _distinct(db, Post.source_id),
        "platforms": _distinct(db, Post.platform),
        "sentiments": _distinct(db, Post.sentiment),
        "topics": _distinct(db, PostTopic.topic),
    }

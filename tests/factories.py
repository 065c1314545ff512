from datetime import datetime

from bvi_dashboard.db_models import Post, PostTopic

DEFAULT_TIME = datetime(2024, 1, 15, 12, 0, 0)


def make_post(post_id: str, topics=(), **fields) -> Post:
    values = {
        "platform": "twitter",
        "source_id": "src-1",
        "text": "",
        "combined_text": "",
        "sentiment": "neutral",
        "sentiment_confidence": 0.5,
        "likes": 0,
        "shares": 0,
        "comments": 0,
        "time": DEFAULT_TIME,
    }
    values.update(fields)
    post = Post(post_id=post_id, **values)
    post.topic_rows = [PostTopic(position=i, topic=t) for i, t in enumerate(topics)]
    return post

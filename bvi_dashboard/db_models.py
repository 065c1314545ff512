import enum
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Sentiment(str, enum.Enum):
    positive = "positive"
    neutral = "neutral"
    negative = "negative"


class Post(Base):
    """
    One cleaned social-media post.
    Rows are written by the ingestion pipeline; this service only reads them.
    """
    __tablename__ = "clean_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    platform: Mapped[str] = mapped_column(String(32), nullable=True, index=True)   # twitter / facebook / ...
    source_id: Mapped[str] = mapped_column(String(128), nullable=True, index=True)  # authoring account

    text: Mapped[str] = mapped_column(Text, nullable=True)
    combined_text: Mapped[str] = mapped_column(Text, nullable=True)  # text + title/description, used for search

    # kept as a plain string column; labels come from the ingestion model
    sentiment: Mapped[str] = mapped_column(String(16), nullable=True, index=True)
    sentiment_confidence: Mapped[float] = mapped_column(Float, nullable=True)

    likes: Mapped[int] = mapped_column(Integer, nullable=True)
    shares: Mapped[int] = mapped_column(Integer, nullable=True)
    comments: Mapped[int] = mapped_column(Integer, nullable=True)

    time: Mapped[datetime] = mapped_column(DateTime, nullable=True, index=True)  # UTC

    topic_rows: Mapped[list["PostTopic"]] = relationship(
        back_populates="post",
        order_by="PostTopic.position",
        lazy="selectin",
    )

    @property
    def topics(self) -> list[str]:
        return [t.topic for t in self.topic_rows]

    @property
    def total_engagement(self) -> int:
        return (self.likes or 0) + (self.shares or 0) + (self.comments or 0)

    def to_dict(self) -> dict:
        return {
            "postId": self.post_id,
            "platform": self.platform,
            "sourceId": self.source_id,
            "text": self.text,
            "combinedText": self.combined_text,
            "sentiment": self.sentiment,
            "sentimentConfidence": self.sentiment_confidence,
            "topics": self.topics,
            "likes": self.likes or 0,
            "shares": self.shares or 0,
            "comments": self.comments or 0,
            "time": self.time,
        }


class PostTopic(Base):
    """Element of a post's ordered topic list. Joining to this table unwinds topics."""
    __tablename__ = "clean_post_topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_pk: Mapped[int] = mapped_column(ForeignKey("clean_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # 0 = first topic
    topic: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    post: Mapped[Post] = relationship(back_populates="topic_rows")

    __table_args__ = (UniqueConstraint("post_pk", "position", name="uq_clean_post_topics_post_position"),)

from datetime import datetime, UTC
from typing import Any, Optional
from sqlalchemy import DateTime, Float, ForeignKey, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column
from blogcore.db.database import Base

# counters that never go below zero
COUNTER_FIELDS = (
    "total_views",
    "unique_visitors",
    "average_read_time_seconds",
    "share_count",
    "like_count",
    "subscriber_conversions",
    "comment_count",
)
# percentages clamped to [0, 100]
RATE_FIELDS = ("read_completion_rate", "click_through_rate", "bounce_rate")


class PostMetric(Base):
    """Engagement counters, one row per post"""
    __tablename__ = "blog_post_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("blog_posts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_views: Mapped[int] = mapped_column(Integer, default=0)
    unique_visitors: Mapped[int] = mapped_column(Integer, default=0)
    average_read_time_seconds: Mapped[int] = mapped_column(Integer, default=0)
    read_completion_rate: Mapped[float] = mapped_column(Float, default=0)
    click_through_rate: Mapped[float] = mapped_column(Float, default=0)
    bounce_rate: Mapped[float] = mapped_column(Float, default=0)
    share_count: Mapped[int] = mapped_column(Integer, default=0)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    subscriber_conversions: Mapped[int] = mapped_column(Integer, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, default=0)
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    metadata_: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )

from datetime import datetime, UTC
from typing import Any, Optional
from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from blogcore.db.database import Base

class Media(Base):
    """Media asset; not tied to a workspace and shared by any number of posts"""
    __tablename__ = "blog_media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))


class PostMedia(Base):
    """Gallery link between a post and a media asset"""
    __tablename__ = "blog_post_media"
    __table_args__ = (UniqueConstraint("post_id", "position", name="uq_blog_post_media_position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_id: Mapped[int] = mapped_column(ForeignKey("blog_media.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    role: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # overrides Media.caption

    media: Mapped[Media] = relationship(lazy="joined")

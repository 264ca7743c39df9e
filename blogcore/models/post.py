from datetime import datetime, UTC
from enum import Enum as PyEnum
from typing import Any, Optional
from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from blogcore.db.database import Base
from blogcore.models.media import Media, PostMedia
from blogcore.models.metric import PostMetric
from blogcore.models.post_tag import PostTag
from blogcore.models.taxonomy import Category, Tag
from blogcore.models.user import User
from blogcore.models.workspace import Workspace

class PostStatus(str, PyEnum):
    """Post status"""
    DRAFT = "draft"             # Only visible to editors
    SCHEDULED = "scheduled"     # Waiting for its publication date
    PUBLISHED = "published"     # Visible to everyone
    ARCHIVED = "archived"       # Kept for reference, hidden from listings

class Post(Base):
    """Blog post, global when workspace_id is NULL"""
    __tablename__ = "blog_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(280), nullable=False, index=True)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PostStatus.DRAFT
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reading_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    author_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("blog_categories.id"), nullable=True)
    cover_image_id: Mapped[Optional[int]] = mapped_column(ForeignKey("blog_media.id"), nullable=True)
    workspace_id: Mapped[Optional[int]] = mapped_column(ForeignKey("workspaces.id"), nullable=True, index=True)
    meta: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )

    category: Mapped[Optional[Category]] = relationship()
    cover_image: Mapped[Optional[Media]] = relationship()
    author: Mapped[Optional[User]] = relationship()
    workspace: Mapped[Optional[Workspace]] = relationship()
    tags: Mapped[list[Tag]] = relationship(secondary=PostTag.__table__, order_by=Tag.name)
    media_links: Mapped[list[PostMedia]] = relationship(
        order_by=PostMedia.position,
        cascade="all, delete-orphan"
    )
    metrics: Mapped[Optional[PostMetric]] = relationship(
        cascade="all, delete-orphan"
    )


Index(
    "uq_blog_posts_slug_scope",
    Post.slug,
    func.coalesce(Post.workspace_id, 0),
    unique=True,
)

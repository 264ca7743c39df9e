from datetime import datetime, UTC
from typing import Any, Optional
from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from blogcore.db.database import Base

# fields a repeated inline reference may fill in on an existing row
DECORATIVE_FIELDS = ("description", "accent_color", "hero_image_url", "metadata_")


class TaxonomyMixin:
    """Columns shared by categories and tags.

    A row with workspace_id = NULL is global and visible to every workspace;
    otherwise it is only visible inside its workspace.
    """
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(160), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    accent_color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    hero_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    metadata_: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    workspace_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("workspaces.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )


class Category(TaxonomyMixin, Base):
    """Blog category, single-valued per post"""
    __tablename__ = "blog_categories"


class Tag(TaxonomyMixin, Base):
    """Blog tag, many-to-many with posts"""
    __tablename__ = "blog_tags"


# NULL workspace is its own scope, so the unique key folds it to 0
Index(
    "uq_blog_categories_slug_scope",
    Category.slug,
    func.coalesce(Category.workspace_id, 0),
    unique=True,
)
Index(
    "uq_blog_tags_slug_scope",
    Tag.slug,
    func.coalesce(Tag.workspace_id, 0),
    unique=True,
)

import math
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from blogcore.core.errors import NotFoundError, ValidationError
from blogcore.models.media import PostMedia
from blogcore.models.post import Post, PostStatus
from blogcore.models.taxonomy import Category, Tag
from blogcore.schemas.post import Pagination, PostPage, PostPublic
from blogcore.services.slugs import slugify

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50

_STATUS_VALUES = {status.value for status in PostStatus}


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _eager_options():
    return (
        selectinload(Post.category),
        selectinload(Post.tags),
        selectinload(Post.cover_image),
        selectinload(Post.media_links).joinedload(PostMedia.media),
        selectinload(Post.workspace),
        selectinload(Post.author),
        selectinload(Post.metrics),
    )


def _visibility_filters(
    status=None,
    include_unpublished: bool = False,
    workspace_id: Optional[int] = None,
    include_global_workspace: bool = False,
) -> list:
    filters = []
    if not include_unpublished:
        filters.append(Post.status == PostStatus.PUBLISHED)
    else:
        raw = status.value if isinstance(status, PostStatus) else f"{status or ''}".strip().lower()
        if raw in _STATUS_VALUES:
            filters.append(Post.status == PostStatus(raw))

    if workspace_id is not None:
        if include_global_workspace:
            filters.append(or_(Post.workspace_id == workspace_id, Post.workspace_id.is_(None)))
        else:
            filters.append(Post.workspace_id == workspace_id)
    return filters


def build_pagination(total: int, page: int, page_size: int) -> Pagination:
    total_pages = max(1, math.ceil(total / page_size))
    return Pagination(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )


def list_posts(
    session: Session,
    *,
    status=None,
    page=1,
    page_size=DEFAULT_PAGE_SIZE,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    include_unpublished: bool = False,
    workspace_id: Optional[int] = None,
    include_global_workspace: bool = False,
) -> PostPage:
    """List posts, featured first then newest."""
    page = max(1, _to_int(page, 1))
    page_size = min(MAX_PAGE_SIZE, max(1, _to_int(page_size, DEFAULT_PAGE_SIZE)))

    filters = _visibility_filters(status, include_unpublished, workspace_id, include_global_workspace)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(Post.title.ilike(pattern), Post.excerpt.ilike(pattern), Post.content.ilike(pattern))
        )
    if tag:
        filters.append(Post.tags.any(Tag.slug == slugify(tag)))

    query = select(Post)
    if category:
        query = query.join(Category, Post.category_id == Category.id).where(
            Category.slug == slugify(category)
        )
    query = query.where(*filters)

    total = session.execute(
        select(func.count()).select_from(query.with_only_columns(Post.id).subquery())
    ).scalar_one()

    rows = session.execute(
        query.options(*_eager_options())
        .order_by(
            Post.featured.desc(),
            Post.published_at.desc().nulls_last(),
            Post.created_at.desc(),
            Post.id.asc(),
        )
        .limit(page_size)
        .offset((page - 1) * page_size)
    ).scalars().all()

    return PostPage(
        results=[PostPublic.from_post(post) for post in rows],
        pagination=build_pagination(total, page, page_size),
    )


def get_post(
    session: Session,
    identifier,
    *,
    include_unpublished: bool = False,
    workspace_id: Optional[int] = None,
    include_global_workspace: bool = False,
    status=None,
) -> PostPublic:
    """Fetch one post by numeric id or slug"""
    if identifier is None or f"{identifier}".strip() == "":
        raise ValidationError("A blog identifier is required.")

    text = f"{identifier}".strip()
    if not isinstance(identifier, bool) and (isinstance(identifier, int) or text.isdigit()):
        condition = Post.id == int(text)
    else:
        condition = Post.slug == text

    filters = _visibility_filters(status, include_unpublished, workspace_id, include_global_workspace)
    post = session.execute(
        select(Post)
        .where(condition, *filters)
        .options(*_eager_options())
        .order_by(Post.id.asc())
        .limit(1)
    ).scalars().first()
    if post is None:
        raise NotFoundError("Blog post not found.")
    return PostPublic.from_post(post)

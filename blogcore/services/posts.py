"""Create, update and delete blog posts.

Every write goes through ``upsert_post``, which resolves the category, tags,
gallery and cover image, allocates the slug and persists the post in one
transaction.
"""
import logging
from datetime import datetime, UTC
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blogcore.core.config import get_settings
from blogcore.core.errors import ConflictError, NotFoundError, ValidationError, validate_payload
from blogcore.db.database import is_outermost, transaction
from blogcore.models.media import PostMedia
from blogcore.models.metric import PostMetric
from blogcore.models.post import Post, PostStatus
from blogcore.schemas.post import PostPayload, PostPublic
from blogcore.services.media import resolve_media
from blogcore.services.slugs import allocate_slug
from blogcore.services.taxonomy import ensure_visible, resolve_category, resolve_tags

logger = logging.getLogger(__name__)

# first attempt plus one retry after a unique-constraint collision
MAX_ATTEMPTS = 2


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _coalesce(*values):
    for value in values:
        if value is not None:
            return value
    return None


def normalise_status(value, default: PostStatus = PostStatus.DRAFT) -> PostStatus:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    raw = value.value if isinstance(value, PostStatus) else f"{value}"
    try:
        return PostStatus(raw.strip().lower())
    except ValueError:
        raise ValidationError("Unsupported blog status.")


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into naive UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(f"{value}".strip())
        except ValueError as exc:
            raise ValidationError("Invalid publication timestamp.") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def _replace_gallery(session: Session, post: Post, gallery) -> None:
    positions = [
        _coalesce(item.payload.get("position"), index) for index, item in enumerate(gallery)
    ]
    if len(set(positions)) != len(positions):
        raise ValidationError("Gallery positions must be unique.")

    # old links must be gone before new positions are inserted
    post.media_links.clear()
    session.flush()
    for position, item in zip(positions, gallery):
        post.media_links.append(
            PostMedia(
                media=item.record,
                position=position,
                role=item.payload.get("role"),
                caption=_coalesce(item.payload.get("caption"), item.record.caption),
            )
        )


def _apply(
    session: Session,
    payload: PostPayload,
    *,
    actor_id,
    post: Optional[Post],
    workspace_id: Optional[int],
) -> PostPublic:
    effective_workspace = workspace_id if workspace_id is not None else (post.workspace_id if post else None)
    status = normalise_status(payload.status, post.status if post else PostStatus.DRAFT)

    category = resolve_category(session, _coalesce(payload.category, payload.category_id), effective_workspace)
    if category is None and post is not None and post.category is not None:
        category = ensure_visible(post.category, effective_workspace)
    tags = resolve_tags(session, payload.tags, effective_workspace)
    gallery = resolve_media(session, payload.media)

    cover_image = None
    cover_reference = _coalesce(payload.cover_image_id, payload.cover_image)
    if cover_reference is not None:
        cover_image = resolve_media(session, cover_reference)[0].record

    slug = allocate_slug(
        session,
        Post,
        payload.slug or payload.title,
        effective_workspace,
        exclude_id=post.id if post else None,
    )

    published_at = _coalesce(
        parse_timestamp(payload.published_at),
        post.published_at if post else None,
    )
    if published_at is None and status == PostStatus.PUBLISHED:
        published_at = utcnow()

    fields = {
        "title": payload.title,
        "slug": slug,
        "excerpt": _coalesce(payload.excerpt, post.excerpt if post else None),
        "content": payload.content,
        "status": status,
        "published_at": published_at,
        "reading_time_minutes": _coalesce(
            payload.reading_time_minutes,
            post.reading_time_minutes if post else None,
            get_settings().default_reading_time_minutes,
        ),
        "featured": bool(_coalesce(payload.featured, post.featured if post else None, False)),
        "author_id": _coalesce(actor_id, post.author_id if post else None),
        "category_id": category.id if category else None,
        "cover_image_id": _coalesce(
            cover_image.id if cover_image else None,
            post.cover_image_id if post else None,
        ),
        "workspace_id": effective_workspace,
        "meta": _coalesce(payload.meta, post.meta if post else None),
    }

    if post is None:
        post = Post(**fields)
        session.add(post)
    else:
        for field, value in fields.items():
            setattr(post, field, value)
    session.flush()

    # tags are always replaced; an empty list clears them
    post.tags = list({tag.id: tag for tag in tags}.values())
    # the gallery is only replaced when a non-empty list is given
    if gallery:
        _replace_gallery(session, post, gallery)

    if post.metrics is None:
        post.metrics = PostMetric()

    session.flush()
    session.refresh(post)
    return PostPublic.from_post(post)


def upsert_post(
    session: Session,
    payload,
    *,
    actor_id=None,
    existing_post: Optional[Post] = None,
    workspace_id: Optional[int] = None,
) -> PostPublic:
    """Create or update a post with its category, tags, gallery and cover image.

    Either everything is saved or nothing is. A unique-constraint collision
    (a concurrent writer took the slug or created the same category/tag)
    rolls back and re-runs the whole upsert once when this call owns the
    transaction; a second collision raises ConflictError.
    """
    payload = validate_payload(PostPayload, payload)
    if not payload.title or not payload.content:
        raise ValidationError("Blog posts require a title and content.")

    post_id = existing_post.id if existing_post is not None else None
    attempts = MAX_ATTEMPTS if is_outermost(session) else 1
    for attempt in range(1, attempts + 1):
        post = None
        if post_id is not None:
            post = session.get(Post, post_id)
            if post is None:
                raise NotFoundError("Blog post not found.")
        try:
            with transaction(session):
                public = _apply(
                    session,
                    payload,
                    actor_id=actor_id,
                    post=post,
                    workspace_id=workspace_id,
                )
        except IntegrityError as exc:
            if attempt >= attempts:
                raise ConflictError("Blog post could not be saved because of a conflicting write.") from exc
            logger.warning("Unique constraint hit while saving post %r, retrying", payload.title)
            continue
        logger.info("Saved blog post %s (%s)", public.id, public.slug)
        return public


def create_post(session: Session, payload, *, actor_id=None, workspace_id: Optional[int] = None) -> PostPublic:
    return upsert_post(session, payload, actor_id=actor_id, workspace_id=workspace_id)


def get_post_for_edit(session: Session, post_id) -> Post:
    """Load a post row by id for editing or deletion"""
    if post_id is None or post_id == "":
        raise ValidationError("A valid blog post identifier is required.")
    try:
        post_id = int(post_id)
    except (TypeError, ValueError):
        raise ValidationError("A valid blog post identifier is required.")
    post = session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Blog post not found.")
    return post


def update_post(
    session: Session,
    post_id,
    payload,
    *,
    actor_id=None,
    workspace_id: Optional[int] = None,
) -> PostPublic:
    post = get_post_for_edit(session, post_id)
    return upsert_post(session, payload, actor_id=actor_id, existing_post=post, workspace_id=workspace_id)


def delete_post(session: Session, post_id) -> None:
    """Hard-delete a post together with its gallery, tag links and metrics"""
    post = get_post_for_edit(session, post_id)
    with transaction(session):
        session.delete(post)
    logger.info("Deleted blog post %s", post_id)

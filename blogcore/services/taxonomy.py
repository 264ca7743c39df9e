"""Category and tag resolution.

A taxonomy reference is an id, a name/slug string, or an inline object.
Resolution may create rows ("create on first use") and may backfill the
decorative fields of an existing row; both happen in the caller's
transaction.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from blogcore.core.errors import NotFoundError, ValidationError, validate_payload
from blogcore.db.database import transaction
from blogcore.models.post import Post
from blogcore.models.post_tag import PostTag
from blogcore.models.taxonomy import DECORATIVE_FIELDS, Category, Tag
from blogcore.schemas.taxonomy import TaxonomyCreate, TaxonomyUpdate
from blogcore.services.slugs import allocate_slug, scope_filter, slugify

logger = logging.getLogger(__name__)

_LABELS = {Category: "category", Tag: "tag"}


@dataclass(frozen=True)
class ById:
    id: int


@dataclass(frozen=True)
class ByNameOrSlug:
    text: str


@dataclass(frozen=True)
class ByInlineObject:
    name: Optional[str]
    slug: Optional[str]
    decorative: dict[str, Any]


def _is_id(value) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit())


def classify_reference(reference):
    """Sort a raw reference into ById / ByNameOrSlug / ByInlineObject, or None when absent"""
    if reference is None:
        return None
    if isinstance(reference, BaseModel):
        reference = reference.model_dump(exclude_none=True)
    if _is_id(reference):
        return ById(int(reference))
    if isinstance(reference, str):
        if not reference.strip():
            return None
        return ByNameOrSlug(reference)
    if isinstance(reference, Mapping):
        if reference.get("id") not in (None, ""):
            return classify_reference(reference["id"])
        decorative = {
            "description": reference.get("description"),
            "accent_color": reference.get("accent_color"),
            "hero_image_url": reference.get("hero_image_url"),
            "metadata_": reference.get("metadata"),
        }
        return ByInlineObject(
            name=reference.get("name"),
            slug=reference.get("slug"),
            decorative={key: value for key, value in decorative.items() if value is not None},
        )
    raise ValidationError(f"Unsupported {type(reference).__name__} taxonomy reference.")


def _find_in_scope(session: Session, model, slug: str, workspace_id: Optional[int]):
    return session.execute(
        select(model).where(model.slug == slug, scope_filter(model, workspace_id))
    ).scalars().first()


def ensure_visible(record, workspace_id: Optional[int]):
    if record.workspace_id is not None and record.workspace_id != workspace_id:
        label = _LABELS[type(record)]
        raise ValidationError(f"The {label} '{record.slug}' belongs to another workspace.")
    return record


def _create(session: Session, model, name: str, workspace_id: Optional[int], slug: str, **fields):
    # the unique (slug, scope) index settles concurrent creates of the same key
    record = model(
        name=name,
        slug=slug,
        workspace_id=workspace_id,
        **fields,
    )
    session.add(record)
    session.flush()
    logger.info("Created %s %r (id=%s, workspace=%s)", _LABELS[model], record.slug, record.id, workspace_id)
    return record


def resolve_taxonomy(
    session: Session,
    model,
    reference,
    workspace_id: Optional[int],
    allow_create: bool = True,
):
    """Resolve a category or tag reference to a persisted row."""
    label = _LABELS[model]
    match classify_reference(reference):
        case None:
            return None
        case ById(id=record_id):
            record = session.get(model, record_id)
            if record is None:
                raise NotFoundError(f"Blog {label} {record_id} not found.")
            return ensure_visible(record, workspace_id)
        case ByNameOrSlug(text=text):
            slug = slugify(text, label)
            record = _find_in_scope(session, model, slug, workspace_id)
            if record is None and workspace_id is not None:
                record = _find_in_scope(session, model, slug, None)
            if record is not None:
                return record
            if not allow_create:
                raise NotFoundError(f"Blog {label} '{text}' not found.")
            return _create(session, model, text.strip(), workspace_id, slug)
        case ByInlineObject(name=name, slug=slug, decorative=decorative):
            if not name:
                raise ValidationError(f"{label.capitalize()} name is required.")
            key = slugify(slug or name, label)
            record = _find_in_scope(session, model, key, workspace_id)
            if record is None:
                if not allow_create:
                    raise NotFoundError(f"Blog {label} '{name}' not found.")
                return _create(session, model, name, workspace_id, key, **decorative)
            # merge decorative fields only; identity fields stay as stored
            for field, value in decorative.items():
                setattr(record, field, value)
            if decorative:
                session.flush()
            return record


def resolve_category(session: Session, reference, workspace_id: Optional[int], allow_create: bool = True):
    return resolve_taxonomy(session, Category, reference, workspace_id, allow_create)


def resolve_tags(session: Session, references, workspace_id: Optional[int], allow_create: bool = True) -> list[Tag]:
    """Resolve each tag reference in order; the result may repeat a row"""
    if references is None:
        return []
    if not isinstance(references, (list, tuple)):
        references = [references]
    resolved = []
    for reference in references:
        tag = resolve_taxonomy(session, Tag, reference, workspace_id, allow_create)
        if tag is not None:
            resolved.append(tag)
    return resolved


# -- management operations -------------------------------------------------

def list_taxonomy(session: Session, model, workspace_id: Optional[int] = None, include_global: bool = False):
    query = select(model)
    if workspace_id is not None:
        if include_global:
            query = query.where((model.workspace_id == workspace_id) | model.workspace_id.is_(None))
        else:
            query = query.where(model.workspace_id == workspace_id)
    return list(session.execute(query.order_by(model.name.asc(), model.id.asc())).scalars().all())


def create_taxonomy(session: Session, model, payload, workspace_id: Optional[int] = None):
    payload = validate_payload(TaxonomyCreate, payload)
    if not payload.name:
        raise ValidationError(f"{_LABELS[model].capitalize()} name is required.")
    with transaction(session):
        return _create(
            session,
            model,
            payload.name,
            workspace_id,
            allocate_slug(session, model, payload.slug or payload.name, workspace_id, fallback=_LABELS[model]),
            description=payload.description,
            accent_color=payload.accent_color,
            hero_image_url=payload.hero_image_url,
            metadata_=payload.metadata,
        )


def update_taxonomy(session: Session, model, record_id: int, payload):
    label = _LABELS[model]
    if not record_id:
        raise ValidationError(f"{label.capitalize()} id is required.")
    payload = validate_payload(TaxonomyUpdate, payload)
    with transaction(session):
        record = session.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{label.capitalize()} not found.")
        if payload.slug:
            record.slug = allocate_slug(
                session, model, payload.slug, record.workspace_id, exclude_id=record.id, fallback=label
            )
        record.name = payload.name or record.name
        for field in DECORATIVE_FIELDS:
            value = getattr(payload, field.rstrip("_"))
            if value is not None:
                setattr(record, field, value)
        session.flush()
        return record


def taxonomy_usage(session: Session, model, record_id: int) -> int:
    """Number of posts referencing the row"""
    if model is Category:
        query = select(func.count(Post.id)).where(Post.category_id == record_id)
    else:
        query = select(func.count()).select_from(PostTag).where(PostTag.tag_id == record_id)
    return session.execute(query).scalar_one()


def delete_taxonomy(session: Session, model, record_id: int) -> None:
    label = _LABELS[model]
    if not record_id:
        raise ValidationError(f"{label.capitalize()} id is required.")
    with transaction(session):
        record = session.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{label.capitalize()} not found.")
        if taxonomy_usage(session, model, record_id) > 0:
            raise ValidationError(f"Cannot delete a {label} that is still in use.")
        session.delete(record)
        logger.info("Deleted %s %r (id=%s)", label, record.slug, record_id)

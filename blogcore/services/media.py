import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session

from blogcore.core.errors import NotFoundError, ValidationError, validate_payload
from blogcore.db.database import transaction
from blogcore.models.media import Media
from blogcore.schemas.media import MediaCreate

logger = logging.getLogger(__name__)


@dataclass
class ResolvedMedia:
    """A persisted media row together with the payload that referenced it.

    The payload carries gallery-only fields (position, role, caption) that
    belong on the post link rather than on the media row.
    """
    record: Media
    payload: dict[str, Any]


def _as_payload(item) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(exclude_none=True)
    if isinstance(item, bool):
        raise ValidationError("Unsupported media reference.")
    if isinstance(item, int):
        return {"id": item}
    if isinstance(item, str):
        return {"url": item}
    if isinstance(item, Mapping):
        return dict(item)
    raise ValidationError(f"Unsupported {type(item).__name__} media reference.")


def _insert(session: Session, payload: dict[str, Any]) -> Media:
    media = Media(
        url=payload["url"],
        type=payload.get("type"),
        alt_text=payload.get("alt_text"),
        caption=payload.get("caption"),
        metadata_=payload.get("metadata"),
    )
    session.add(media)
    session.flush()
    return media


def resolve_media(session: Session, reference_or_list) -> list[ResolvedMedia]:
    """Resolve media references in order.

    Ids must already exist; anything else needs a url and always creates a
    new row, so two posts using the same url get two media rows.
    """
    if reference_or_list is None:
        return []
    items = reference_or_list if isinstance(reference_or_list, (list, tuple)) else [reference_or_list]

    resolved = []
    for item in items:
        payload = _as_payload(item)
        if payload.get("id") not in (None, ""):
            try:
                media_id = int(payload["id"])
            except (TypeError, ValueError):
                raise ValidationError("Media id must be numeric.")
            media = session.get(Media, media_id)
            if media is None:
                raise NotFoundError(f"Media asset {payload['id']} not found.")
        elif not payload.get("url"):
            raise ValidationError("Media url is required.")
        else:
            media = _insert(session, payload)
        resolved.append(ResolvedMedia(record=media, payload=payload))
    return resolved


def create_media(session: Session, payload) -> Media:
    """Register a standalone media asset"""
    payload = validate_payload(MediaCreate, payload)
    with transaction(session):
        media = _insert(session, payload.model_dump())
    logger.info("Registered media %s (%s)", media.id, media.url)
    return media

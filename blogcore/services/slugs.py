import logging
import random
import re
import string
import unicodedata
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from blogcore.core.config import get_settings
from blogcore.core.errors import SlugExhaustedError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def slugify(value, fallback: str = "blog-post") -> str:
    """Turn free text into a lowercase ASCII slug.

    Runs of anything other than ``[a-z0-9]`` collapse into one hyphen and
    leading/trailing hyphens are dropped. Text with nothing usable left gives
    ``"<fallback>-<6 random chars>"``.
    """
    text = unicodedata.normalize("NFKD", f"{value if value is not None else ''}")
    text = text.encode("ascii", "ignore").decode("ascii").strip().lower()
    sanitized = _NON_ALNUM.sub("-", text).strip("-")
    if sanitized:
        return sanitized
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=6))
    return f"{fallback}-{suffix}"


def scope_filter(model, workspace_id: Optional[int]):
    """WHERE clause selecting one workspace scope; None is the global scope, not a wildcard"""
    if workspace_id is None:
        return model.workspace_id.is_(None)
    return model.workspace_id == workspace_id


def allocate_slug(
    session: Session,
    model,
    raw_text,
    workspace_id: Optional[int],
    exclude_id: Optional[int] = None,
    fallback: str = "blog-post",
) -> str:
    """Return the first of ``base``, ``base-2``, ``base-3``... unused in the scope.

    ``exclude_id`` lets a row keep its own slug when it is edited.
    """
    base = slugify(raw_text, fallback)
    limit = get_settings().slug_probe_limit
    candidate = base
    suffix = 1
    while suffix <= limit:
        query = select(model.id).where(model.slug == candidate, scope_filter(model, workspace_id))
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if session.execute(query.limit(1)).first() is None:
            if suffix > 1:
                logger.debug("Slug %r taken in scope %s, using %r", base, workspace_id, candidate)
            return candidate
        suffix += 1
        candidate = f"{base}-{suffix}"
    raise SlugExhaustedError(f"No free slug for '{base}' after {limit} attempts.")

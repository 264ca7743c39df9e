from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from blogcore.core.errors import NotFoundError, ValidationError, validate_payload
from blogcore.db.database import transaction
from blogcore.models.workspace import Workspace
from blogcore.schemas.workspace import WorkspaceCreate
from blogcore.services.slugs import slugify


def create_workspace(session: Session, payload) -> Workspace:
    payload = validate_payload(WorkspaceCreate, payload)
    slug = slugify(payload.slug or payload.name, "workspace")
    existing = session.execute(select(Workspace).where(Workspace.slug == slug)).scalars().first()
    if existing:
        raise ValidationError("Workspace slug already exists")
    with transaction(session):
        workspace = Workspace(name=payload.name, slug=slug)
        session.add(workspace)
        session.flush()
    return workspace


def get_workspace(session: Session, workspace_id: Optional[int]) -> Optional[Workspace]:
    """Look up a workspace; None stands for the marketplace scope"""
    if workspace_id is None:
        return None
    workspace = session.get(Workspace, workspace_id)
    if workspace is None:
        raise NotFoundError("Workspace not found.")
    return workspace

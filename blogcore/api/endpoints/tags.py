from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from blogcore.core.errors import NotFoundError
from blogcore.core.security import ensure_workspace_access, get_current_user
from blogcore.db.database import get_session
from blogcore.models.taxonomy import Tag
from blogcore.models.user import User
from blogcore.schemas.taxonomy import TagPublic, TaxonomyCreate, TaxonomyUpdate
from blogcore.services import taxonomy
from blogcore.services.workspaces import get_workspace

router = APIRouter()

def _get_owned(session: Session, tag_id: int, workspace_id: Optional[int]) -> Tag:
    record = session.get(Tag, tag_id)
    if record is None:
        raise NotFoundError("Tag not found.")
    ensure_workspace_access(record, workspace_id)
    return record

@router.get("", response_model=List[TagPublic], summary="List tags")
def list_tags(
    workspace_id: Optional[int] = None,
    include_global: bool = False,
    session: Session = Depends(get_session)
):
    """List tags of a workspace, optionally with the global ones"""
    return taxonomy.list_taxonomy(session, Tag, workspace_id=workspace_id, include_global=include_global)

@router.post("", response_model=TagPublic, status_code=status.HTTP_201_CREATED, summary="Create a tag")
def create_tag(
    payload: TaxonomyCreate,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    get_workspace(session, workspace_id)
    return taxonomy.create_taxonomy(session, Tag, payload, workspace_id=workspace_id)

@router.put("/{tag_id}", response_model=TagPublic, summary="Update a tag")
def update_tag(
    tag_id: int,
    payload: TaxonomyUpdate,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    _get_owned(session, tag_id, workspace_id)
    return taxonomy.update_taxonomy(session, Tag, tag_id, payload)

@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an unused tag")
def delete_tag(
    tag_id: int,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Delete a tag; refused while any post still uses it"""
    _get_owned(session, tag_id, workspace_id)
    taxonomy.delete_taxonomy(session, Tag, tag_id)
    return None

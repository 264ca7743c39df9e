from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from blogcore.core.errors import NotFoundError
from blogcore.core.security import ensure_workspace_access, get_current_user
from blogcore.db.database import get_session
from blogcore.models.taxonomy import Category
from blogcore.models.user import User
from blogcore.schemas.taxonomy import CategoryPublic, TaxonomyCreate, TaxonomyUpdate
from blogcore.services import taxonomy
from blogcore.services.workspaces import get_workspace

router = APIRouter()

def _get_owned(session: Session, category_id: int, workspace_id: Optional[int]) -> Category:
    record = session.get(Category, category_id)
    if record is None:
        raise NotFoundError("Category not found.")
    ensure_workspace_access(record, workspace_id)
    return record

@router.get("", response_model=List[CategoryPublic], summary="List categories")
def list_categories(
    workspace_id: Optional[int] = None,
    include_global: bool = False,
    session: Session = Depends(get_session)
):
    """List categories of a workspace, optionally with the global ones"""
    return taxonomy.list_taxonomy(session, Category, workspace_id=workspace_id, include_global=include_global)

@router.post("", response_model=CategoryPublic, status_code=status.HTTP_201_CREATED, summary="Create a category")
def create_category(
    payload: TaxonomyCreate,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    get_workspace(session, workspace_id)
    return taxonomy.create_taxonomy(session, Category, payload, workspace_id=workspace_id)

@router.put("/{category_id}", response_model=CategoryPublic, summary="Update a category")
def update_category(
    category_id: int,
    payload: TaxonomyUpdate,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    _get_owned(session, category_id, workspace_id)
    return taxonomy.update_taxonomy(session, Category, category_id, payload)

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an unused category")
def delete_category(
    category_id: int,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Delete a category; refused while any post still uses it"""
    _get_owned(session, category_id, workspace_id)
    taxonomy.delete_taxonomy(session, Category, category_id)
    return None

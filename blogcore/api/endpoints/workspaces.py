from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from blogcore.core.security import get_current_user
from blogcore.db.database import get_session
from blogcore.models.user import User
from blogcore.schemas.workspace import WorkspaceCreate, WorkspaceResponse
from blogcore.services.workspaces import create_workspace, get_workspace

router = APIRouter()

@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED, summary="Create a workspace")
def create_workspace_endpoint(
    payload: WorkspaceCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return create_workspace(session, payload)

@router.get("/{workspace_id}", response_model=WorkspaceResponse, summary="Get a workspace")
def get_workspace_endpoint(
    workspace_id: int,
    session: Session = Depends(get_session)
):
    return get_workspace(session, workspace_id)

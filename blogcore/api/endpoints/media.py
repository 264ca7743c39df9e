from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from blogcore.core.security import get_current_user
from blogcore.db.database import get_session
from blogcore.models.user import User
from blogcore.schemas.media import MediaCreate, MediaPublic
from blogcore.services.media import create_media

router = APIRouter()

@router.post("", response_model=MediaPublic, status_code=status.HTTP_201_CREATED, summary="Register a media asset")
def upload_media(
    payload: MediaCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Register a media asset that posts can reference by id"""
    return create_media(session, payload)

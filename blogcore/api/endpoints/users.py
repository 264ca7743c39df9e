from datetime import datetime, UTC
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from blogcore.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_user
)
from blogcore.db.database import get_session
from blogcore.models.user import User
from blogcore.schemas.user import UserCreate, UserResponse, Token, UserUpdate, UserLogin

router = APIRouter()

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Register an author"""
    existing = session.execute(
        select(User).where(or_(User.username == user_in.username, User.email == user_in.email))
    ).scalars().first()
    if existing:
        detail = "Username already exists" if existing.username == user_in.username else "Email already registered"
        raise HTTPException(status_code=400, detail=detail)

    user = User(
        username=user_in.username,
        name=user_in.name,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        bio=user_in.bio
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@router.post("/login", response_model=Token)
def login(
    user_in: UserLogin,
    session: Annotated[Session, Depends(get_session)]
) -> dict:
    """Exchange credentials for a bearer token"""
    user = session.execute(
        select(User).where(User.username == user_in.username)
    ).scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.now(UTC)
    session.commit()

    access_token = create_access_token(data={"sub": user.username})
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
def read_users_me(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Get the current user"""
    return current_user

@router.put("/me", response_model=UserResponse)
def update_user_me(
    user_update: UserUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Update the current user's display name or bio"""
    if user_update.name is not None:
        current_user.name = user_update.name
    if user_update.bio is not None:
        current_user.bio = user_update.bio
    session.commit()
    session.refresh(current_user)
    return current_user

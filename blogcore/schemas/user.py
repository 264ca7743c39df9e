from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from blogcore.models.user import User

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str | None = Field(default=None, max_length=120)
    bio: str | None = None

class UserCreate(UserBase):
    password: str = Field(..., min_length=8)

class UserLogin(BaseModel):
    username: str
    password: str

class UserUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    bio: str | None = None

class UserResponse(UserBase):
    id: str
    created_at: datetime
    last_login: datetime | None = None
    is_active: bool

    class Config:
        from_attributes = True

class AuthorSummary(BaseModel):
    """Author as embedded in a post"""
    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "AuthorSummary":
        return cls(id=user.id, name=user.display_name, email=user.email)

class Token(BaseModel):
    access_token: str
    token_type: str

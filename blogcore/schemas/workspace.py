from datetime import datetime
from pydantic import BaseModel, Field

class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: str | None = Field(default=None, max_length=160)

class WorkspaceSummary(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True

class WorkspaceResponse(WorkspaceSummary):
    created_at: datetime

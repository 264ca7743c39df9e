from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field

class MediaRef(BaseModel):
    """媒体引用：已有ID或新的URL，附带图集位置信息"""
    id: Optional[int] = None
    url: Optional[str] = None
    type: Optional[str] = None
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    # gallery link fields, not stored on the media row
    position: Optional[int] = None
    role: Optional[str] = None

# id, bare url, or inline object
MediaReference = int | str | MediaRef

class MediaCreate(BaseModel):
    """创建媒体请求模型"""
    url: str = Field(..., min_length=1)
    type: Optional[str] = None
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

class MediaPublic(BaseModel):
    """媒体响应模型"""
    id: int
    url: str
    type: Optional[str] = None
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime

    class Config:
        from_attributes = True

class GalleryItem(MediaPublic):
    """图集条目，caption 可被关联行覆盖"""
    position: int
    role: Optional[str] = None

from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field

class TaxonomyRef(BaseModel):
    """分类/标签引用（内联对象）"""
    id: Optional[int | str] = Field(None, description="已有记录ID")
    slug: Optional[str] = Field(None, description="别名")
    name: Optional[str] = Field(None, description="名称")
    description: Optional[str] = Field(None, description="描述")
    accent_color: Optional[str] = Field(None, description="强调色")
    hero_image_url: Optional[str] = Field(None, description="头图地址")
    metadata: Optional[dict[str, Any]] = Field(None, description="附加数据")

# id, name/slug string, or inline object
TaxonomyReference = int | str | TaxonomyRef

class TaxonomyCreate(BaseModel):
    """创建分类/标签请求模型"""
    name: str = Field(..., min_length=1, max_length=120, description="名称")
    slug: Optional[str] = Field(None, max_length=160, description="别名")
    description: Optional[str] = None
    accent_color: Optional[str] = None
    hero_image_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

class TaxonomyUpdate(BaseModel):
    """更新分类/标签请求模型"""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    slug: Optional[str] = Field(None, max_length=160)
    description: Optional[str] = None
    accent_color: Optional[str] = None
    hero_image_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

class TaxonomyPublic(BaseModel):
    """分类/标签响应模型"""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    accent_color: Optional[str] = None
    hero_image_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    workspace_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CategoryPublic(TaxonomyPublic):
    pass

class TagPublic(TaxonomyPublic):
    pass

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field
from blogcore.models.post import Post, PostStatus
from blogcore.schemas.media import GalleryItem, MediaPublic, MediaReference
from blogcore.schemas.metric import PostMetricPublic
from blogcore.schemas.taxonomy import CategoryPublic, TagPublic, TaxonomyReference
from blogcore.schemas.user import AuthorSummary
from blogcore.schemas.workspace import WorkspaceSummary

class PostPayload(BaseModel):
    """文章创建/更新请求模型

    Required fields and enum values are checked by the upsert service so that
    both HTTP and direct callers get the same errors.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=280)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = Field(default=None, description="draft, scheduled, published or archived")
    published_at: Optional[datetime | str] = Field(default=None, description="ISO-8601 override of the publication time")
    reading_time_minutes: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None
    category: Optional[TaxonomyReference] = None
    category_id: Optional[int | str] = None
    tags: Optional[list[TaxonomyReference] | TaxonomyReference] = Field(default=None, description="标签列表，整体替换")
    media: Optional[list[MediaReference] | MediaReference] = Field(default=None, description="图集，非空时整体替换")
    cover_image: Optional[MediaReference] = None
    cover_image_id: Optional[int] = None
    meta: Optional[dict[str, Any]] = None

class PostPublic(BaseModel):
    """文章响应模型"""
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    status: PostStatus
    published_at: Optional[datetime] = None
    reading_time_minutes: int
    featured: bool
    author_id: Optional[str] = None
    category_id: Optional[int] = None
    cover_image_id: Optional[int] = None
    workspace_id: Optional[int] = None
    meta: Optional[dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    category: Optional[CategoryPublic] = None
    tags: list[TagPublic] = []
    cover_image: Optional[MediaPublic] = None
    media: list[GalleryItem] = []
    workspace: Optional[WorkspaceSummary] = None
    author: Optional[AuthorSummary] = None
    metrics: Optional[PostMetricPublic] = None

    @classmethod
    def from_post(cls, post: Post) -> "PostPublic":
        """Build the association-populated view of a post row"""
        gallery = []
        for link in post.media_links:
            item = MediaPublic.model_validate(link.media).model_dump()
            item.update(
                position=link.position,
                role=link.role,
                caption=link.caption if link.caption is not None else link.media.caption,
            )
            gallery.append(GalleryItem.model_validate(item))

        return cls(
            id=post.id,
            title=post.title,
            slug=post.slug,
            excerpt=post.excerpt,
            content=post.content,
            status=post.status,
            published_at=post.published_at,
            reading_time_minutes=post.reading_time_minutes,
            featured=post.featured,
            author_id=post.author_id,
            category_id=post.category_id,
            cover_image_id=post.cover_image_id,
            workspace_id=post.workspace_id,
            meta=post.meta,
            created_at=post.created_at,
            updated_at=post.updated_at,
            category=CategoryPublic.model_validate(post.category) if post.category else None,
            tags=[TagPublic.model_validate(tag) for tag in post.tags],
            cover_image=MediaPublic.model_validate(post.cover_image) if post.cover_image else None,
            media=gallery,
            workspace=WorkspaceSummary.model_validate(post.workspace) if post.workspace else None,
            author=AuthorSummary.from_user(post.author) if post.author else None,
            metrics=PostMetricPublic.model_validate(post.metrics) if post.metrics else None,
        )

class Pagination(BaseModel):
    """分页信息"""
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

class PostPage(BaseModel):
    """文章列表响应模型"""
    results: list[PostPublic]
    pagination: Pagination

class PostMetricsResponse(BaseModel):
    post: PostPublic
    metrics: PostMetricPublic

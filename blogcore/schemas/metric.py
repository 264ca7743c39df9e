from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field
from blogcore.models.post import PostStatus

class PostMetricUpdate(BaseModel):
    """更新统计请求模型，数值在服务层校验"""
    total_views: Optional[Any] = None
    unique_visitors: Optional[Any] = None
    average_read_time_seconds: Optional[Any] = None
    read_completion_rate: Optional[Any] = None
    click_through_rate: Optional[Any] = None
    bounce_rate: Optional[Any] = None
    share_count: Optional[Any] = None
    like_count: Optional[Any] = None
    subscriber_conversions: Optional[Any] = None
    comment_count: Optional[Any] = None
    last_synced_at: Optional[Any] = None
    metadata: Optional[dict[str, Any]] = None

class PostMetricPublic(BaseModel):
    """统计响应模型"""
    post_id: int
    total_views: int
    unique_visitors: int
    average_read_time_seconds: int
    read_completion_rate: float
    click_through_rate: float
    bounce_rate: float
    share_count: int
    like_count: int
    subscriber_conversions: int
    comment_count: int
    last_synced_at: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias=AliasChoices("metadata_", "metadata"))
    updated_at: datetime

    class Config:
        from_attributes = True

class PostSummary(BaseModel):
    """统计概览中的文章摘要"""
    id: int
    title: str
    slug: str
    status: PostStatus
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MetricSnapshot(PostMetricPublic):
    post: PostSummary

class MetricTotals(BaseModel):
    posts_tracked: int = 0
    total_views: int = 0
    unique_visitors: int = 0
    like_count: int = 0
    share_count: int = 0
    subscriber_conversions: int = 0
    comment_count: int = 0

class EngagementSummary(BaseModel):
    """平均互动指标"""
    average_read_time_seconds: int = 0
    read_completion_rate: float = 0
    click_through_rate: float = 0
    bounce_rate: float = 0

class FreshnessSummary(BaseModel):
    last_synced_at: Optional[datetime] = None
    posts_tracked: int = 0
    posts_updated_this_week: int = 0
    draft_count: int = 0
    published_count: int = 0
    scheduled_count: int = 0
    archived_count: int = 0

class TrendingPost(BaseModel):
    """按浏览量排序的热门文章"""
    post_id: int
    title: str
    slug: str
    status: PostStatus
    views: int
    unique_visitors: int
    likes: int
    comments: int
    shares: int
    published_at: Optional[datetime] = None

class TimeRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

class MetricsOverview(BaseModel):
    """所有文章的统计概览"""
    totals: MetricTotals
    engagement: EngagementSummary
    freshness: FreshnessSummary
    by_status: dict[str, int]
    trending_posts: list[TrendingPost]
    posts: list[MetricSnapshot]
    time_range: TimeRange

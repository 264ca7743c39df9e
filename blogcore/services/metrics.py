"""Engagement counters per post and the overview across all posts."""
import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from blogcore.core.errors import ValidationError, validate_payload
from blogcore.db.database import transaction
from blogcore.models.metric import COUNTER_FIELDS, RATE_FIELDS, PostMetric
from blogcore.models.post import Post, PostStatus
from blogcore.schemas.metric import (
    EngagementSummary,
    FreshnessSummary,
    MetricSnapshot,
    MetricTotals,
    MetricsOverview,
    PostMetricPublic,
    PostMetricUpdate,
    PostSummary,
    TimeRange,
    TrendingPost,
)
from blogcore.schemas.post import PostMetricsResponse, PostPublic
from blogcore.services.posts import get_post_for_edit, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

TRENDING_LIMIT = 6


def ensure_metrics(session: Session, post_id: int) -> PostMetric:
    metrics = session.execute(
        select(PostMetric).where(PostMetric.post_id == post_id)
    ).scalars().first()
    if metrics is None:
        metrics = PostMetric(post_id=post_id)
        session.add(metrics)
        session.flush()
    return metrics


def _clamp_number(value, field: str, *, integer: bool, low: float, high: float | None = None):
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be numeric.")
    if integer:
        numeric = int(numeric)
    numeric = max(numeric, low)
    if high is not None:
        numeric = min(numeric, high)
    return numeric


def get_post_metrics(session: Session, post_id) -> PostMetricsResponse:
    post = get_post_for_edit(session, post_id)
    with transaction(session):
        metrics = ensure_metrics(session, post.id)
    session.refresh(post)
    return PostMetricsResponse(
        post=PostPublic.from_post(post),
        metrics=PostMetricPublic.model_validate(metrics),
    )


def update_post_metrics(session: Session, post_id, payload) -> PostMetricsResponse:
    """Overwrite the counters given in ``payload``; counters stay >= 0, rates within [0, 100]"""
    post = get_post_for_edit(session, post_id)
    payload = validate_payload(PostMetricUpdate, payload)
    provided = payload.model_dump(exclude_unset=True)

    with transaction(session):
        metrics = ensure_metrics(session, post.id)
        for field in COUNTER_FIELDS:
            if provided.get(field) is not None:
                setattr(metrics, field, _clamp_number(provided[field], field, integer=True, low=0))
        for field in RATE_FIELDS:
            if provided.get(field) is not None:
                setattr(metrics, field, _clamp_number(provided[field], field, integer=False, low=0, high=100))
        if "last_synced_at" in provided:
            try:
                metrics.last_synced_at = parse_timestamp(provided["last_synced_at"])
            except ValidationError:
                raise ValidationError("Invalid timestamp provided.")
        if "metadata" in provided:
            metrics.metadata_ = provided["metadata"]
        session.flush()
    logger.info("Updated metrics for blog post %s", post.id)

    session.refresh(post)
    session.refresh(metrics)
    return PostMetricsResponse(
        post=PostPublic.from_post(post),
        metrics=PostMetricPublic.model_validate(metrics),
    )


def _average(total: float, count: int, digits: int = 2) -> float:
    return round(total / count, digits) if count else 0


def get_metrics_overview(session: Session, start_date=None, end_date=None) -> MetricsOverview:
    """Aggregate the counters of every tracked post.

    ``start_date``/``end_date`` bound the metric rows' ``updated_at``. The
    result carries totals, averaged rates, per-status freshness counts and the
    most viewed posts.
    """
    try:
        start = parse_timestamp(start_date)
        end = parse_timestamp(end_date)
    except ValidationError:
        raise ValidationError("Invalid date range provided.")

    query = select(PostMetric, Post).join(Post, PostMetric.post_id == Post.id)
    if start is not None:
        query = query.where(PostMetric.updated_at >= start)
    if end is not None:
        query = query.where(PostMetric.updated_at <= end)
    rows = session.execute(query.order_by(PostMetric.updated_at.desc(), PostMetric.id.desc())).all()

    totals = MetricTotals(posts_tracked=len(rows))
    by_status: dict[str, int] = {}
    rate_sums = dict.fromkeys(("average_read_time_seconds",) + RATE_FIELDS, 0.0)
    last_synced_at = None
    week_ago = utcnow() - timedelta(days=7)
    updated_this_week = 0
    snapshots = []

    for metrics, post in rows:
        for field in ("total_views", "unique_visitors", "like_count", "share_count",
                      "subscriber_conversions", "comment_count"):
            setattr(totals, field, getattr(totals, field) + (getattr(metrics, field) or 0))
        for field in rate_sums:
            rate_sums[field] += getattr(metrics, field) or 0

        status = post.status.value
        by_status[status] = by_status.get(status, 0) + 1

        synced = metrics.last_synced_at or metrics.updated_at or metrics.created_at
        if synced is not None and (last_synced_at is None or synced > last_synced_at):
            last_synced_at = synced
        touched = metrics.updated_at or metrics.created_at
        if touched is not None and touched >= week_ago:
            updated_this_week += 1

        snapshots.append(MetricSnapshot(
            **PostMetricPublic.model_validate(metrics).model_dump(),
            post=PostSummary.model_validate(post),
        ))

    count = len(rows)
    engagement = EngagementSummary(
        average_read_time_seconds=round(_average(rate_sums["average_read_time_seconds"], count)),
        read_completion_rate=_average(rate_sums["read_completion_rate"], count),
        click_through_rate=_average(rate_sums["click_through_rate"], count),
        bounce_rate=_average(rate_sums["bounce_rate"], count),
    )
    freshness = FreshnessSummary(
        last_synced_at=last_synced_at,
        posts_tracked=count,
        posts_updated_this_week=updated_this_week,
        draft_count=by_status.get(PostStatus.DRAFT.value, 0),
        published_count=by_status.get(PostStatus.PUBLISHED.value, 0),
        scheduled_count=by_status.get(PostStatus.SCHEDULED.value, 0),
        archived_count=by_status.get(PostStatus.ARCHIVED.value, 0),
    )

    # sorted() is stable, so equal view counts keep the most recently updated first
    trending = sorted(rows, key=lambda row: row[0].total_views or 0, reverse=True)[:TRENDING_LIMIT]
    trending_posts = [
        TrendingPost(
            post_id=post.id,
            title=post.title,
            slug=post.slug,
            status=post.status,
            views=metrics.total_views or 0,
            unique_visitors=metrics.unique_visitors or 0,
            likes=metrics.like_count or 0,
            comments=metrics.comment_count or 0,
            shares=metrics.share_count or 0,
            published_at=post.published_at,
        )
        for metrics, post in trending
    ]

    return MetricsOverview(
        totals=totals,
        engagement=engagement,
        freshness=freshness,
        by_status=by_status,
        trending_posts=trending_posts,
        posts=snapshots,
        time_range=TimeRange(start=start, end=end),
    )

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from blogcore.core.security import ensure_workspace_access, get_current_user, get_optional_current_user
from blogcore.db.database import get_session
from blogcore.models.user import User
from blogcore.schemas.metric import MetricsOverview, PostMetricUpdate
from blogcore.schemas.post import PostMetricsResponse, PostPage, PostPayload, PostPublic
from blogcore.services import metrics, posts, queries
from blogcore.services.workspaces import get_workspace

router = APIRouter()

def _require_reader(include_unpublished: bool, current_user: User | None) -> None:
    # unpublished content is only shown to signed-in editors
    if include_unpublished and current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

@router.post("", response_model=PostPublic, status_code=status.HTTP_201_CREATED, summary="Create a blog post")
def create_post(
    payload: PostPayload,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Create a post, its new categories/tags and its gallery in one transaction"""
    get_workspace(session, workspace_id)
    return posts.create_post(session, payload, actor_id=current_user.id, workspace_id=workspace_id)

@router.get("", response_model=PostPage, summary="List blog posts")
def list_posts(
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = queries.DEFAULT_PAGE_SIZE,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    include_unpublished: bool = False,
    workspace_id: Optional[int] = None,
    include_global_workspace: bool = False,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_current_user)
):
    """List posts, published only unless include_unpublished is set"""
    _require_reader(include_unpublished, current_user)
    return queries.list_posts(
        session,
        status=status,
        page=page,
        page_size=page_size,
        category=category,
        tag=tag,
        search=search,
        include_unpublished=include_unpublished,
        workspace_id=workspace_id,
        include_global_workspace=include_global_workspace,
    )

@router.get("/metrics/overview", response_model=MetricsOverview, summary="Get the metrics overview")
def get_metrics_overview(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Totals, averaged rates and trending posts, optionally limited to a date window"""
    return metrics.get_metrics_overview(session, start_date=start_date, end_date=end_date)

@router.get("/{identifier}", response_model=PostPublic, summary="Get a blog post by id or slug")
def get_post(
    identifier: str,
    include_unpublished: bool = False,
    workspace_id: Optional[int] = None,
    include_global_workspace: bool = False,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_current_user)
):
    """Get a specific post"""
    _require_reader(include_unpublished, current_user)
    return queries.get_post(
        session,
        identifier,
        include_unpublished=include_unpublished,
        workspace_id=workspace_id,
        include_global_workspace=include_global_workspace,
    )

@router.put("/{post_id}", response_model=PostPublic, summary="Update a blog post")
def update_post(
    post_id: int,
    payload: PostPayload,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Update a post; tags are replaced, the gallery only when a new one is sent"""
    get_workspace(session, workspace_id)
    post = posts.get_post_for_edit(session, post_id)
    ensure_workspace_access(post, workspace_id)
    return posts.upsert_post(
        session,
        payload,
        actor_id=current_user.id,
        existing_post=post,
        workspace_id=workspace_id,
    )

@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a blog post")
def delete_post(
    post_id: int,
    workspace_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Delete a post with its gallery links, tag links and metrics"""
    post = posts.get_post_for_edit(session, post_id)
    ensure_workspace_access(post, workspace_id)
    posts.delete_post(session, post_id)
    return None

@router.get("/{post_id}/metrics", response_model=PostMetricsResponse, summary="Get post metrics")
def get_post_metrics(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return metrics.get_post_metrics(session, post_id)

@router.put("/{post_id}/metrics", response_model=PostMetricsResponse, summary="Update post metrics")
def update_post_metrics(
    post_id: int,
    payload: PostMetricUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return metrics.update_post_metrics(session, post_id, payload)

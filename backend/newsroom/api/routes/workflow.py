from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.api.deps.actor import get_actor
from newsroom.api.envelope import success_envelope
from newsroom.core.context import ActorContext
from newsroom.core.database import get_db
from newsroom.models import RevisionRequestStatus, UserRole
from newsroom.schemas import (
    ArticleFeaturesUpdate,
    BreakingNewsRequestCreate,
    BulkWorkflowActionRequest,
    RevisionRequestCreate,
    ReviewDecisionRequest,
    WorkflowActionRequest,
)
from newsroom.services.breaking_news_service import serialize_breaking_news_request
from newsroom.services.revision_service import serialize_revision, serialize_revision_request
from newsroom.services.workflow_service import serialize_article, workflow_service

router = APIRouter(prefix="/workflow", tags=["Workflow"])


# ── Lifecycle ──

@router.post("/articles/{article_id}/actions")
async def perform_action(
    article_id: int,
    payload: WorkflowActionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    result = await workflow_service.perform_workflow_action(
        db,
        actor,
        article_id=article_id,
        action=payload.action,
        reason=payload.reason,
        notify_owner=payload.notify_owner,
    )
    return success_envelope(
        {"success": result.success, "message": result.message, "article": serialize_article(result.article)}
    )


@router.post("/articles/bulk-actions")
async def perform_bulk_action(
    payload: BulkWorkflowActionRequest,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    result = await workflow_service.perform_bulk_workflow_action(
        db,
        actor,
        article_ids=payload.article_ids,
        action=payload.action,
        reason=payload.reason,
        notify_owners=payload.notify_owners,
    )
    return success_envelope(
        {
            "message": result.message,
            "processed_count": result.processed_count,
            "failed_count": result.failed_count,
            "results": result.results,
        }
    )


@router.get("/articles/{article_id}/available-actions")
async def available_actions(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    actions = await workflow_service.get_available_actions(db, actor, article_id=article_id)
    return success_envelope({"article_id": article_id, "actions": [action.value for action in actions]})


@router.get("/articles/{article_id}/history")
async def workflow_history(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    items = await workflow_service.get_workflow_history(db, actor, article_id=article_id)
    return success_envelope({"items": items, "total": len(items)})


@router.patch("/articles/{article_id}/features")
async def update_features(
    article_id: int,
    payload: ArticleFeaturesUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    article = await workflow_service.set_article_features(
        db,
        actor,
        article_id=article_id,
        is_featured=payload.is_featured,
        is_editors_pick=payload.is_editors_pick,
    )
    return success_envelope(serialize_article(article))


# ── Revision requests ──

@router.post("/articles/{article_id}/revision-requests", status_code=201)
async def create_revision_request(
    article_id: int,
    payload: RevisionRequestCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.request_revision(
        db,
        actor,
        article_id=article_id,
        proposed_changes=payload.proposed_changes,
        note=payload.note,
    )
    return success_envelope(serialize_revision_request(request), status_code=201)


@router.get("/articles/{article_id}/revision-requests")
async def list_revision_requests(
    article_id: int,
    status: Optional[RevisionRequestStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    rows = await workflow_service.list_revision_requests(db, actor, article_id=article_id, status=status)
    return success_envelope({"items": [serialize_revision_request(row) for row in rows], "total": len(rows)})


@router.get("/articles/{article_id}/revisions")
async def list_revisions(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    rows = await workflow_service.list_revisions(db, actor, article_id=article_id)
    return success_envelope({"items": [serialize_revision(row) for row in rows], "total": len(rows)})


@router.post("/revision-requests/{request_id}/approve")
async def approve_revision(
    request_id: int,
    payload: Optional[ReviewDecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    article = await workflow_service.approve_revision(
        db, actor, request_id=request_id, review_comment=payload.comment if payload else None
    )
    return success_envelope(serialize_article(article))


@router.post("/revision-requests/{request_id}/reject")
async def reject_revision(
    request_id: int,
    payload: Optional[ReviewDecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.reject_revision(
        db, actor, request_id=request_id, review_comment=payload.comment if payload else None
    )
    return success_envelope(serialize_revision_request(request))


@router.post("/revision-requests/{request_id}/consume")
async def consume_revision(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.consume_revision(db, actor, request_id=request_id)
    return success_envelope(serialize_revision_request(request))


@router.post("/articles/{article_id}/edit-allowance/consume")
async def consume_edit_allowance(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    article = await workflow_service.consume_edit_allowance(db, actor, article_id=article_id)
    return success_envelope(serialize_article(article))


# ── Breaking news ──

@router.post("/articles/{article_id}/breaking-news-requests", status_code=201)
async def create_breaking_news_request(
    article_id: int,
    payload: BreakingNewsRequestCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.request_breaking_news(db, actor, article_id=article_id, reason=payload.reason)
    return success_envelope(serialize_breaking_news_request(request), status_code=201)


@router.post("/breaking-news-requests/{request_id}/approve")
async def approve_breaking_news(
    request_id: int,
    payload: Optional[ReviewDecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.approve_breaking_news(
        db, actor, request_id=request_id, review_comment=payload.comment if payload else None
    )
    return success_envelope(serialize_breaking_news_request(request))


@router.post("/breaking-news-requests/{request_id}/reject")
async def reject_breaking_news(
    request_id: int,
    payload: Optional[ReviewDecisionRequest] = None,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    request = await workflow_service.reject_breaking_news(
        db, actor, request_id=request_id, review_comment=payload.comment if payload else None
    )
    return success_envelope(serialize_breaking_news_request(request))


@router.delete("/articles/{article_id}/breaking")
async def clear_breaking_news(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    article = await workflow_service.clear_breaking_news(db, actor, article_id=article_id)
    return success_envelope(serialize_article(article))


# ── Queues, stats, permissions ──

@router.get("/review-queue")
async def review_queue(
    category_id: Optional[int] = Query(default=None),
    author_id: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    offset: int = Query(default=0),
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    page = await workflow_service.get_review_queue(
        db,
        actor,
        category_id=category_id,
        author_id=author_id,
        limit=limit,
        offset=offset,
    )
    return success_envelope(
        {
            "articles": [serialize_article(article) for article in page.articles],
            "total_count": page.total_count,
            "has_more": page.has_more,
        }
    )


@router.get("/stats")
async def workflow_stats(
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    return success_envelope(await workflow_service.get_workflow_stats(db, actor))


@router.get("/permissions/{role}")
async def role_permissions(role: UserRole):
    return success_envelope(workflow_service.get_permission_summary(role))


@router.get("/notifications")
async def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    return success_envelope(
        await workflow_service.list_notifications(db, actor, unread_only=unread_only, limit=limit)
    )


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    return success_envelope(
        await workflow_service.mark_notification_read(db, actor, notification_id=notification_id)
    )


@router.get("/audit-logs")
async def audit_logs(
    event_type: Optional[str] = Query(default=None, max_length=64),
    user_id: Optional[int] = Query(default=None),
    resource_type: Optional[str] = Query(default=None, max_length=80),
    resource_id: Optional[str] = Query(default=None, max_length=120),
    success: Optional[bool] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    actor: Optional[ActorContext] = Depends(get_actor),
):
    return success_envelope(
        await workflow_service.get_audit_logs(
            db,
            actor,
            event_type=event_type,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            success=success,
            limit=limit,
            offset=offset,
        )
    )

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.context import ActorContext
from newsroom.core.database import utcnow
from newsroom.core.errors import AuthorizationError, ConflictError, InvalidTransitionError, NotFoundError
from newsroom.domain.capabilities import Capability, can_access_resource, require_capability
from newsroom.models import (
    Article,
    AuditEventType,
    BreakingNewsRequest,
    BreakingNewsRequestStatus,
    NotificationType,
    OutboxEvent,
)
from newsroom.services.audit_service import audit_service
from newsroom.services.side_effects import enqueue_side_effects, notification_plan
from newsroom.services.state_transition_service import state_transition_service


class BreakingNewsService:
    """Request/approve/reject cycle in front of ``Article.is_breaking``.

    Approval and ``clear_breaking_news`` are the only writers of the flag.
    """

    async def _lock_request(self, db: AsyncSession, request_id: int) -> tuple[BreakingNewsRequest, Article]:
        article_id = await db.scalar(
            select(BreakingNewsRequest.article_id).where(BreakingNewsRequest.id == request_id)
        )
        if article_id is None:
            raise NotFoundError("Breaking news request not found", code="breaking_news_request_not_found")
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        row = await db.execute(
            select(BreakingNewsRequest)
            .where(BreakingNewsRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        request = row.scalar_one()
        if request.status != BreakingNewsRequestStatus.PENDING:
            raise InvalidTransitionError(
                "Only pending breaking news requests can be reviewed",
                details={
                    "entity": f"breaking_news_request:{request.id}",
                    "from_state": request.status.value,
                    "allowed_from": [BreakingNewsRequestStatus.PENDING.value],
                },
            )
        return request, article

    async def request_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        article_id: int,
        reason: str | None = None,
    ) -> tuple[BreakingNewsRequest, list[OutboxEvent]]:
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        if not can_access_resource(actor, article.author_id, [Capability.UPDATE_ANY_ARTICLE]):
            raise AuthorizationError(
                "Only the article owner or an editor can request breaking news",
                details={"article_id": article_id},
            )
        if article.is_breaking:
            raise ConflictError(
                "The article is already marked as breaking news",
                code="already_breaking",
                details={"article_id": article_id},
            )
        pending = await db.scalar(
            select(BreakingNewsRequest.id).where(
                BreakingNewsRequest.article_id == article_id,
                BreakingNewsRequest.status == BreakingNewsRequestStatus.PENDING,
            )
        )
        if pending is not None:
            raise ConflictError(
                "A breaking news request is already pending for this article",
                code="breaking_news_request_pending",
                details={"breaking_news_request_id": pending},
            )

        now = utcnow()
        request = BreakingNewsRequest(
            article_id=article_id,
            status=BreakingNewsRequestStatus.PENDING,
            reason=reason,
            requester_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        db.add(request)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError(
                "A breaking news request is already pending for this article",
                code="breaking_news_request_pending",
            ) from exc
        article.breaking_news_requested_at = now
        article.breaking_news_requested_by_id = actor.user_id

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.BREAKING_NEWS_REQUESTED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.BREAKING_NEWS_REQUESTED,
                actor=actor,
                resource_id=article_id,
                details={"breaking_news_request_id": request.id, "reason": reason},
            ),
            notifications=[
                notification_plan(
                    NotificationType.BREAKING_NEWS_REQUESTED,
                    title=f'Breaking news requested for "{article.title}"',
                    message=reason,
                    article_id=article_id,
                    from_user_id=actor.user_id,
                    recipient_ids=[article.author_id],
                    include_privileged=True,
                    metadata={"breaking_news_request_id": request.id},
                )
            ],
        )
        return request, [event]

    async def approve_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> tuple[BreakingNewsRequest, list[OutboxEvent]]:
        require_capability(actor, Capability.SET_BREAKING_NEWS)
        request, article = await self._lock_request(db, request_id)

        now = utcnow()
        article.is_breaking = True
        article.updated_at = now
        self._close(request, actor, BreakingNewsRequestStatus.APPROVED, review_comment, now)
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.BREAKING_NEWS_APPROVED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.BREAKING_NEWS_APPROVED,
                actor=actor,
                resource_id=article.id,
                target_user_id=request.requester_id,
                details={
                    "breaking_news_request_id": request.id,
                    "before": {"is_breaking": False},
                    "after": {"is_breaking": True},
                    "comment": review_comment,
                },
            ),
            notifications=[
                notification_plan(
                    NotificationType.BREAKING_NEWS_APPROVED,
                    title=f'"{article.title}" is now breaking news',
                    message=review_comment,
                    article_id=article.id,
                    from_user_id=actor.user_id,
                    recipient_ids=[request.requester_id, article.author_id],
                    metadata={"breaking_news_request_id": request.id},
                )
            ],
        )
        return request, [event]

    async def reject_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> tuple[BreakingNewsRequest, list[OutboxEvent]]:
        require_capability(actor, Capability.SET_BREAKING_NEWS)
        request, article = await self._lock_request(db, request_id)

        self._close(request, actor, BreakingNewsRequestStatus.REJECTED, review_comment, utcnow())
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.BREAKING_NEWS_REJECTED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.BREAKING_NEWS_REJECTED,
                actor=actor,
                resource_id=article.id,
                target_user_id=request.requester_id,
                details={"breaking_news_request_id": request.id, "comment": review_comment},
            ),
            notifications=[
                notification_plan(
                    NotificationType.BREAKING_NEWS_REJECTED,
                    title=f'Breaking news request declined for "{article.title}"',
                    message=review_comment,
                    article_id=article.id,
                    from_user_id=actor.user_id,
                    recipient_ids=[request.requester_id, article.author_id],
                    metadata={"breaking_news_request_id": request.id},
                )
            ],
        )
        return request, [event]

    async def clear_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        article_id: int,
    ) -> tuple[Article, list[OutboxEvent]]:
        require_capability(actor, Capability.SET_BREAKING_NEWS)
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        if not article.is_breaking:
            return article, []

        article.is_breaking = False
        article.updated_at = utcnow()
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.ARTICLE_BREAKING_UNSET,
            audit=audit_service.build_entry(
                event_type=AuditEventType.ARTICLE_BREAKING_UNSET,
                actor=actor,
                resource_id=article_id,
                details={"before": {"is_breaking": True}, "after": {"is_breaking": False}},
            ),
        )
        return article, [event]

    @staticmethod
    def _close(request: BreakingNewsRequest, actor: ActorContext, status, comment: str | None, now) -> None:
        request.status = status
        request.reviewed_by_id = actor.user_id
        request.review_comment = comment
        request.reviewed_at = now
        request.updated_at = now


def serialize_breaking_news_request(request: BreakingNewsRequest) -> dict[str, Any]:
    return {
        "id": request.id,
        "article_id": request.article_id,
        "status": request.status.value,
        "reason": request.reason,
        "requester_id": request.requester_id,
        "reviewed_by_id": request.reviewed_by_id,
        "review_comment": request.review_comment,
        "reviewed_at": request.reviewed_at.isoformat() if request.reviewed_at else None,
        "created_at": request.created_at.isoformat() if request.created_at else None,
    }


breaking_news_service = BreakingNewsService()

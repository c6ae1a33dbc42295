"""
Newsroom - Workflow orchestrator.

Single entry point for every editorial action. A mutating call resolves the
actor, locks the article, checks the state edge and the capability rule,
mutates, writes its outbox event, commits, and only then hands the event to
the side-effect coordinator. Denied attempts are audited in a separate
transaction because the refused one is rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.config import get_settings
from newsroom.core.context import ActorContext
from newsroom.core.database import utcnow
from newsroom.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    WorkflowError,
)
from newsroom.core.logging import get_logger
from newsroom.domain.article.state_machine import (
    ACTION_AUDIT_EVENTS,
    ACTION_NOTIFICATIONS,
    WorkflowAction,
    apply_status_side_effects,
    can_transition,
    success_message,
    target_status,
)
from newsroom.domain.capabilities import (
    Capability,
    can_access_resource,
    can_perform_workflow_action,
    can_set_features,
    permission_summary,
    require_actor,
    require_capability,
)
from newsroom.models import (
    Article,
    ArticleStatus,
    AuditEventType,
    BreakingNewsRequest,
    BreakingNewsRequestStatus,
    OutboxEvent,
    RevisionRequest,
    RevisionRequestStatus,
    UserRole,
)
from newsroom.repositories.article_repository import article_repository
from newsroom.services.audit_service import (
    ARTICLE_RESOURCE,
    BREAKING_NEWS_REQUEST_RESOURCE,
    NOTIFICATION_RESOURCE,
    REVISION_REQUEST_RESOURCE,
    audit_service,
    serialize_audit_entry,
)
from newsroom.services.breaking_news_service import breaking_news_service
from newsroom.services.notification_service import notification_service, serialize_notification
from newsroom.services.revision_service import revision_service
from newsroom.services.side_effects import (
    SideEffectCoordinator,
    enqueue_side_effects,
    notification_plan,
    side_effect_coordinator,
)
from newsroom.services.state_transition_service import state_transition_service

logger = get_logger("services.workflow")
settings = get_settings()

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}

Mutation = Callable[[ActorContext], Awaitable[tuple[Any, list[OutboxEvent]]]]


@dataclass(slots=True)
class WorkflowActionResult:
    article: Article
    message: str
    success: bool = True


@dataclass(slots=True)
class BulkWorkflowResult:
    processed_count: int = 0
    failed_count: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Processed {self.processed_count} articles successfully, {self.failed_count} failed"


@dataclass(slots=True)
class ReviewQueuePage:
    articles: list[Article]
    total_count: int
    has_more: bool


def _is_conflict(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, OperationalError):
        return True
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in _CONFLICT_SQLSTATES


class WorkflowService:
    def __init__(self, coordinator: Optional[SideEffectCoordinator] = None) -> None:
        self.coordinator = coordinator or side_effect_coordinator

    # ── Execution envelope ──

    async def _authenticate(
        self,
        actor: ActorContext | None,
        *,
        operation: str,
        resource_id: int | None,
        resource_type: str | None = ARTICLE_RESOURCE,
    ) -> ActorContext:
        try:
            return require_actor(actor)
        except AuthenticationError as exc:
            await self.coordinator.record_security_event(
                actor,
                AuditEventType.UNAUTHORIZED_ACCESS_ATTEMPT,
                operation=operation,
                resource_id=resource_id,
                resource_type=resource_type,
                error_message=exc.message,
            )
            raise

    async def _deny(
        self,
        actor: ActorContext,
        exc: AuthorizationError,
        *,
        operation: str,
        resource_id: int | None,
        resource_type: str | None,
    ) -> None:
        logger.warning(
            "workflow_permission_denied",
            operation=operation,
            actor_id=actor.user_id,
            role=actor.role.value,
            resource_id=resource_id,
            resource_type=resource_type,
        )
        await self.coordinator.record_security_event(
            actor,
            AuditEventType.PERMISSION_DENIED,
            operation=operation,
            resource_id=resource_id,
            resource_type=resource_type,
            error_message=exc.message,
            details={"reason": exc.details} if exc.details else None,
        )

    async def _mutate(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        operation: str,
        resource_id: int | None,
        mutation: Mutation,
        resource_type: str | None = ARTICLE_RESOURCE,
    ) -> Any:
        actor = await self._authenticate(
            actor, operation=operation, resource_id=resource_id, resource_type=resource_type
        )
        try:
            result, events = await mutation(actor)
            event_ids = [event.id for event in events]
            await db.commit()
        except AuthorizationError as exc:
            await db.rollback()
            await self._deny(actor, exc, operation=operation, resource_id=resource_id, resource_type=resource_type)
            raise
        except WorkflowError:
            await db.rollback()
            raise
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("workflow_integrity_conflict", operation=operation, resource_id=resource_id)
            raise ConflictError("The change conflicts with existing data", code="integrity_conflict") from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            if _is_conflict(exc):
                logger.warning("workflow_serialization_conflict", operation=operation, resource_id=resource_id)
                raise ConflictError(
                    "The article is being updated by another operation. Retry.",
                    code="transition_conflict",
                ) from exc
            logger.error(
                "workflow_persistence_failed",
                operation=operation,
                resource_id=resource_id,
                error=str(exc.__class__.__name__),
            )
            raise PersistenceError() from exc

        if isinstance(result, Article):
            await db.refresh(result)
        logger.info(
            "workflow_action_committed",
            operation=operation,
            actor_id=actor.user_id,
            resource_id=resource_id,
            events=len(event_ids),
        )
        await self.coordinator.dispatch_after_commit(event_ids)
        return result

    async def _read(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        operation: str,
        resource_id: int | None,
        reader: Callable[[ActorContext], Awaitable[Any]],
        resource_type: str | None = ARTICLE_RESOURCE,
    ) -> Any:
        actor = await self._authenticate(
            actor, operation=operation, resource_id=resource_id, resource_type=resource_type
        )
        try:
            return await reader(actor)
        except AuthorizationError as exc:
            await self._deny(actor, exc, operation=operation, resource_id=resource_id, resource_type=resource_type)
            raise
        except SQLAlchemyError as exc:
            logger.error("workflow_read_failed", operation=operation, error=str(exc.__class__.__name__))
            raise PersistenceError() from exc

    # ── Lifecycle ──

    async def perform_workflow_action(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
        action: WorkflowAction | str,
        reason: str | None = None,
        notify_owner: bool = True,
    ) -> WorkflowActionResult:
        await self._authenticate(actor, operation="workflow.action", resource_id=article_id)
        try:
            action = WorkflowAction(action)
        except ValueError as exc:
            raise ValidationError("Unknown workflow action", details={"action": str(action)}) from exc

        async def mutation(current_actor: ActorContext):
            article = await state_transition_service.lock_article(db=db, article_id=article_id)
            current = article.status
            target = target_status(action)
            state_transition_service.assert_transition(
                current=current,
                target=target,
                entity=f"article:{article_id}",
            )
            is_owner = article.is_owned_by(current_actor.user_id)
            if not can_perform_workflow_action(current_actor.role, current, target, is_owner):
                raise AuthorizationError(
                    f"Permission denied: cannot {action.value} an article in {current.value} status",
                    details={"action": action.value, "from_state": current.value, "to_state": target.value},
                )

            previous_published_at = article.published_at
            apply_status_side_effects(article, target, utcnow())
            await db.flush()

            notifications = []
            if notify_owner:
                notifications.append(
                    notification_plan(
                        ACTION_NOTIFICATIONS[action],
                        title=success_message(action, article.title),
                        message=reason,
                        article_id=article_id,
                        from_user_id=current_actor.user_id,
                        recipient_ids=[article.author_id],
                        include_privileged=action == WorkflowAction.SUBMIT_FOR_REVIEW,
                        metadata={"action": action.value, "from_state": current.value, "to_state": target.value},
                    )
                )
            event = await enqueue_side_effects(
                db,
                event_type=ACTION_AUDIT_EVENTS[action],
                audit=audit_service.build_entry(
                    event_type=ACTION_AUDIT_EVENTS[action],
                    actor=current_actor,
                    resource_id=article_id,
                    target_user_id=article.author_id,
                    details={
                        "action": action.value,
                        "from_state": current.value,
                        "to_state": target.value,
                        "reason": reason,
                        "before": {"published_at": _iso(previous_published_at)},
                        "after": {"published_at": _iso(article.published_at)},
                    },
                ),
                notifications=notifications,
            )
            return article, [event]

        article = await self._mutate(
            db,
            actor,
            operation=f"workflow.{action.value.lower()}",
            resource_id=article_id,
            mutation=mutation,
        )
        return WorkflowActionResult(article=article, message=success_message(action, article.title))

    async def perform_bulk_workflow_action(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_ids: list[int],
        action: WorkflowAction | str,
        reason: str | None = None,
        notify_owners: bool = True,
    ) -> BulkWorkflowResult:
        """Each article gets its own transaction; one failure never stops the batch."""
        await self._authenticate(actor, operation="workflow.bulk", resource_id=None, resource_type=None)
        if not article_ids:
            raise ValidationError("article_ids must not be empty", code="empty_bulk_request")

        outcome = BulkWorkflowResult()
        for article_id in article_ids:
            try:
                result = await self.perform_workflow_action(
                    db,
                    actor,
                    article_id=article_id,
                    action=action,
                    reason=reason,
                    notify_owner=notify_owners,
                )
            except WorkflowError as exc:
                outcome.failed_count += 1
                outcome.results.append(
                    {"article_id": article_id, "success": False, "message": exc.message, "code": exc.code}
                )
                continue
            outcome.processed_count += 1
            outcome.results.append({"article_id": article_id, "success": True, "message": result.message})

        logger.info(
            "workflow_bulk_completed",
            action=str(getattr(action, "value", action)),
            processed=outcome.processed_count,
            failed=outcome.failed_count,
        )
        return outcome

    async def set_article_features(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
        is_featured: bool | None = None,
        is_editors_pick: bool | None = None,
    ) -> Article:
        await self._authenticate(actor, operation="article.set_features", resource_id=article_id)
        if is_featured is None and is_editors_pick is None:
            raise ValidationError("Nothing to update", code="empty_feature_update")

        async def mutation(current_actor: ActorContext):
            if not can_set_features(current_actor.role):
                raise AuthorizationError(
                    "Permission denied: cannot change article features",
                    details={"article_id": article_id},
                )
            article = await state_transition_service.lock_article(db=db, article_id=article_id)
            now = utcnow()
            events = []
            flag_events = (
                ("is_featured", is_featured, AuditEventType.ARTICLE_FEATURED, AuditEventType.ARTICLE_UNFEATURED),
                (
                    "is_editors_pick",
                    is_editors_pick,
                    AuditEventType.ARTICLE_EDITORS_PICK_SET,
                    AuditEventType.ARTICLE_EDITORS_PICK_UNSET,
                ),
            )
            for name, value, on_event, off_event in flag_events:
                if value is None or bool(getattr(article, name)) == value:
                    continue
                setattr(article, name, value)
                if name == "is_featured":
                    article.pinned_at = now if value else None
                event_type = on_event if value else off_event
                events.append(
                    await enqueue_side_effects(
                        db,
                        event_type=event_type,
                        audit=audit_service.build_entry(
                            event_type=event_type,
                            actor=current_actor,
                            resource_id=article_id,
                            details={"before": {name: not value}, "after": {name: value}},
                        ),
                    )
                )
            if events:
                article.updated_at = now
                await db.flush()
            return article, events

        return await self._mutate(
            db, actor, operation="article.set_features", resource_id=article_id, mutation=mutation
        )

    # ── Revision requests ──

    async def request_revision(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
        proposed_changes: Any,
        note: str | None = None,
    ) -> RevisionRequest:
        return await self._mutate(
            db,
            actor,
            operation="revision.request",
            resource_id=article_id,
            mutation=lambda current_actor: revision_service.request_revision(
                db, current_actor, article_id=article_id, proposed_changes=proposed_changes, note=note
            ),
        )

    async def approve_revision(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> Article:
        return await self._mutate(
            db,
            actor,
            operation="revision.approve",
            resource_id=request_id,
            resource_type=REVISION_REQUEST_RESOURCE,
            mutation=lambda current_actor: revision_service.approve_revision(
                db, current_actor, request_id=request_id, review_comment=review_comment
            ),
        )

    async def reject_revision(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> RevisionRequest:
        return await self._mutate(
            db,
            actor,
            operation="revision.reject",
            resource_id=request_id,
            resource_type=REVISION_REQUEST_RESOURCE,
            mutation=lambda current_actor: revision_service.reject_revision(
                db, current_actor, request_id=request_id, review_comment=review_comment
            ),
        )

    async def consume_revision(self, db: AsyncSession, actor: ActorContext | None, *, request_id: int) -> RevisionRequest:
        return await self._mutate(
            db,
            actor,
            operation="revision.consume",
            resource_id=request_id,
            resource_type=REVISION_REQUEST_RESOURCE,
            mutation=lambda current_actor: revision_service.consume_revision(db, current_actor, request_id=request_id),
        )

    async def consume_edit_allowance(self, db: AsyncSession, actor: ActorContext | None, *, article_id: int) -> Article:
        return await self._mutate(
            db,
            actor,
            operation="article.consume_edit_allowance",
            resource_id=article_id,
            mutation=lambda current_actor: revision_service.consume_edit_allowance(
                db, current_actor, article_id=article_id
            ),
        )

    async def list_revision_requests(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
        status: RevisionRequestStatus | str | None = None,
    ) -> list[RevisionRequest]:
        await self._authenticate(actor, operation="revision.list_requests", resource_id=article_id)
        try:
            status_filter = RevisionRequestStatus(status) if status else None
        except ValueError as exc:
            raise ValidationError("Unknown revision request status", details={"status": str(status)}) from exc
        return await self._read(
            db,
            actor,
            operation="revision.list_requests",
            resource_id=article_id,
            reader=lambda current_actor: revision_service.list_requests(
                db, current_actor, article_id=article_id, status=status_filter
            ),
        )

    async def list_revisions(self, db: AsyncSession, actor: ActorContext | None, *, article_id: int) -> list:
        return await self._read(
            db,
            actor,
            operation="revision.list",
            resource_id=article_id,
            reader=lambda current_actor: revision_service.list_revisions(db, current_actor, article_id=article_id),
        )

    # ── Breaking news ──

    async def request_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
        reason: str | None = None,
    ) -> BreakingNewsRequest:
        return await self._mutate(
            db,
            actor,
            operation="breaking_news.request",
            resource_id=article_id,
            mutation=lambda current_actor: breaking_news_service.request_breaking_news(
                db, current_actor, article_id=article_id, reason=reason
            ),
        )

    async def approve_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> BreakingNewsRequest:
        return await self._mutate(
            db,
            actor,
            operation="breaking_news.approve",
            resource_id=request_id,
            resource_type=BREAKING_NEWS_REQUEST_RESOURCE,
            mutation=lambda current_actor: breaking_news_service.approve_breaking_news(
                db, current_actor, request_id=request_id, review_comment=review_comment
            ),
        )

    async def reject_breaking_news(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> BreakingNewsRequest:
        return await self._mutate(
            db,
            actor,
            operation="breaking_news.reject",
            resource_id=request_id,
            resource_type=BREAKING_NEWS_REQUEST_RESOURCE,
            mutation=lambda current_actor: breaking_news_service.reject_breaking_news(
                db, current_actor, request_id=request_id, review_comment=review_comment
            ),
        )

    async def clear_breaking_news(self, db: AsyncSession, actor: ActorContext | None, *, article_id: int) -> Article:
        return await self._mutate(
            db,
            actor,
            operation="breaking_news.clear",
            resource_id=article_id,
            mutation=lambda current_actor: breaking_news_service.clear_breaking_news(
                db, current_actor, article_id=article_id
            ),
        )

    # ── Reads ──

    async def get_review_queue(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        category_id: int | None = None,
        author_id: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> ReviewQueuePage:
        await self._authenticate(
            actor, operation="workflow.review_queue", resource_id=None, resource_type=None
        )
        page_size = settings.review_queue_default_limit if limit is None else limit
        if page_size < 1 or page_size > settings.review_queue_max_limit:
            raise ValidationError(
                f"limit must be between 1 and {settings.review_queue_max_limit}",
                details={"limit": limit},
            )
        if offset < 0:
            raise ValidationError("offset must not be negative", details={"offset": offset})

        async def reader(current_actor: ActorContext) -> ReviewQueuePage:
            require_capability(current_actor, Capability.REVIEW_ARTICLES)
            articles, total = await article_repository.review_queue(
                db,
                limit=page_size,
                offset=offset,
                category_id=category_id,
                author_id=author_id,
            )
            return ReviewQueuePage(articles=articles, total_count=total, has_more=offset + len(articles) < total)

        return await self._read(
            db, actor, operation="workflow.review_queue", resource_id=None, resource_type=None, reader=reader
        )

    async def get_available_actions(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
    ) -> list[WorkflowAction]:
        """Actions whose edge is legal from the current status and whose target the actor may reach."""

        async def reader(current_actor: ActorContext) -> list[WorkflowAction]:
            article = await article_repository.get_by_id(db, article_id)
            if not article:
                raise NotFoundError("Article not found", code="article_not_found")
            is_owner = article.is_owned_by(current_actor.user_id)
            return [
                action
                for action in WorkflowAction
                if can_transition(article.status, target_status(action))
                and can_perform_workflow_action(current_actor.role, article.status, target_status(action), is_owner)
            ]

        return await self._read(db, actor, operation="workflow.available_actions", resource_id=article_id, reader=reader)

    def get_permission_summary(self, role: UserRole | str) -> dict[str, Any]:
        try:
            return permission_summary(UserRole(role))
        except ValueError as exc:
            raise ValidationError("Unknown role", details={"role": str(role)}) from exc

    async def get_workflow_history(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        article_id: int,
    ) -> list[dict[str, Any]]:
        async def reader(current_actor: ActorContext) -> list[dict[str, Any]]:
            article = await article_repository.get_by_id(db, article_id)
            if not article:
                raise NotFoundError("Article not found", code="article_not_found")
            if not can_access_resource(current_actor, article.author_id, [Capability.REVIEW_ARTICLES]):
                raise AuthorizationError(
                    "Not allowed to view this article's history",
                    details={"article_id": article_id},
                )
            entries = await audit_service.article_history(db, article_id)
            return [serialize_audit_entry(entry) for entry in entries]

        return await self._read(db, actor, operation="workflow.history", resource_id=article_id, reader=reader)

    async def get_workflow_stats(self, db: AsyncSession, actor: ActorContext | None) -> dict[str, int]:
        async def reader(current_actor: ActorContext) -> dict[str, int]:
            require_capability(current_actor, Capability.REVIEW_ARTICLES)
            start_of_day = datetime.combine(utcnow().date(), time.min)
            pending_revisions = await db.scalar(
                select(func.count(RevisionRequest.id)).where(RevisionRequest.status == RevisionRequestStatus.PENDING)
            )
            pending_breaking = await db.scalar(
                select(func.count(BreakingNewsRequest.id)).where(
                    BreakingNewsRequest.status == BreakingNewsRequestStatus.PENDING
                )
            )
            return {
                "articles_in_review": await article_repository.count_by_status(db, ArticleStatus.REVIEW),
                "published_today": await article_repository.count_published_since(db, start_of_day),
                "approved_today": await audit_service.count_events(
                    db, AuditEventType.ARTICLE_APPROVED, since=start_of_day
                ),
                "rejected_today": await audit_service.count_events(
                    db, AuditEventType.ARTICLE_REJECTED, since=start_of_day
                ),
                "pending_revision_requests": int(pending_revisions or 0),
                "pending_breaking_news_requests": int(pending_breaking or 0),
            }

        return await self._read(
            db, actor, operation="workflow.stats", resource_id=None, resource_type=None, reader=reader
        )

    async def get_audit_logs(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        event_type: str | None = None,
        user_id: int | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        success: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict[str, Any]:
        async def reader(current_actor: ActorContext) -> dict[str, Any]:
            require_capability(current_actor, Capability.VIEW_AUDIT_LOGS)
            entries, total = await audit_service.query(
                db,
                event_type=event_type,
                user_id=user_id,
                resource_type=resource_type,
                resource_id=resource_id,
                success=success,
                limit=max(1, min(limit, 200)),
                offset=max(0, offset),
            )
            return {"items": [serialize_audit_entry(entry) for entry in entries], "total": total}

        return await self._read(
            db, actor, operation="audit.list", resource_id=None, resource_type=None, reader=reader
        )

    async def list_notifications(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> dict[str, Any]:
        async def reader(current_actor: ActorContext) -> dict[str, Any]:
            rows, unread = await notification_service.list_for_user(
                db,
                user_id=current_actor.user_id,
                unread_only=unread_only,
                limit=max(1, min(limit, 200)),
            )
            return {"items": [serialize_notification(row) for row in rows], "unread_count": unread}

        return await self._read(
            db, actor, operation="notification.list", resource_id=None, resource_type=None, reader=reader
        )

    async def mark_notification_read(
        self,
        db: AsyncSession,
        actor: ActorContext | None,
        *,
        notification_id: int,
    ) -> dict[str, Any]:
        async def mutation(current_actor: ActorContext):
            row = await notification_service.mark_read(
                db, notification_id=notification_id, user_id=current_actor.user_id
            )
            await db.flush()
            return serialize_notification(row), []

        return await self._mutate(
            db,
            actor,
            operation="notification.mark_read",
            resource_id=notification_id,
            resource_type=NOTIFICATION_RESOURCE,
            mutation=mutation,
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_article(article: Article) -> dict[str, Any]:
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "topic": article.topic,
        "author_id": article.author_id,
        "author_name": article.author_name,
        "category_id": article.category_id,
        "status": article.status.value,
        "published_at": _iso(article.published_at),
        "is_featured": bool(article.is_featured),
        "is_editors_pick": bool(article.is_editors_pick),
        "is_breaking": bool(article.is_breaking),
        "revision_status": article.revision_status.value,
        "breaking_news_request_status": article.breaking_news_request_status.value,
        "author_edit_allowance": article.author_edit_allowance or 0,
        "created_at": _iso(article.created_at),
        "updated_at": _iso(article.updated_at),
    }


workflow_service = WorkflowService()

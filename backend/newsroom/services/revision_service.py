"""
Newsroom - Revision requests.

A revision request carries a partial patch for an article under review (or
already published). Approval applies the present keys, writes a write-once
``Revision`` and grants the owner one further direct edit. Every method runs
inside the caller's transaction and returns the outbox events it wrote;
committing is the orchestrator's job.
"""

from __future__ import annotations

from typing import Any

import pydantic
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.context import ActorContext
from newsroom.core.database import utcnow
from newsroom.core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from newsroom.domain.capabilities import Capability, can_access_resource, require_capability
from newsroom.models import (
    Article,
    ArticleStatus,
    AuditEventType,
    NotificationType,
    OutboxEvent,
    PATCHABLE_ARTICLE_FIELDS,
    Revision,
    RevisionRequest,
    RevisionRequestStatus,
)
from newsroom.repositories.article_repository import article_repository
from newsroom.schemas.workflow import RevisionPatch
from newsroom.services.audit_service import audit_service
from newsroom.services.side_effects import enqueue_side_effects, notification_plan
from newsroom.services.state_transition_service import state_transition_service

_APPROVABLE_ARTICLE_STATES = (ArticleStatus.REVIEW, ArticleStatus.PUBLISHED)


def parse_revision_patch(proposed_changes: Any) -> dict[str, Any]:
    if not isinstance(proposed_changes, dict):
        raise ValidationError("proposed_changes must be an object", code="invalid_revision_patch")
    try:
        patch = RevisionPatch.model_validate(proposed_changes)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid revision patch",
            code="invalid_revision_patch",
            details=[
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ],
        ) from exc
    changes = patch.present_changes()
    if not changes:
        raise ValidationError("A revision request must change at least one field", code="empty_revision_patch")
    return changes


def _snapshot(article: Article, fields: list[str]) -> dict[str, Any]:
    snapshot: dict[str, Any] = {}
    for name in fields:
        if name == "category_slug":
            snapshot["category_id"] = article.category_id
        elif name != "tag_slugs":
            snapshot[name] = getattr(article, name)
    return snapshot


class RevisionService:
    async def _pending_request(self, db: AsyncSession, article_id: int) -> RevisionRequest | None:
        row = await db.execute(
            select(RevisionRequest).where(
                RevisionRequest.article_id == article_id,
                RevisionRequest.status == RevisionRequestStatus.PENDING,
            )
        )
        return row.scalar_one_or_none()

    async def _lock_request(self, db: AsyncSession, request_id: int) -> tuple[RevisionRequest, Article]:
        """Lock the article first, then the request, in the same order as creation."""
        article_id = await db.scalar(select(RevisionRequest.article_id).where(RevisionRequest.id == request_id))
        if article_id is None:
            raise NotFoundError("Revision request not found", code="revision_request_not_found")
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        row = await db.execute(
            select(RevisionRequest)
            .where(RevisionRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return row.scalar_one(), article

    @staticmethod
    def _require_pending(request: RevisionRequest, operation: str) -> None:
        if request.status != RevisionRequestStatus.PENDING:
            raise InvalidTransitionError(
                f"Only pending revision requests can be {operation}",
                details={
                    "entity": f"revision_request:{request.id}",
                    "from_state": request.status.value,
                    "allowed_from": [RevisionRequestStatus.PENDING.value],
                },
            )

    async def request_revision(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        article_id: int,
        proposed_changes: Any,
        note: str | None = None,
    ) -> tuple[RevisionRequest, list[OutboxEvent]]:
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        if not can_access_resource(actor, article.author_id, [Capability.UPDATE_ANY_ARTICLE]):
            raise AuthorizationError(
                "Only the article owner or an editor can request a revision",
                details={"article_id": article_id},
            )
        if article.status != ArticleStatus.REVIEW:
            raise InvalidTransitionError(
                "Revisions can only be requested while the article is in review",
                details={"entity": f"article:{article_id}", "from_state": article.status.value},
            )

        changes = parse_revision_patch(proposed_changes)
        pending = await self._pending_request(db, article_id)
        if pending:
            raise ConflictError(
                "A revision request is already pending for this article",
                code="revision_request_pending",
                details={"revision_request_id": pending.id},
            )

        now = utcnow()
        request = RevisionRequest(
            article_id=article_id,
            status=RevisionRequestStatus.PENDING,
            proposed_changes=changes,
            note=note,
            requester_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        db.add(request)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError(
                "A revision request is already pending for this article",
                code="revision_request_pending",
            ) from exc
        article.revision_requested_at = now

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.REVISION_REQUESTED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.REVISION_REQUESTED,
                actor=actor,
                resource_id=article_id,
                target_user_id=article.author_id,
                details={"revision_request_id": request.id, "fields": sorted(changes), "note": note},
            ),
            notifications=[
                notification_plan(
                    NotificationType.REVISION_REQUESTED,
                    title=f'Revision requested for "{article.title}"',
                    message=note,
                    article_id=article_id,
                    from_user_id=actor.user_id,
                    recipient_ids=[article.author_id],
                    include_privileged=True,
                    metadata={"revision_request_id": request.id, "fields": sorted(changes)},
                )
            ],
        )
        return request, [event]

    async def approve_revision(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> tuple[Article, list[OutboxEvent]]:
        require_capability(actor, Capability.REVIEW_ARTICLES, Capability.APPROVE_ARTICLES)
        request, article = await self._lock_request(db, request_id)
        self._require_pending(request, "approved")
        if article.status not in _APPROVABLE_ARTICLE_STATES:
            raise InvalidTransitionError(
                "Revisions can only be applied to articles in review or published",
                details={"entity": f"article:{article.id}", "from_state": article.status.value},
            )

        changes = parse_revision_patch(request.proposed_changes or {})
        fields = sorted(changes)
        before = _snapshot(article, fields)
        await self._apply_changes(db, article, changes)
        after = _snapshot(article, fields)

        now = utcnow()
        article.revision_requested_at = None
        article.author_edit_allowance = (article.author_edit_allowance or 0) + 1
        article.updated_at = now

        revision = Revision(
            article_id=article.id,
            revision_request_id=request.id,
            applied_by_id=actor.user_id,
            changes=changes,
            summary=f"Updated fields: {', '.join(fields)}",
            applied_at=now,
        )
        db.add(revision)

        request.status = RevisionRequestStatus.APPROVED
        request.reviewed_by_id = actor.user_id
        request.review_comment = review_comment
        request.reviewed_at = now
        request.updated_at = now
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.REVISION_APPROVED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.REVISION_APPROVED,
                actor=actor,
                resource_id=article.id,
                target_user_id=request.requester_id,
                details={
                    "revision_request_id": request.id,
                    "revision_id": revision.id,
                    "fields": fields,
                    "before": before,
                    "after": after,
                    "comment": review_comment,
                },
            ),
            notifications=[
                notification_plan(
                    NotificationType.REVISION_APPROVED,
                    title=f'Revision approved for "{article.title}"',
                    message=review_comment,
                    article_id=article.id,
                    from_user_id=actor.user_id,
                    recipient_ids=[request.requester_id, article.author_id],
                    metadata={"revision_request_id": request.id, "revision_id": revision.id},
                )
            ],
        )
        return article, [event]

    async def _apply_changes(self, db: AsyncSession, article: Article, changes: dict[str, Any]) -> None:
        """Write only the keys present in ``changes``."""
        if "slug" in changes and changes["slug"] != article.slug:
            if await article_repository.slug_taken(db, changes["slug"], exclude_id=article.id):
                raise ConflictError(
                    "Another article already uses this slug",
                    code="slug_conflict",
                    details={"slug": changes["slug"]},
                )

        for name, value in changes.items():
            if name == "category_slug":
                if value is None:
                    article.category_id = None
                    continue
                category = await article_repository.category_by_slug(db, value)
                if not category:
                    raise ValidationError(
                        "Unknown category",
                        code="unknown_category",
                        details={"category_slug": value},
                    )
                article.category_id = category.id
            elif name == "tag_slugs":
                await article_repository.replace_tags(db, article.id, value)
            elif name in PATCHABLE_ARTICLE_FIELDS:
                setattr(article, name, value)
            else:
                raise ValidationError(
                    "Field cannot be changed by a revision",
                    code="invalid_revision_patch",
                    details={"field": name},
                )

    async def reject_revision(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        request_id: int,
        review_comment: str | None = None,
    ) -> tuple[RevisionRequest, list[OutboxEvent]]:
        require_capability(actor, Capability.REJECT_ARTICLES)
        request, article = await self._lock_request(db, request_id)
        self._require_pending(request, "rejected")

        now = utcnow()
        request.status = RevisionRequestStatus.REJECTED
        request.reviewed_by_id = actor.user_id
        request.review_comment = review_comment
        request.reviewed_at = now
        request.updated_at = now
        article.revision_requested_at = None
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.REVISION_REJECTED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.REVISION_REJECTED,
                actor=actor,
                resource_id=article.id,
                target_user_id=request.requester_id,
                details={"revision_request_id": request.id, "comment": review_comment},
            ),
            notifications=[
                notification_plan(
                    NotificationType.REVISION_REJECTED,
                    title=f'Revision rejected for "{article.title}"',
                    message=review_comment,
                    article_id=article.id,
                    from_user_id=actor.user_id,
                    recipient_ids=[request.requester_id, article.author_id],
                    metadata={"revision_request_id": request.id},
                )
            ],
        )
        return request, [event]

    async def consume_revision(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        request_id: int,
    ) -> tuple[RevisionRequest, list[OutboxEvent]]:
        request, article = await self._lock_request(db, request_id)
        allowed = actor.user_id == request.requester_id or can_access_resource(
            actor, article.author_id, [Capability.REVIEW_ARTICLES]
        )
        if not allowed:
            raise AuthorizationError(
                "Only the requester, the article owner or a reviewer can acknowledge a revision",
                details={"revision_request_id": request_id},
            )
        if request.status == RevisionRequestStatus.PENDING:
            raise InvalidTransitionError(
                "A pending revision request cannot be consumed",
                details={
                    "entity": f"revision_request:{request.id}",
                    "from_state": request.status.value,
                    "allowed_from": [RevisionRequestStatus.APPROVED.value, RevisionRequestStatus.REJECTED.value],
                },
            )
        if request.consumed_at is not None:
            return request, []

        now = utcnow()
        request.consumed_at = now
        request.consumed_by_id = actor.user_id
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.REVISION_CONSUMED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.REVISION_CONSUMED,
                actor=actor,
                resource_id=article.id,
                details={"revision_request_id": request.id, "outcome": request.status.value},
            ),
            notifications=[
                notification_plan(
                    NotificationType.REVISION_CONSUMED,
                    title=f'Revision outcome acknowledged for "{article.title}"',
                    article_id=article.id,
                    from_user_id=actor.user_id,
                    recipient_ids=[request.reviewed_by_id],
                    metadata={"revision_request_id": request.id, "outcome": request.status.value},
                )
            ],
        )
        return request, [event]

    async def consume_edit_allowance(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        article_id: int,
    ) -> tuple[Article, list[OutboxEvent]]:
        """Spend the one further edit granted by an approved revision."""
        article = await state_transition_service.lock_article(db=db, article_id=article_id)
        if not article.is_owned_by(actor.user_id):
            raise AuthorizationError(
                "Only the article owner can spend the edit allowance",
                details={"article_id": article_id},
            )
        if (article.author_edit_allowance or 0) <= 0:
            raise ConflictError(
                "No edit allowance left for this article",
                code="edit_allowance_exhausted",
                details={"article_id": article_id},
            )

        article.author_edit_allowance -= 1
        article.updated_at = utcnow()
        await db.flush()

        event = await enqueue_side_effects(
            db,
            event_type=AuditEventType.EDIT_ALLOWANCE_CONSUMED,
            audit=audit_service.build_entry(
                event_type=AuditEventType.EDIT_ALLOWANCE_CONSUMED,
                actor=actor,
                resource_id=article_id,
                details={"remaining": article.author_edit_allowance},
            ),
        )
        return article, [event]

    async def list_requests(
        self,
        db: AsyncSession,
        actor: ActorContext,
        *,
        article_id: int,
        status: RevisionRequestStatus | None = None,
    ) -> list[RevisionRequest]:
        await self._require_reader(db, actor, article_id)
        stmt = select(RevisionRequest).where(RevisionRequest.article_id == article_id)
        if status:
            stmt = stmt.where(RevisionRequest.status == status)
        rows = await db.execute(stmt.order_by(RevisionRequest.created_at.desc(), RevisionRequest.id.desc()))
        return list(rows.scalars().all())

    async def list_revisions(self, db: AsyncSession, actor: ActorContext, *, article_id: int) -> list[Revision]:
        await self._require_reader(db, actor, article_id)
        rows = await db.execute(
            select(Revision)
            .where(Revision.article_id == article_id)
            .order_by(Revision.applied_at.desc(), Revision.id.desc())
        )
        return list(rows.scalars().all())

    async def _require_reader(self, db: AsyncSession, actor: ActorContext, article_id: int) -> Article:
        article = await article_repository.get_by_id(db, article_id)
        if not article:
            raise NotFoundError("Article not found", code="article_not_found")
        if not can_access_resource(actor, article.author_id, [Capability.REVIEW_ARTICLES]):
            raise AuthorizationError("Not allowed to view this article's revisions", details={"article_id": article_id})
        return article


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_revision_request(request: RevisionRequest) -> dict[str, Any]:
    return {
        "id": request.id,
        "article_id": request.article_id,
        "status": request.status.value,
        "proposed_changes": request.proposed_changes or {},
        "note": request.note,
        "requester_id": request.requester_id,
        "reviewed_by_id": request.reviewed_by_id,
        "review_comment": request.review_comment,
        "reviewed_at": _iso(request.reviewed_at),
        "consumed_at": _iso(request.consumed_at),
        "consumed_by_id": request.consumed_by_id,
        "created_at": _iso(request.created_at),
        "updated_at": _iso(request.updated_at),
    }


def serialize_revision(revision: Revision) -> dict[str, Any]:
    return {
        "id": revision.id,
        "article_id": revision.article_id,
        "revision_request_id": revision.revision_request_id,
        "applied_by_id": revision.applied_by_id,
        "changes": revision.changes or {},
        "summary": revision.summary,
        "applied_at": _iso(revision.applied_at),
    }


revision_service = RevisionService()

"""
Newsroom - Workflow side effects.

Mutations write an ``OutboxEvent`` (audit entry + notification plan) in the
same transaction as the state change. After the commit, the coordinator turns
each event into an ``AuditLogEntry`` and ``Notification`` rows in its own
session and hands the stored notifications to the dispatcher. Nothing here
ever raises into the caller of a committed action.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.config import get_settings
from newsroom.core.context import ActorContext
from newsroom.core.database import async_session, utcnow
from newsroom.core.logging import get_logger
from newsroom.models import (
    AuditEventType,
    NotificationType,
    OutboxEvent,
    OutboxStatus,
    PRIVILEGED_ROLES,
    User,
)
from newsroom.services.audit_service import ARTICLE_RESOURCE, audit_service
from newsroom.services.notification_service import (
    NotificationDispatcher,
    WebhookNotificationDispatcher,
    notification_service,
    serialize_notification,
)

logger = get_logger("services.side_effects")
settings = get_settings()


def notification_plan(
    type: NotificationType,
    *,
    title: str,
    from_user_id: Optional[int],
    recipient_ids: list[Optional[int]] | None = None,
    include_privileged: bool = False,
    message: Optional[str] = None,
    article_id: Optional[int] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Recipients are resolved when the event is processed, not when it is written."""
    return {
        "type": NotificationType(type).value,
        "title": title,
        "message": message,
        "article_id": article_id,
        "from_user_id": from_user_id,
        "recipient_ids": [uid for uid in (recipient_ids or []) if uid is not None],
        "include_privileged": include_privileged,
        "metadata": metadata or {},
    }


async def enqueue_side_effects(
    db: AsyncSession,
    *,
    event_type: AuditEventType | str,
    audit: dict[str, Any],
    notifications: list[dict[str, Any]] | None = None,
) -> OutboxEvent:
    event = OutboxEvent(
        event_type=getattr(event_type, "value", event_type),
        payload={"audit": audit, "notifications": notifications or []},
        status=OutboxStatus.PENDING,
        attempts=0,
    )
    db.add(event)
    await db.flush()
    return event


class SideEffectCoordinator:
    def __init__(
        self,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.session_factory = session_factory or async_session
        self.dispatcher = dispatcher or WebhookNotificationDispatcher()
        self.timeout_seconds = settings.side_effect_timeout_seconds if timeout_seconds is None else timeout_seconds

    async def dispatch_after_commit(self, event_ids: list[int]) -> None:
        """Process freshly committed events. Bounded by the timeout; never raises."""
        if not event_ids:
            return
        try:
            await asyncio.wait_for(self._process_all(event_ids), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "side_effects_timeout",
                event_ids=event_ids,
                timeout_seconds=self.timeout_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("side_effects_failed", event_ids=event_ids, error=str(exc))

    async def _process_all(self, event_ids: list[int]) -> None:
        for event_id in event_ids:
            await self.process(event_id)

    async def process(self, event_id: int) -> bool:
        async with self.session_factory() as db:
            event = await db.get(OutboxEvent, event_id)
            if event is None:
                logger.warning("outbox_event_missing", event_id=event_id)
                return False
            if event.status == OutboxStatus.PROCESSED:
                return True
            event_type = event.event_type
            try:
                created = await self._apply(db, event)
                event.status = OutboxStatus.PROCESSED
                event.attempts = (event.attempts or 0) + 1
                event.processed_at = utcnow()
                event.last_error = None
                await db.commit()
            except Exception as exc:  # noqa: BLE001
                await db.rollback()
                logger.error(
                    "outbox_event_failed",
                    event_id=event_id,
                    event_type=event_type,
                    error=str(exc.__class__.__name__),
                )
                await self._mark_failed(event_id, exc)
                return False
            batch = [serialize_notification(row) for row in created]

        if batch:
            try:
                await self.dispatcher.dispatch(batch)
            except Exception as exc:  # noqa: BLE001
                logger.error("notification_dispatch_failed", event_id=event_id, error=str(exc))
        return True

    async def _apply(self, db: AsyncSession, event: OutboxEvent) -> list:
        payload = event.payload or {}
        if payload.get("audit"):
            await audit_service.write_entry(db, payload["audit"])

        created = []
        for plan in payload.get("notifications") or []:
            for user_id in await self.resolve_recipients(db, plan):
                created.append(
                    await notification_service.create(
                        db,
                        type=NotificationType(plan["type"]),
                        to_user_id=user_id,
                        title=plan.get("title") or "",
                        message=plan.get("message"),
                        article_id=plan.get("article_id"),
                        from_user_id=plan.get("from_user_id"),
                        metadata=plan.get("metadata"),
                    )
                )
        return created

    async def resolve_recipients(self, db: AsyncSession, plan: dict[str, Any]) -> list[int]:
        """Explicit recipients, then active editors/admins when requested; never the actor."""
        candidates = [int(uid) for uid in plan.get("recipient_ids") or []]
        if plan.get("include_privileged"):
            rows = await db.execute(
                select(User.id)
                .where(User.role.in_(PRIVILEGED_ROLES), User.is_active.is_(True))
                .order_by(User.id.asc())
            )
            candidates.extend(rows.scalars().all())

        actor_id = plan.get("from_user_id")
        recipients: list[int] = []
        for user_id in candidates:
            if user_id == actor_id or user_id in recipients:
                continue
            recipients.append(user_id)
        return recipients

    async def _mark_failed(self, event_id: int, exc: Exception) -> None:
        try:
            async with self.session_factory() as db:
                await db.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.id == event_id)
                    .values(
                        status=OutboxStatus.FAILED,
                        attempts=OutboxEvent.attempts + 1,
                        last_error=f"{exc.__class__.__name__}: {exc}"[:2000],
                    )
                )
                await db.commit()
        except SQLAlchemyError as mark_exc:
            logger.error("outbox_mark_failed_error", event_id=event_id, error=str(mark_exc.__class__.__name__))

    async def record_security_event(
        self,
        actor: ActorContext | None,
        event_type: AuditEventType,
        *,
        operation: str,
        resource_id: str | int | None = None,
        resource_type: str | None = ARTICLE_RESOURCE,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Audit a refused attempt. The refused transaction was rolled back, so this gets its own."""
        entry = audit_service.build_entry(
            event_type=event_type,
            actor=actor,
            resource_id=resource_id,
            resource_type=resource_type,
            details={"operation": operation, **(details or {})},
            success=False,
            error_message=error_message,
        )

        async def _write() -> None:
            async with self.session_factory() as db:
                await audit_service.write_entry(db, entry)
                await db.commit()

        try:
            await asyncio.wait_for(_write(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("security_audit_timeout", operation=operation, event_type=entry["event_type"])
        except Exception as exc:  # noqa: BLE001
            logger.warning("security_audit_failed", operation=operation, error=str(exc))

    async def drain_pending(self, limit: Optional[int] = None) -> dict[str, int]:
        """Process PENDING and FAILED events, oldest first."""
        batch_size = max(1, limit or settings.outbox_drain_batch_size)
        async with self.session_factory() as db:
            rows = await db.execute(
                select(OutboxEvent.id)
                .where(OutboxEvent.status.in_([OutboxStatus.PENDING, OutboxStatus.FAILED]))
                .order_by(OutboxEvent.id.asc())
                .limit(batch_size)
            )
            event_ids = list(rows.scalars().all())

        processed = 0
        failed = 0
        for event_id in event_ids:
            if await self.process(event_id):
                processed += 1
            else:
                failed += 1
        logger.info("outbox_drained", selected=len(event_ids), processed=processed, failed=failed)
        return {"selected": len(event_ids), "processed": processed, "failed": failed}


side_effect_coordinator = SideEffectCoordinator()

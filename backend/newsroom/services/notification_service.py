"""
Newsroom - Notification Service.
In-app notification rows plus best-effort outbound dispatch (webhook).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.config import get_settings
from newsroom.core.database import utcnow
from newsroom.core.errors import AuthorizationError, NotFoundError
from newsroom.core.logging import get_logger
from newsroom.models import Notification, NotificationType

logger = get_logger("services.notification")
settings = get_settings()


class NotificationDispatcher:
    """Delivery channel for notifications that are already stored."""

    async def dispatch(self, notifications: list[dict[str, Any]]) -> None:
        raise NotImplementedError


class NullNotificationDispatcher(NotificationDispatcher):
    async def dispatch(self, notifications: list[dict[str, Any]]) -> None:
        return None


class WebhookNotificationDispatcher(NotificationDispatcher):
    """POST the batch as JSON to a webhook. Failures are logged, never raised."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.url = settings.notification_webhook_url if url is None else url
        self.timeout = settings.notification_webhook_timeout_seconds if timeout is None else timeout

    async def dispatch(self, notifications: list[dict[str, Any]]) -> None:
        if not notifications or not self.url:
            return
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(self.url, json={"notifications": notifications}, timeout=self.timeout)
                if resp.status_code >= 400:
                    logger.error("notification_webhook_error", status=resp.status_code, count=len(notifications))
                    return
                logger.info("notification_webhook_sent", count=len(notifications))
        except Exception as e:  # noqa: BLE001
            logger.error("notification_webhook_exception", error=str(e), count=len(notifications))


class NotificationService:
    async def create(
        self,
        db: AsyncSession,
        *,
        type: NotificationType,
        to_user_id: int,
        title: str,
        message: Optional[str] = None,
        article_id: Optional[int] = None,
        from_user_id: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Notification:
        row = Notification(
            type=NotificationType(type),
            to_user_id=to_user_id,
            title=title[:512],
            message=message,
            article_id=article_id,
            from_user_id=from_user_id,
            metadata_json=metadata or {},
            is_read=False,
        )
        db.add(row)
        await db.flush()
        return row

    async def list_for_user(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
    ) -> tuple[list[Notification], int]:
        conditions = [Notification.to_user_id == user_id]
        if unread_only:
            conditions.append(Notification.is_read.is_(False))
        unread = await db.scalar(
            select(func.count(Notification.id)).where(
                Notification.to_user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        result = await db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all()), int(unread or 0)

    async def mark_read(self, db: AsyncSession, *, notification_id: int, user_id: int) -> Notification:
        row = await db.get(Notification, notification_id)
        if not row:
            raise NotFoundError("Notification not found", code="notification_not_found")
        if row.to_user_id != user_id:
            raise AuthorizationError(
                "Only the recipient can mark a notification as read",
                details={"notification_id": notification_id},
            )
        if not row.is_read:
            row.is_read = True
            row.read_at = utcnow()
        return row


def serialize_notification(row: Notification) -> dict[str, Any]:
    return {
        "id": row.id,
        "type": getattr(row.type, "value", row.type),
        "title": row.title,
        "message": row.message,
        "article_id": row.article_id,
        "from_user_id": row.from_user_id,
        "to_user_id": row.to_user_id,
        "metadata": row.metadata_json or {},
        "is_read": bool(row.is_read),
        "read_at": row.read_at.isoformat() if row.read_at else None,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


notification_service = NotificationService()

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.context import ActorContext, anonymous_client_metadata
from newsroom.models import AuditEventType, AuditLogEntry

ARTICLE_RESOURCE = "article"
REVISION_REQUEST_RESOURCE = "revision_request"
BREAKING_NEWS_REQUEST_RESOURCE = "breaking_news_request"
NOTIFICATION_RESOURCE = "notification"


class AuditService:
    def build_entry(
        self,
        *,
        event_type: AuditEventType | str,
        actor: ActorContext | None,
        resource_id: str | int | None = None,
        resource_type: str | None = ARTICLE_RESOURCE,
        target_user_id: int | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> dict[str, Any]:
        """Plain-dict audit entry, stored in outbox payloads until it is written."""
        client = actor.client_metadata() if actor else anonymous_client_metadata()
        return {
            "event_type": getattr(event_type, "value", event_type),
            "user_id": actor.user_id if actor else None,
            "target_user_id": target_user_id,
            "resource_id": str(resource_id) if resource_id is not None else None,
            "resource_type": resource_type,
            "details": details or {},
            "ip_address": client.get("ip_address"),
            "user_agent": client.get("user_agent"),
            "request_id": client.get("request_id"),
            "success": success,
            "error_message": error_message,
        }

    async def write_entry(self, db: AsyncSession, entry: dict[str, Any]) -> AuditLogEntry:
        row = AuditLogEntry(**entry)
        db.add(row)
        await db.flush()
        return row

    async def article_history(self, db: AsyncSession, article_id: int) -> list[AuditLogEntry]:
        result = await db.execute(
            select(AuditLogEntry)
            .where(
                AuditLogEntry.resource_type == ARTICLE_RESOURCE,
                AuditLogEntry.resource_id == str(article_id),
                AuditLogEntry.success.is_(True),
            )
            .order_by(AuditLogEntry.created_at.asc(), AuditLogEntry.id.asc())
        )
        return list(result.scalars().all())

    async def query(
        self,
        db: AsyncSession,
        *,
        event_type: str | None = None,
        user_id: int | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        success: bool | None = None,
        since: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        conditions = []
        if event_type:
            conditions.append(AuditLogEntry.event_type == event_type)
        if user_id is not None:
            conditions.append(AuditLogEntry.user_id == user_id)
        if resource_type:
            conditions.append(AuditLogEntry.resource_type == resource_type)
        if resource_id:
            conditions.append(AuditLogEntry.resource_id == resource_id)
        if success is not None:
            conditions.append(AuditLogEntry.success.is_(success))
        if since is not None:
            conditions.append(AuditLogEntry.created_at >= since)

        total = await db.scalar(select(func.count(AuditLogEntry.id)).where(*conditions))
        result = await db.execute(
            select(AuditLogEntry)
            .where(*conditions)
            .order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)

    async def count_events(self, db: AsyncSession, event_type: AuditEventType, *, since: datetime) -> int:
        total = await db.scalar(
            select(func.count(AuditLogEntry.id)).where(
                AuditLogEntry.event_type == event_type.value,
                AuditLogEntry.success.is_(True),
                AuditLogEntry.created_at >= since,
            )
        )
        return int(total or 0)


def serialize_audit_entry(entry: AuditLogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "event_type": entry.event_type,
        "user_id": entry.user_id,
        "target_user_id": entry.target_user_id,
        "resource_type": entry.resource_type,
        "resource_id": entry.resource_id,
        "details": entry.details or {},
        "ip_address": entry.ip_address,
        "request_id": entry.request_id,
        "success": entry.success,
        "error_message": entry.error_message,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


audit_service = AuditService()

"""
Newsroom - Audit Log
====================
Append-only record of every mutating workflow action and every denied attempt.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, event

from newsroom.core.database import Base, utcnow


class AuditEventType(str, enum.Enum):
    # Article lifecycle
    ARTICLE_STATUS_CHANGED = "ARTICLE_STATUS_CHANGED"
    ARTICLE_SUBMITTED_FOR_REVIEW = "ARTICLE_SUBMITTED_FOR_REVIEW"
    ARTICLE_APPROVED = "ARTICLE_APPROVED"
    ARTICLE_REJECTED = "ARTICLE_REJECTED"
    ARTICLE_PUBLISHED = "ARTICLE_PUBLISHED"
    ARTICLE_UNPUBLISHED = "ARTICLE_UNPUBLISHED"
    ARTICLE_UPDATED = "ARTICLE_UPDATED"

    # Features
    ARTICLE_FEATURED = "ARTICLE_FEATURED"
    ARTICLE_UNFEATURED = "ARTICLE_UNFEATURED"
    ARTICLE_EDITORS_PICK_SET = "ARTICLE_EDITORS_PICK_SET"
    ARTICLE_EDITORS_PICK_UNSET = "ARTICLE_EDITORS_PICK_UNSET"
    ARTICLE_BREAKING_SET = "ARTICLE_BREAKING_SET"
    ARTICLE_BREAKING_UNSET = "ARTICLE_BREAKING_UNSET"

    # Revision requests
    REVISION_REQUESTED = "REVISION_REQUESTED"
    REVISION_APPROVED = "REVISION_APPROVED"
    REVISION_REJECTED = "REVISION_REJECTED"
    REVISION_CONSUMED = "REVISION_CONSUMED"
    EDIT_ALLOWANCE_CONSUMED = "EDIT_ALLOWANCE_CONSUMED"

    # Breaking news requests
    BREAKING_NEWS_REQUESTED = "BREAKING_NEWS_REQUESTED"
    BREAKING_NEWS_APPROVED = "BREAKING_NEWS_APPROVED"
    BREAKING_NEWS_REJECTED = "BREAKING_NEWS_REJECTED"

    # Security
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNAUTHORIZED_ACCESS_ATTEMPT = "UNAUTHORIZED_ACCESS_ATTEMPT"


class AuditLogEntry(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(64), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    target_user_id = Column(Integer, nullable=True)
    resource_id = Column(String(120), nullable=True, index=True)
    resource_type = Column(String(80), nullable=True)
    details = Column(JSON, nullable=True, default=dict)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    request_id = Column(String(64), nullable=True, index=True)
    success = Column(Boolean, nullable=False, default=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_logs_resource_created", "resource_type", "resource_id", "created_at"),
    )

    def __repr__(self):
        return f"<AuditLogEntry(id={self.id}, event='{self.event_type}', success={self.success})>"


@event.listens_for(AuditLogEntry, "before_update")
def _audit_entry_is_append_only(_mapper, _connection, target):
    raise ValueError(f"Audit entry {target.id} is append-only")


@event.listens_for(AuditLogEntry, "before_delete")
def _audit_entry_is_not_deletable(_mapper, _connection, target):
    raise ValueError(f"Audit entry {target.id} is append-only")

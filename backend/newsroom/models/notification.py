"""
Newsroom - Notifications
========================
In-app notifications created by the side-effect coordinator, plus the
transactional outbox the coordinator drains.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text

from newsroom.core.database import Base, utcnow


class NotificationType(str, enum.Enum):
    SUBMISSION = "SUBMISSION"
    APPROVAL = "APPROVAL"
    REJECTION = "REJECTION"
    PUBLICATION = "PUBLICATION"
    UNPUBLICATION = "UNPUBLICATION"
    ARCHIVE = "ARCHIVE"
    DRAFT_SAVED = "DRAFT_SAVED"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    REVISION_APPROVED = "REVISION_APPROVED"
    REVISION_REJECTED = "REVISION_REJECTED"
    REVISION_CONSUMED = "REVISION_CONSUMED"
    BREAKING_NEWS_REQUESTED = "BREAKING_NEWS_REQUESTED"
    BREAKING_NEWS_APPROVED = "BREAKING_NEWS_APPROVED"
    BREAKING_NEWS_REJECTED = "BREAKING_NEWS_REJECTED"


class OutboxStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False)
    title = Column(String(512), nullable=False)
    message = Column(Text, nullable=True)
    metadata_json = Column(JSON, nullable=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=True)
    from_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    to_user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Notification(id={self.id}, type={self.type}, to={self.to_user_id})>"


class OutboxEvent(Base):
    """Side effects of a committed workflow action, written in the same transaction."""
    __tablename__ = "workflow_outbox"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(Enum(OutboxStatus, name="outbox_status"), nullable=False, default=OutboxStatus.PENDING)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("ix_workflow_outbox_status_id", "status", "id"),)

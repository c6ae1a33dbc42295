"""
Newsroom - Revision Models
==========================
RevisionRequest: request → APPROVED/REJECTED → consumed acknowledgement.
Revision: write-once record of a patch that was actually applied.
"""

import enum

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    event,
    select,
    text,
)
from sqlalchemy.orm import column_property

from newsroom.core.database import Base, utcnow
from newsroom.models.article import Article


class RevisionRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RevisionRequest(Base):
    __tablename__ = "revision_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(RevisionRequestStatus, name="revision_request_status"),
        nullable=False,
        default=RevisionRequestStatus.PENDING,
        index=True,
    )
    proposed_changes = Column(JSON, nullable=False)
    note = Column(Text, nullable=True)

    requester_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    review_comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    consumed_at = Column(DateTime, nullable=True)
    consumed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # One open request per article, enforced by the store.
        Index(
            "uq_revision_requests_one_pending",
            "article_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    def __repr__(self):
        return f"<RevisionRequest(id={self.id}, article_id={self.article_id}, status={self.status})>"


class Revision(Base):
    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    revision_request_id = Column(Integer, ForeignKey("revision_requests.id", ondelete="SET NULL"), nullable=True, index=True)
    applied_by_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    changes = Column(JSON, nullable=False)
    summary = Column(Text, nullable=True)
    applied_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"<Revision(id={self.id}, article_id={self.article_id}, request={self.revision_request_id})>"


@event.listens_for(Revision, "before_update")
def _revision_is_immutable(_mapper, _connection, target):
    raise ValueError(f"Revision {target.id} is write-once")


@event.listens_for(Revision, "before_delete")
def _revision_is_not_deletable(_mapper, _connection, target):
    raise ValueError(f"Revision {target.id} is write-once")


Article.has_pending_revision = column_property(
    select(RevisionRequest.id)
    .where(
        RevisionRequest.article_id == Article.id,
        RevisionRequest.status == RevisionRequestStatus.PENDING,
    )
    .correlate_except(RevisionRequest)
    .exists()
)

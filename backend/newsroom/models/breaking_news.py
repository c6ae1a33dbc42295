"""
Newsroom - Breaking News Request Model
======================================
Binary approval cycle gating ``Article.is_breaking``.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Text, select, text
from sqlalchemy.orm import column_property

from newsroom.core.database import Base, utcnow
from newsroom.models.article import Article


class BreakingNewsRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BreakingNewsRequest(Base):
    __tablename__ = "breaking_news_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(BreakingNewsRequestStatus, name="breaking_news_request_status"),
        nullable=False,
        default=BreakingNewsRequestStatus.PENDING,
        index=True,
    )
    reason = Column(Text, nullable=True)

    requester_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    reviewed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    review_comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index(
            "uq_breaking_news_requests_one_pending",
            "article_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    def __repr__(self):
        return f"<BreakingNewsRequest(id={self.id}, article_id={self.article_id}, status={self.status})>"


Article.latest_breaking_request_status = column_property(
    select(BreakingNewsRequest.status)
    .where(BreakingNewsRequest.article_id == Article.id)
    .correlate_except(BreakingNewsRequest)
    .order_by(BreakingNewsRequest.id.desc())
    .limit(1)
    .scalar_subquery()
)

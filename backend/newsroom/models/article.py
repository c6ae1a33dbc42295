"""
Newsroom - Article Models
=========================
Articles, categories and tags.
Status lifecycle: DRAFT → REVIEW → PUBLISHED → ARCHIVED (see domain.article.state_machine).

``revision_status`` and ``breaking_news_request_status`` are not stored here:
they are derived from the request tables (models.revision, models.breaking_news),
which are the only place a pending request is recorded.
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from newsroom.core.database import Base, utcnow


# ── Enums ──

class ArticleStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class ArticleRevisionStatus(str, enum.Enum):
    NONE = "NONE"
    REQUESTED = "REQUESTED"


class ArticleBreakingNewsRequestStatus(str, enum.Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Columns a revision patch writes as-is. Category and tags are resolved by slug.
PATCHABLE_ARTICLE_FIELDS = (
    "title",
    "slug",
    "excerpt",
    "content_json",
    "topic",
    "cover_image_url",
    "author_name",
    "seo_title",
    "seo_description",
    "og_image_url",
)


# ── Models ──

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Category(slug='{self.slug}')>"


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)


class ArticleTag(Base):
    __tablename__ = "article_tags"

    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)


class Article(Base):
    """Editorial article, the aggregate every workflow action targets."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Content ──
    title = Column(String(1024), nullable=False)
    slug = Column(String(1024), nullable=False, unique=True, index=True)
    excerpt = Column(Text, nullable=True)
    content_json = Column(JSON, nullable=False, default=dict)
    topic = Column(String(255), nullable=True)
    cover_image_url = Column(String(2048), nullable=True)
    author_name = Column(String(255), nullable=True)

    # ── SEO ──
    seo_title = Column(String(512), nullable=True)
    seo_description = Column(String(1024), nullable=True)
    og_image_url = Column(String(2048), nullable=True)

    # ── Ownership ──
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # ── Lifecycle ──
    status = Column(Enum(ArticleStatus, name="article_status"), nullable=False, default=ArticleStatus.DRAFT, index=True)
    published_at = Column(DateTime, nullable=True)

    # ── Features ──
    is_featured = Column(Boolean, nullable=False, default=False)
    is_editors_pick = Column(Boolean, nullable=False, default=False)
    is_breaking = Column(Boolean, nullable=False, default=False)
    pinned_at = Column(DateTime, nullable=True)

    # ── Sub-workflow bookkeeping ──
    author_edit_allowance = Column(Integer, nullable=False, default=0)
    revision_requested_at = Column(DateTime, nullable=True)
    breaking_news_requested_at = Column(DateTime, nullable=True)
    breaking_news_requested_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # ── Metadata ──
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("author_edit_allowance >= 0", name="ck_articles_edit_allowance_non_negative"),
        Index("ix_articles_status_updated", "status", "updated_at"),
        Index("ix_articles_status_category", "status", "category_id"),
    )

    # has_pending_revision / latest_breaking_request_status are column_property
    # subqueries attached in models.revision and models.breaking_news.

    @property
    def revision_status(self) -> ArticleRevisionStatus:
        if self.has_pending_revision:
            return ArticleRevisionStatus.REQUESTED
        return ArticleRevisionStatus.NONE

    @property
    def breaking_news_request_status(self) -> ArticleBreakingNewsRequestStatus:
        latest = self.latest_breaking_request_status
        if latest is None:
            return ArticleBreakingNewsRequestStatus.NONE
        return ArticleBreakingNewsRequestStatus(getattr(latest, "value", latest))

    def is_owned_by(self, user_id: int | None) -> bool:
        return user_id is not None and self.author_id == user_id

    def __repr__(self):
        return f"<Article(id={self.id}, status={self.status}, title='{(self.title or '')[:50]}')>"

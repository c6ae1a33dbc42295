"""Models package."""
from newsroom.models.user import User, UserRole, PRIVILEGED_ROLES
from newsroom.models.article import (
    Article, ArticleTag, Category, Tag,
    ArticleStatus, ArticleRevisionStatus, ArticleBreakingNewsRequestStatus,
    PATCHABLE_ARTICLE_FIELDS,
)
from newsroom.models.revision import RevisionRequest, Revision, RevisionRequestStatus
from newsroom.models.breaking_news import BreakingNewsRequest, BreakingNewsRequestStatus
from newsroom.models.audit import AuditLogEntry, AuditEventType
from newsroom.models.notification import Notification, NotificationType, OutboxEvent, OutboxStatus

__all__ = [
    "User", "UserRole", "PRIVILEGED_ROLES",
    "Article", "ArticleTag", "Category", "Tag",
    "ArticleStatus", "ArticleRevisionStatus", "ArticleBreakingNewsRequestStatus",
    "PATCHABLE_ARTICLE_FIELDS",
    "RevisionRequest", "Revision", "RevisionRequestStatus",
    "BreakingNewsRequest", "BreakingNewsRequestStatus",
    "AuditLogEntry", "AuditEventType",
    "Notification", "NotificationType", "OutboxEvent", "OutboxStatus",
]

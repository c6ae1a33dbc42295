from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from newsroom.models.article import Article, ArticleStatus
from newsroom.models.audit import AuditEventType
from newsroom.models.notification import NotificationType


class WorkflowAction(str, enum.Enum):
    SAVE_DRAFT = "SAVE_DRAFT"
    SUBMIT_FOR_REVIEW = "SUBMIT_FOR_REVIEW"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    PUBLISH = "PUBLISH"
    UNPUBLISH = "UNPUBLISH"
    ARCHIVE = "ARCHIVE"


STATE_TRANSITIONS: dict[ArticleStatus, set[ArticleStatus]] = {
    ArticleStatus.DRAFT: {ArticleStatus.REVIEW, ArticleStatus.ARCHIVED},
    ArticleStatus.REVIEW: {ArticleStatus.DRAFT, ArticleStatus.PUBLISHED, ArticleStatus.ARCHIVED},
    ArticleStatus.PUBLISHED: {ArticleStatus.ARCHIVED},
    ArticleStatus.ARCHIVED: {ArticleStatus.DRAFT, ArticleStatus.REVIEW},
}

ACTION_TARGETS: dict[WorkflowAction, ArticleStatus] = {
    WorkflowAction.SAVE_DRAFT: ArticleStatus.DRAFT,
    WorkflowAction.SUBMIT_FOR_REVIEW: ArticleStatus.REVIEW,
    WorkflowAction.APPROVE: ArticleStatus.PUBLISHED,
    WorkflowAction.REJECT: ArticleStatus.DRAFT,
    WorkflowAction.PUBLISH: ArticleStatus.PUBLISHED,
    WorkflowAction.UNPUBLISH: ArticleStatus.ARCHIVED,
    WorkflowAction.ARCHIVE: ArticleStatus.ARCHIVED,
}

ACTION_AUDIT_EVENTS: dict[WorkflowAction, AuditEventType] = {
    WorkflowAction.SAVE_DRAFT: AuditEventType.ARTICLE_STATUS_CHANGED,
    WorkflowAction.SUBMIT_FOR_REVIEW: AuditEventType.ARTICLE_SUBMITTED_FOR_REVIEW,
    WorkflowAction.APPROVE: AuditEventType.ARTICLE_APPROVED,
    WorkflowAction.REJECT: AuditEventType.ARTICLE_REJECTED,
    WorkflowAction.PUBLISH: AuditEventType.ARTICLE_PUBLISHED,
    WorkflowAction.UNPUBLISH: AuditEventType.ARTICLE_UNPUBLISHED,
    WorkflowAction.ARCHIVE: AuditEventType.ARTICLE_UNPUBLISHED,
}

ACTION_NOTIFICATIONS: dict[WorkflowAction, NotificationType] = {
    WorkflowAction.SAVE_DRAFT: NotificationType.DRAFT_SAVED,
    WorkflowAction.SUBMIT_FOR_REVIEW: NotificationType.SUBMISSION,
    WorkflowAction.APPROVE: NotificationType.APPROVAL,
    WorkflowAction.REJECT: NotificationType.REJECTION,
    WorkflowAction.PUBLISH: NotificationType.PUBLICATION,
    WorkflowAction.UNPUBLISH: NotificationType.UNPUBLICATION,
    WorkflowAction.ARCHIVE: NotificationType.ARCHIVE,
}

_SUCCESS_VERBS: dict[WorkflowAction, str] = {
    WorkflowAction.SAVE_DRAFT: "saved as draft",
    WorkflowAction.SUBMIT_FOR_REVIEW: "submitted for review",
    WorkflowAction.APPROVE: "approved",
    WorkflowAction.REJECT: "rejected",
    WorkflowAction.PUBLISH: "published",
    WorkflowAction.UNPUBLISH: "unpublished",
    WorkflowAction.ARCHIVE: "archived",
}


@dataclass(slots=True)
class TransitionValidationResult:
    valid: bool
    from_state: ArticleStatus
    to_state: ArticleStatus
    allowed_targets: list[ArticleStatus]


def allowed_targets(from_state: ArticleStatus) -> set[ArticleStatus]:
    return set(STATE_TRANSITIONS.get(from_state, set()))


def can_transition(from_state: ArticleStatus, to_state: ArticleStatus) -> bool:
    # Self-edges are not in the graph: re-saving a draft is not a transition.
    return to_state in allowed_targets(from_state)


def validate_transition(from_state: ArticleStatus, to_state: ArticleStatus) -> TransitionValidationResult:
    targets = sorted(allowed_targets(from_state), key=lambda item: item.value)
    return TransitionValidationResult(
        valid=can_transition(from_state, to_state),
        from_state=from_state,
        to_state=to_state,
        allowed_targets=targets,
    )


def validate_path(states: Iterable[ArticleStatus]) -> bool:
    sequence = list(states)
    if len(sequence) <= 1:
        return True
    return all(can_transition(sequence[idx], sequence[idx + 1]) for idx in range(0, len(sequence) - 1))


def target_status(action: WorkflowAction) -> ArticleStatus:
    return ACTION_TARGETS[WorkflowAction(action)]


def success_message(action: WorkflowAction, article_title: str) -> str:
    verb = _SUCCESS_VERBS.get(WorkflowAction(action), "updated")
    return f'Article "{article_title}" {verb}'


def apply_status_side_effects(article: Article, target: ArticleStatus, now: datetime) -> None:
    """Move ``article`` to ``target`` and keep ``published_at`` in step with it."""
    article.status = target
    if target == ArticleStatus.PUBLISHED:
        if article.published_at is None:
            article.published_at = now
    elif article.published_at is not None:
        article.published_at = None
    article.updated_at = now

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import TYPE_CHECKING

from newsroom.core.errors import AuthenticationError, AuthorizationError
from newsroom.models.article import ArticleStatus
from newsroom.models.user import UserRole

if TYPE_CHECKING:
    from newsroom.core.context import ActorContext
    from newsroom.models.article import Article


class Capability(str, enum.Enum):
    # User management
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    VIEW_ALL_USERS = "VIEW_ALL_USERS"
    MANAGE_USER_ROLES = "MANAGE_USER_ROLES"

    # Articles
    CREATE_ARTICLE = "CREATE_ARTICLE"
    UPDATE_OWN_ARTICLE = "UPDATE_OWN_ARTICLE"
    UPDATE_ANY_ARTICLE = "UPDATE_ANY_ARTICLE"
    DELETE_OWN_ARTICLE = "DELETE_OWN_ARTICLE"
    DELETE_ANY_ARTICLE = "DELETE_ANY_ARTICLE"
    PUBLISH_ARTICLE = "PUBLISH_ARTICLE"
    UNPUBLISH_ARTICLE = "UNPUBLISH_ARTICLE"

    # Article features
    SET_FEATURED = "SET_FEATURED"
    SET_BREAKING_NEWS = "SET_BREAKING_NEWS"
    SET_EDITORS_PICK = "SET_EDITORS_PICK"

    # Review
    REVIEW_ARTICLES = "REVIEW_ARTICLES"
    APPROVE_ARTICLES = "APPROVE_ARTICLES"
    REJECT_ARTICLES = "REJECT_ARTICLES"

    # Categories
    CREATE_CATEGORY = "CREATE_CATEGORY"
    UPDATE_CATEGORY = "UPDATE_CATEGORY"
    DELETE_CATEGORY = "DELETE_CATEGORY"

    # Settings / system
    VIEW_SETTINGS = "VIEW_SETTINGS"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"
    SYSTEM_ADMINISTRATION = "SYSTEM_ADMINISTRATION"


_AUTHOR_CAPABILITIES = frozenset({
    Capability.CREATE_ARTICLE,
    Capability.UPDATE_OWN_ARTICLE,
    Capability.DELETE_OWN_ARTICLE,
})

_EDITOR_CAPABILITIES = _AUTHOR_CAPABILITIES | {
    Capability.VIEW_ALL_USERS,
    Capability.UPDATE_ANY_ARTICLE,
    Capability.PUBLISH_ARTICLE,
    Capability.UNPUBLISH_ARTICLE,
    Capability.SET_FEATURED,
    Capability.SET_BREAKING_NEWS,
    Capability.SET_EDITORS_PICK,
    Capability.REVIEW_ARTICLES,
    Capability.APPROVE_ARTICLES,
    Capability.REJECT_ARTICLES,
    Capability.CREATE_CATEGORY,
    Capability.UPDATE_CATEGORY,
    Capability.VIEW_SETTINGS,
}

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.ADMIN: frozenset(Capability),
    UserRole.EDITOR: frozenset(_EDITOR_CAPABILITIES),
    UserRole.AUTHOR: _AUTHOR_CAPABILITIES,
}

ROLE_DESCRIPTIONS: dict[UserRole, str] = {
    UserRole.ADMIN: "Full system control and platform governance",
    UserRole.EDITOR: "Content quality, accuracy, and compliance management",
    UserRole.AUTHOR: "Content creation and maintenance",
}

FEATURE_CAPABILITIES = (
    Capability.SET_FEATURED,
    Capability.SET_BREAKING_NEWS,
    Capability.SET_EDITORS_PICK,
)

if set(ROLE_CAPABILITIES) != set(UserRole):
    raise RuntimeError("ROLE_CAPABILITIES must cover every UserRole")


def role_capabilities(role: UserRole) -> frozenset[Capability]:
    return ROLE_CAPABILITIES[UserRole(role)]


def has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in role_capabilities(role)


def has_any(role: UserRole, capabilities: Iterable[Capability]) -> bool:
    return any(has_capability(role, item) for item in capabilities)


def has_all(role: UserRole, capabilities: Iterable[Capability]) -> bool:
    return all(has_capability(role, item) for item in capabilities)


def can_access_resource(
    actor: ActorContext | None,
    owner_id: int | None,
    fallback_capabilities: Iterable[Capability],
) -> bool:
    """Owner of the resource, or holder of any fallback capability."""
    if actor is None:
        return False
    if owner_id is not None and actor.user_id == owner_id:
        return True
    return has_any(actor.role, fallback_capabilities)


def can_set_features(role: UserRole) -> bool:
    """Featured / editor's pick / breaking flags are gated as one group."""
    return has_any(role, FEATURE_CAPABILITIES)


def can_perform_workflow_action(
    role: UserRole,
    current_status: ArticleStatus,
    target_status: ArticleStatus,
    is_owner: bool,
) -> bool:
    """Capability rule for reaching ``target_status``.

    Edge legality is checked separately by the state machine; ``current_status``
    is accepted so callers can pass the full transition.
    """
    role = UserRole(role)
    target_status = ArticleStatus(target_status)
    if target_status == ArticleStatus.DRAFT:
        return is_owner or has_capability(role, Capability.UPDATE_ANY_ARTICLE)
    if target_status == ArticleStatus.REVIEW:
        return (is_owner and role == UserRole.AUTHOR) or has_capability(role, Capability.REVIEW_ARTICLES)
    if target_status == ArticleStatus.PUBLISHED:
        return has_capability(role, Capability.PUBLISH_ARTICLE)
    if target_status == ArticleStatus.ARCHIVED:
        return has_capability(role, Capability.UNPUBLISH_ARTICLE)
    return False


def available_target_statuses(role: UserRole, current_status: ArticleStatus, is_owner: bool) -> list[ArticleStatus]:
    return [
        status
        for status in ArticleStatus
        if status != current_status and can_perform_workflow_action(role, current_status, status, is_owner)
    ]


def can_edit_article(actor: ActorContext | None, article: Article) -> bool:
    """Whether ``actor`` may change article content outside the revision workflow.

    Owners lose direct edit access once an article enters review; an approved
    revision grants them one further edit through ``author_edit_allowance``.
    """
    if actor is None:
        return False
    if has_capability(actor.role, Capability.UPDATE_ANY_ARTICLE):
        return True
    if not article.is_owned_by(actor.user_id) or not has_capability(actor.role, Capability.UPDATE_OWN_ARTICLE):
        return False
    if article.status in (ArticleStatus.DRAFT, ArticleStatus.ARCHIVED):
        return True
    return (article.author_edit_allowance or 0) > 0


def permission_summary(role: UserRole) -> dict[str, object]:
    role = UserRole(role)
    return {
        "role": role.value,
        "capabilities": sorted(item.value for item in role_capabilities(role)),
        "description": ROLE_DESCRIPTIONS[role],
    }


def require_actor(actor: ActorContext | None) -> ActorContext:
    if actor is None or not actor.is_active:
        raise AuthenticationError()
    return actor


def require_capability(actor: ActorContext | None, *capabilities: Capability) -> ActorContext:
    """Authenticated actor holding every listed capability."""
    actor = require_actor(actor)
    missing = [item.value for item in capabilities if not has_capability(actor.role, item)]
    if missing:
        raise AuthorizationError(
            f"Permission denied: {', '.join(missing)} required",
            details={"required": missing, "role": actor.role.value},
        )
    return actor

from datetime import datetime
from types import SimpleNamespace

import pytest

from newsroom.domain.article.state_machine import (
    ACTION_AUDIT_EVENTS,
    ACTION_NOTIFICATIONS,
    WorkflowAction,
    apply_status_side_effects,
    can_transition,
    success_message,
    target_status,
    validate_path,
    validate_transition,
)
from newsroom.models.article import ArticleStatus

LEGAL_EDGES = {
    (ArticleStatus.DRAFT, ArticleStatus.REVIEW),
    (ArticleStatus.DRAFT, ArticleStatus.ARCHIVED),
    (ArticleStatus.REVIEW, ArticleStatus.DRAFT),
    (ArticleStatus.REVIEW, ArticleStatus.PUBLISHED),
    (ArticleStatus.REVIEW, ArticleStatus.ARCHIVED),
    (ArticleStatus.PUBLISHED, ArticleStatus.ARCHIVED),
    (ArticleStatus.ARCHIVED, ArticleStatus.DRAFT),
    (ArticleStatus.ARCHIVED, ArticleStatus.REVIEW),
}


@pytest.mark.parametrize("from_state", list(ArticleStatus))
@pytest.mark.parametrize("to_state", list(ArticleStatus))
def test_transition_graph_matches_editorial_lifecycle(from_state, to_state) -> None:
    assert can_transition(from_state, to_state) is ((from_state, to_state) in LEGAL_EDGES)


def test_valid_transition_review_to_published() -> None:
    assert can_transition(ArticleStatus.REVIEW, ArticleStatus.PUBLISHED)


def test_invalid_transition_published_to_review() -> None:
    result = validate_transition(ArticleStatus.PUBLISHED, ArticleStatus.REVIEW)
    assert result.valid is False
    assert ArticleStatus.REVIEW not in result.allowed_targets
    assert result.allowed_targets == [ArticleStatus.ARCHIVED]


def test_self_edges_are_not_transitions() -> None:
    for status in ArticleStatus:
        assert can_transition(status, status) is False


def test_validate_path_walks_every_edge() -> None:
    assert validate_path([ArticleStatus.DRAFT, ArticleStatus.REVIEW, ArticleStatus.PUBLISHED, ArticleStatus.ARCHIVED])
    assert not validate_path([ArticleStatus.DRAFT, ArticleStatus.PUBLISHED])
    assert validate_path([ArticleStatus.ARCHIVED])


def test_action_targets() -> None:
    assert target_status(WorkflowAction.SAVE_DRAFT) == ArticleStatus.DRAFT
    assert target_status(WorkflowAction.SUBMIT_FOR_REVIEW) == ArticleStatus.REVIEW
    assert target_status(WorkflowAction.APPROVE) == ArticleStatus.PUBLISHED
    assert target_status(WorkflowAction.REJECT) == ArticleStatus.DRAFT
    assert target_status(WorkflowAction.PUBLISH) == ArticleStatus.PUBLISHED
    assert target_status(WorkflowAction.UNPUBLISH) == ArticleStatus.ARCHIVED
    assert target_status("ARCHIVE") == ArticleStatus.ARCHIVED


def test_every_action_has_audit_event_and_notification() -> None:
    assert set(ACTION_AUDIT_EVENTS) == set(WorkflowAction)
    assert set(ACTION_NOTIFICATIONS) == set(WorkflowAction)


def test_success_message_names_the_article() -> None:
    assert success_message(WorkflowAction.APPROVE, "Budget vote") == 'Article "Budget vote" approved'


def test_publishing_stamps_published_at_once() -> None:
    first = datetime(2026, 10, 1, 9, 0)
    article = SimpleNamespace(status=ArticleStatus.REVIEW, published_at=None, updated_at=None)

    apply_status_side_effects(article, ArticleStatus.PUBLISHED, first)
    assert article.published_at == first

    apply_status_side_effects(article, ArticleStatus.PUBLISHED, datetime(2026, 10, 2))
    assert article.published_at == first


def test_leaving_published_clears_published_at() -> None:
    article = SimpleNamespace(status=ArticleStatus.PUBLISHED, published_at=datetime(2026, 1, 1), updated_at=None)
    now = datetime(2026, 10, 18, 12, 0)

    apply_status_side_effects(article, ArticleStatus.ARCHIVED, now)

    assert article.status == ArticleStatus.ARCHIVED
    assert article.published_at is None
    assert article.updated_at == now

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import audit_entries, load_article, notifications_for
from newsroom.core.errors import AuthorizationError, ConflictError, InvalidTransitionError, NotFoundError
from newsroom.models import (
    ArticleBreakingNewsRequestStatus,
    ArticleStatus,
    AuditEventType,
    BreakingNewsRequest,
    BreakingNewsRequestStatus,
    NotificationType,
)


async def test_second_request_conflicts_and_flag_stays_down(workflow, db_session, staff, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id, reason="Storm warning")

    with pytest.raises(ConflictError) as exc_info:
        await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)

    assert exc_info.value.code == "breaking_news_request_pending"
    article = await load_article(db_session, article_id)
    assert article.is_breaking is False
    assert article.breaking_news_request_status == ArticleBreakingNewsRequestStatus.PENDING


async def test_approval_raises_flag_and_notifies_requester(
    workflow, db_session, staff, staff_ids, make_article
) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    request = await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)
    request_id = request.id
    assert (await load_article(db_session, article_id)).breaking_news_requested_by_id == staff_ids["author"]

    approved = await workflow.approve_breaking_news(
        db_session, staff["editor"], request_id=request_id, review_comment="Go"
    )

    assert approved.status == BreakingNewsRequestStatus.APPROVED
    assert approved.reviewed_by_id == staff_ids["editor"]
    article = await load_article(db_session, article_id)
    assert article.is_breaking is True
    assert article.breaking_news_request_status == ArticleBreakingNewsRequestStatus.APPROVED
    assert [row.type for row in await notifications_for(db_session, staff_ids["author"])] == [
        NotificationType.BREAKING_NEWS_APPROVED
    ]
    assert len(await audit_entries(db_session, AuditEventType.BREAKING_NEWS_APPROVED)) == 1

    with pytest.raises(InvalidTransitionError):
        await workflow.reject_breaking_news(db_session, staff["editor"], request_id=request_id)
    with pytest.raises(ConflictError) as exc_info:
        await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)
    assert exc_info.value.code == "already_breaking"


async def test_rejection_keeps_flag_down_and_allows_new_request(workflow, db_session, staff, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    request = await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)

    rejected = await workflow.reject_breaking_news(
        db_session, staff["admin"], request_id=request.id, review_comment="Not urgent"
    )
    assert rejected.status == BreakingNewsRequestStatus.REJECTED

    article = await load_article(db_session, article_id)
    assert article.is_breaking is False
    assert article.breaking_news_request_status == ArticleBreakingNewsRequestStatus.REJECTED

    again = await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)
    assert again.status == BreakingNewsRequestStatus.PENDING


async def test_authors_cannot_decide_breaking_news(workflow, db_session, staff, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    request = await workflow.request_breaking_news(db_session, staff["author"], article_id=article_id)
    request_id = request.id

    with pytest.raises(AuthorizationError):
        await workflow.approve_breaking_news(db_session, staff["author"], request_id=request_id)
    with pytest.raises(AuthorizationError):
        await workflow.request_breaking_news(db_session, staff["other_author"], article_id=article_id)

    assert (await load_article(db_session, article_id)).is_breaking is False
    denied = await audit_entries(db_session, AuditEventType.PERMISSION_DENIED)
    assert [(entry.resource_type, entry.resource_id) for entry in denied] == [
        ("breaking_news_request", str(request_id)),
        ("article", str(article_id)),
    ]


async def test_clear_breaking_news_is_privileged_and_idempotent(workflow, db_session, staff, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED, is_breaking=True)

    with pytest.raises(AuthorizationError):
        await workflow.clear_breaking_news(db_session, staff["author"], article_id=article_id)

    article = await workflow.clear_breaking_news(db_session, staff["editor"], article_id=article_id)
    assert article.is_breaking is False
    await workflow.clear_breaking_news(db_session, staff["editor"], article_id=article_id)

    assert len(await audit_entries(db_session, AuditEventType.ARTICLE_BREAKING_UNSET)) == 1


async def test_unknown_breaking_request(workflow, db_session, staff) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        await workflow.approve_breaking_news(db_session, staff["editor"], request_id=31337)
    assert exc_info.value.code == "breaking_news_request_not_found"


async def test_store_rejects_second_pending_breaking_request(db_session, staff_ids, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    for requester in ("author", "editor"):
        db_session.add(
            BreakingNewsRequest(
                article_id=article_id,
                status=BreakingNewsRequestStatus.PENDING,
                requester_id=staff_ids[requester],
            )
        )

    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()

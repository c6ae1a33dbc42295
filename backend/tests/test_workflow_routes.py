from __future__ import annotations

from datetime import timedelta

from conftest import audit_entries, load_article
from newsroom.core.security import create_access_token
from newsroom.models import ArticleStatus, AuditEventType

API = "/api/v1/workflow"


async def test_health(async_client) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ok"


async def test_lifecycle_over_http(async_client, auth_headers, make_article) -> None:
    article_id = await make_article(ArticleStatus.DRAFT)

    response = await async_client.post(
        f"{API}/articles/{article_id}/actions",
        json={"action": "SUBMIT_FOR_REVIEW"},
        headers={**auth_headers("author"), "x-request-id": "req-submit-1"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["article"]["status"] == "REVIEW"
    assert response.headers["x-request-id"] == "req-submit-1"

    response = await async_client.get(f"{API}/articles/{article_id}/available-actions", headers=auth_headers("editor"))
    assert "APPROVE" in response.json()["data"]["actions"]

    response = await async_client.post(
        f"{API}/articles/{article_id}/actions",
        json={"action": "APPROVE", "reason": "Ship it"},
        headers=auth_headers("editor"),
    )
    article = response.json()["data"]["article"]
    assert article["status"] == "PUBLISHED"
    assert article["published_at"] is not None

    response = await async_client.get(f"{API}/articles/{article_id}/history", headers=auth_headers("author"))
    assert [item["event_type"] for item in response.json()["data"]["items"]] == [
        "ARTICLE_SUBMITTED_FOR_REVIEW",
        "ARTICLE_APPROVED",
    ]

    response = await async_client.get(f"{API}/notifications", headers=auth_headers("author"))
    assert response.json()["data"]["unread_count"] == 1


async def test_requests_without_valid_token_are_unauthenticated(async_client, staff_ids, make_article) -> None:
    article_id = await make_article(ArticleStatus.DRAFT)
    url = f"{API}/articles/{article_id}/actions"

    response = await async_client.post(url, json={"action": "SUBMIT_FOR_REVIEW"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "authentication_required"

    response = await async_client.post(
        url, json={"action": "SUBMIT_FOR_REVIEW"}, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401

    expired = create_access_token({"sub": str(staff_ids["author"])}, expires_delta=timedelta(minutes=-5))
    response = await async_client.post(
        url, json={"action": "SUBMIT_FOR_REVIEW"}, headers={"Authorization": f"Bearer {expired}"}
    )
    assert response.status_code == 401


async def test_anonymous_request_is_audited_with_client_details(async_client, db_session, make_article) -> None:
    article_id = await make_article(ArticleStatus.DRAFT)

    response = await async_client.post(
        f"{API}/articles/{article_id}/actions",
        json={"action": "SUBMIT_FOR_REVIEW"},
        headers={"x-forwarded-for": "198.51.100.7, 10.0.0.1", "user-agent": "newsroom-cli/2.1"},
    )

    assert response.status_code == 401
    [attempt] = await audit_entries(db_session, AuditEventType.UNAUTHORIZED_ACCESS_ATTEMPT)
    assert attempt.ip_address == "198.51.100.7"
    assert attempt.user_agent == "newsroom-cli/2.1"
    assert attempt.request_id == response.headers["x-request-id"]


async def test_inactive_user_token_is_unauthenticated(async_client, auth_headers) -> None:
    response = await async_client.get(f"{API}/review-queue", headers=auth_headers("retired_editor"))
    assert response.status_code == 401


async def test_error_statuses(async_client, auth_headers, make_article, db_session) -> None:
    review_id = await make_article(ArticleStatus.REVIEW)
    draft_id = await make_article(ArticleStatus.DRAFT)

    response = await async_client.post(
        f"{API}/articles/{review_id}/actions", json={"action": "PUBLISH"}, headers=auth_headers("author")
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "permission_denied"
    assert (await load_article(db_session, review_id)).status == ArticleStatus.REVIEW

    response = await async_client.post(
        f"{API}/articles/{draft_id}/actions", json={"action": "PUBLISH"}, headers=auth_headers("editor")
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "invalid_state_transition"

    response = await async_client.post(
        f"{API}/articles/{draft_id}/actions", json={"action": "TELEPORT"}, headers=auth_headers("editor")
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"

    response = await async_client.post(
        f"{API}/articles/999999/actions", json={"action": "APPROVE"}, headers=auth_headers("editor")
    )
    assert response.status_code == 404

    response = await async_client.get(f"{API}/review-queue?limit=500", headers=auth_headers("editor"))
    assert response.status_code == 422


async def test_revision_cycle_over_http(async_client, auth_headers, make_article) -> None:
    article_id = await make_article(ArticleStatus.REVIEW)

    response = await async_client.post(
        f"{API}/articles/{article_id}/revision-requests",
        json={"proposed_changes": {"title": "Corrected headline"}, "note": "Typo in name"},
        headers=auth_headers("author"),
    )
    assert response.status_code == 201
    request_id = response.json()["data"]["id"]

    response = await async_client.post(
        f"{API}/articles/{article_id}/revision-requests",
        json={"proposed_changes": {"status": "PUBLISHED"}},
        headers=auth_headers("editor"),
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "invalid_revision_patch"

    response = await async_client.post(
        f"{API}/revision-requests/{request_id}/approve",
        json={"comment": "Good catch"},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 200
    article = response.json()["data"]
    assert article["title"] == "Corrected headline"
    assert article["revision_status"] == "NONE"
    assert article["author_edit_allowance"] == 1

    response = await async_client.post(f"{API}/revision-requests/{request_id}/consume", headers=auth_headers("author"))
    assert response.json()["data"]["consumed_at"] is not None

    response = await async_client.get(f"{API}/articles/{article_id}/revisions", headers=auth_headers("author"))
    assert response.json()["data"]["total"] == 1

    response = await async_client.post(
        f"{API}/articles/{article_id}/edit-allowance/consume", headers=auth_headers("author")
    )
    assert response.json()["data"]["author_edit_allowance"] == 0


async def test_breaking_news_over_http(async_client, auth_headers, make_article) -> None:
    article_id = await make_article(ArticleStatus.PUBLISHED)
    url = f"{API}/articles/{article_id}/breaking-news-requests"

    response = await async_client.post(url, json={"reason": "Live event"}, headers=auth_headers("author"))
    assert response.status_code == 201
    request_id = response.json()["data"]["id"]

    response = await async_client.post(url, json={}, headers=auth_headers("author"))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "breaking_news_request_pending"

    response = await async_client.post(f"{API}/breaking-news-requests/{request_id}/approve", headers=auth_headers("editor"))
    assert response.json()["data"]["status"] == "APPROVED"

    response = await async_client.delete(f"{API}/articles/{article_id}/breaking", headers=auth_headers("editor"))
    assert response.json()["data"]["is_breaking"] is False


async def test_features_bulk_and_admin_views(async_client, auth_headers, make_article) -> None:
    first = await make_article(ArticleStatus.REVIEW)
    second = await make_article(ArticleStatus.REVIEW)

    response = await async_client.patch(
        f"{API}/articles/{first}/features", json={"is_featured": True}, headers=auth_headers("author")
    )
    assert response.status_code == 403

    response = await async_client.post(
        f"{API}/articles/bulk-actions",
        json={"article_ids": [first, second], "action": "PUBLISH"},
        headers=auth_headers("editor"),
    )
    data = response.json()["data"]
    assert (data["processed_count"], data["failed_count"]) == (2, 0)

    response = await async_client.get(f"{API}/stats", headers=auth_headers("editor"))
    assert response.json()["data"]["published_today"] == 2

    response = await async_client.get(f"{API}/audit-logs?success=false", headers=auth_headers("admin"))
    assert response.json()["data"]["total"] == 1

    response = await async_client.get(f"{API}/permissions/AUTHOR")
    assert response.json()["data"]["capabilities"] == ["CREATE_ARTICLE", "DELETE_OWN_ARTICLE", "UPDATE_OWN_ARTICLE"]

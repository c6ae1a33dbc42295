import asyncio
import json

import httpx

import newsroom.services.notification_service as notification_module
from newsroom.services.notification_service import (
    NullNotificationDispatcher,
    WebhookNotificationDispatcher,
)


def _mock_client_factory(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(notification_module.httpx, "AsyncClient", factory)


def test_webhook_posts_notification_batch(monkeypatch):
    received: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == "https://hooks.newsroom.test/workflow"
        received.append(json.loads(request.content))
        return httpx.Response(202)

    _mock_client_factory(monkeypatch, handler)
    dispatcher = WebhookNotificationDispatcher(url="https://hooks.newsroom.test/workflow", timeout=2)

    asyncio.run(dispatcher.dispatch([{"id": 1, "type": "APPROVAL", "to_user_id": 3}]))

    assert received == [{"notifications": [{"id": 1, "type": "APPROVAL", "to_user_id": 3}]}]


def test_webhook_errors_are_swallowed(monkeypatch):
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(503)
        raise httpx.ConnectError("refused", request=request)

    _mock_client_factory(monkeypatch, handler)
    dispatcher = WebhookNotificationDispatcher(url="https://hooks.newsroom.test/workflow")

    asyncio.run(dispatcher.dispatch([{"id": 1}]))
    asyncio.run(dispatcher.dispatch([{"id": 2}]))

    assert len(calls) == 2


def test_webhook_without_url_sends_nothing(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    _mock_client_factory(monkeypatch, handler)

    asyncio.run(WebhookNotificationDispatcher(url="").dispatch([{"id": 1}]))
    asyncio.run(WebhookNotificationDispatcher(url="https://hooks.newsroom.test/x").dispatch([]))
    asyncio.run(NullNotificationDispatcher().dispatch([{"id": 1}]))

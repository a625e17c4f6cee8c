"""
Unit tests for NotificationService and the fire-and-forget enqueue helper.
"""
import json
from unittest.mock import patch

import httpx
import pytest

from app.config import settings
from app.services.notification_service import SENDGRID_URL, NotificationService
from app.tasks import enqueue_notification, send_notification


@pytest.fixture
def sendgrid_key(monkeypatch):
    monkeypatch.setattr(settings, "sendgrid_api_key", "SG.test-key")


def _service(handler) -> tuple[NotificationService, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NotificationService(http_client=client), client


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_email_skipped_without_api_key(monkeypatch):
    """Without SendGrid configured, nothing is sent and no error is raised."""
    monkeypatch.setattr(settings, "sendgrid_api_key", None)
    service = NotificationService()

    sent = await service.send_email("vendor@example.com", "Hello", "<p>Hi</p>")

    assert sent is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_email_posts_to_sendgrid(sendgrid_key):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202)

    service, client = _service(handler)
    async with client:
        sent = await service.send_email("vendor@example.com", "Hello", "<p>Hi</p>", "Hi")

    assert sent is True
    assert len(requests) == 1
    assert str(requests[0].url) == SENDGRID_URL
    assert requests[0].headers["Authorization"] == "Bearer SG.test-key"
    body = json.loads(requests[0].content)
    assert body["personalizations"][0]["to"][0]["email"] == "vendor@example.com"
    assert [c["type"] for c in body["content"]] == ["text/plain", "text/html"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_email_returns_false_on_rejection(sendgrid_key):
    service, client = _service(lambda request: httpx.Response(400, text="bad request"))
    async with client:
        assert await service.send_email("vendor@example.com", "Hello", "<p>Hi</p>") is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_email_swallows_transport_errors(sendgrid_key):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service, client = _service(handler)
    async with client:
        assert await service.send_email("vendor@example.com", "Hello", "<p>Hi</p>") is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejection_email_includes_reason(sendgrid_key):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(202)

    service, client = _service(handler)
    async with client:
        sent = await service.dispatch(
            NotificationService.VENDOR_REJECTED,
            {
                "email": "vendor@example.com",
                "shop_name": "Glow Studio",
                "owner_name": "Grace",
                "reason": "Incomplete documents",
            },
        )

    assert sent is True
    html = bodies[0]["content"][0]["value"]
    assert "Glow Studio" in html
    assert "Incomplete documents" in html


@pytest.mark.unit
@pytest.mark.asyncio
async def test_vendor_supplied_text_is_escaped_in_email_html(sendgrid_key):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(202)

    service, client = _service(handler)
    async with client:
        await service.dispatch(
            NotificationService.VENDOR_SUSPENDED,
            {
                "email": "vendor@example.com",
                "shop_name": "<script>alert(1)</script>",
                "owner_name": "Grace <b>M</b>",
                "reason": '<a href="https://evil.example">Appeal here</a>',
            },
        )
        await service.notify_managers_vendor_signup(
            shop_name="Glow & Co <img src=x onerror=alert(1)>",
            owner_name="Grace",
            email="grace@example.com",
            address="<iframe>",
        )

    suspended = bodies[0]["content"][0]["value"]
    assert "<script>" not in suspended
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in suspended
    assert "Grace &lt;b&gt;M&lt;/b&gt;" in suspended
    assert "<a href" not in suspended
    assert "&lt;a href=&quot;https://evil.example&quot;&gt;" in suspended

    signup = bodies[1]["content"][0]["value"]
    assert "<img" not in signup
    assert "Glow &amp; Co &lt;img src=x onerror=alert(1)&gt;" in signup
    assert "<iframe>" not in signup


@pytest.mark.unit
@pytest.mark.asyncio
async def test_signup_notification_goes_to_every_manager(sendgrid_key, monkeypatch):
    monkeypatch.setattr(settings, "manager_emails", ["m1@example.com", "m2@example.com"])
    recipients = []

    def handler(request: httpx.Request) -> httpx.Response:
        recipients.append(json.loads(request.content)["personalizations"][0]["to"][0]["email"])
        return httpx.Response(202)

    service, client = _service(handler)
    async with client:
        sent = await service.notify_managers_vendor_signup(
            shop_name="Glow Studio", owner_name="Grace", email="grace@example.com"
        )

    assert sent is True
    assert recipients == ["m1@example.com", "m2@example.com"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_unknown_type_returns_false():
    assert await NotificationService().dispatch("carrier_pigeon", {}) is False


@pytest.mark.unit
def test_enqueue_swallows_broker_failure():
    """A broker outage is logged, never raised to the caller."""
    with patch.object(send_notification, "delay", side_effect=ConnectionError("no broker")):
        assert enqueue_notification(NotificationService.VENDOR_APPROVED, {}) is False


@pytest.mark.unit
def test_enqueue_hands_task_to_broker():
    payload = {"email": "vendor@example.com", "shop_name": "Glow", "owner_name": "Grace"}
    with patch.object(send_notification, "delay") as delay:
        assert enqueue_notification(NotificationService.VENDOR_APPROVED, payload) is True
    delay.assert_called_once_with(NotificationService.VENDOR_APPROVED, payload)

"""Tests for the email channel adapters and the channel registry."""

import json

import httpx
import pytest
from notifications.channel import NotificationChannel, get_channel, reset_channels, set_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.sendgrid_email import SendGridEmailAdapter


@pytest.fixture(autouse=True)
def _clean_channels():
    reset_channels()
    yield
    reset_channels()


class TestFakeEmailAdapter:
    def test_records_sent_email(self):
        adapter = FakeEmailAdapter()
        result = adapter.send(to="buyer@example.com", subject="Hello", body="Body")

        assert result["status"] == "sent"
        assert adapter.sent_to("buyer@example.com")[0]["message_id"] == result["message_id"]

    def test_configured_failure(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_succeed=False, failure_reason="Mailbox full")
        result = adapter.send(to="buyer@example.com", subject="Hello", body="Body")

        assert result == {"message_id": None, "status": "failed", "error": "Mailbox full"}
        assert adapter.sent_emails == []

    def test_configured_exception(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_raise=True)
        with pytest.raises(ConnectionError):
            adapter.send(to="buyer@example.com", subject="Hello", body="Body")

    def test_reset(self):
        adapter = FakeEmailAdapter()
        adapter.send(to="buyer@example.com", subject="Hello", body="Body")
        adapter.configure(should_succeed=False)
        adapter.reset()

        assert adapter.sent_emails == []
        assert adapter.should_succeed is True


class TestSendGridEmailAdapter:
    def _adapter(self, handler):
        return SendGridEmailAdapter("SG.key", "shop@example.com", transport=httpx.MockTransport(handler))

    def test_accepted(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(202, headers={"X-Message-Id": "sg-123"})

        result = self._adapter(handler).send(to="buyer@example.com", subject="Hello", body="Body")

        assert result == {"message_id": "sg-123", "status": "sent"}
        assert seen["path"] == "/v3/mail/send"
        assert seen["auth"] == "Bearer SG.key"
        assert seen["body"]["from"] == {"email": "shop@example.com"}
        assert seen["body"]["personalizations"][0]["to"] == [{"email": "buyer@example.com"}]
        assert seen["body"]["content"] == [{"type": "text/plain", "value": "Body"}]

    def test_html_body(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(202)

        self._adapter(handler).send(to="a@example.com", subject="Hi", body="Body", html_body="<p>Body</p>")
        assert seen["body"]["content"][1] == {"type": "text/html", "value": "<p>Body</p>"}

    @pytest.mark.parametrize(
        "status_code,error",
        [
            (429, "SendGrid rate limit exceeded"),
            (401, "SendGrid authentication failed"),
            (500, "SendGrid returned 500"),
        ],
    )
    def test_rejections(self, status_code, error):
        result = self._adapter(lambda request: httpx.Response(status_code)).send(
            to="buyer@example.com", subject="Hello", body="Body"
        )
        assert result["status"] == "failed"
        assert result["error"] == error

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = self._adapter(handler).send(to="buyer@example.com", subject="Hello", body="Body")
        assert result["status"] == "failed"
        assert result["error"].startswith("SendGrid unreachable")


class TestChannelRegistry:
    def test_defaults_to_fake_without_credentials(self, monkeypatch):
        monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
        monkeypatch.delenv("MAIL_FROM", raising=False)
        assert isinstance(get_channel(NotificationChannel.EMAIL.value), FakeEmailAdapter)

    def test_uses_sendgrid_when_configured(self, monkeypatch):
        monkeypatch.setenv("SENDGRID_API_KEY", "SG.key")
        monkeypatch.setenv("MAIL_FROM", "shop@example.com")
        assert isinstance(get_channel(NotificationChannel.EMAIL.value), SendGridEmailAdapter)

    def test_singleton_per_channel(self):
        assert get_channel("Email") is get_channel("Email")

    def test_set_channel(self):
        adapter = FakeEmailAdapter()
        set_channel("Email", adapter)
        assert get_channel("Email") is adapter

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            get_channel("SMS")

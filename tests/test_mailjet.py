"""Tests for the Mailjet passcode email client."""

import base64
import json

import pytest

from membership_bot.errors import EmailDeliveryError
from membership_bot.mailjet import MailjetClient, build_code_message
from membership_bot.retry import RetryExecutor, RetryPolicy, is_transient_http_error


@pytest.fixture
def mailer(http) -> MailjetClient:
    return MailjetClient(
        http,
        RetryExecutor(test_mode=True),
        RetryPolicy(retries=2, delay=0.25, should_retry=is_transient_http_error),
        public_key="mj-public",
        secret_key="mj-secret",
        from_email="hello@example.org",
        from_name="Verification",
    )


# -- build_code_message tests --


def test_message_contains_code_and_expiry():
    """The text part names the code and how long it lasts."""
    payload = build_code_message(
        "alice@example.org", "042137", from_email="hello@example.org", from_name="V", ttl_minutes=5
    )
    message = payload["Messages"][0]
    assert message["To"] == [{"Email": "alice@example.org", "Name": "Member"}]
    assert message["From"] == {"Email": "hello@example.org", "Name": "V"}
    assert message["Subject"] == "Your confirmation code!"
    assert message["TextPart"] == "Your confirmation code is 042137. It expires in 5 minutes."


def test_message_includes_return_link():
    payload = build_code_message(
        "a@b.org",
        "123456",
        from_email="x@y.org",
        from_name="V",
        ttl_minutes=5,
        return_url="https://discord.com/channels/G1",
    )
    assert payload["Messages"][0]["TextPart"].endswith(
        "Enter it back in Discord: https://discord.com/channels/G1"
    )


# -- MailjetClient tests --


async def test_send_code_posts_with_basic_auth(mailer, apis):
    """The send call authenticates with the API key pair."""
    status = await mailer.send_code("alice@example.org", "654321", ttl_minutes=5)
    assert status == 200

    (request,) = apis.requests_to("api.mailjet.com")
    expected = base64.b64encode(b"mj-public:mj-secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    body = json.loads(request.content)
    assert "654321" in body["Messages"][0]["TextPart"]


async def test_server_error_retried_then_raises(mailer, apis):
    """A 5xx is retried the configured number of times, then surfaced."""
    apis.mail_status = 503
    with pytest.raises(EmailDeliveryError):
        await mailer.send_code("alice@example.org", "654321", ttl_minutes=5)
    assert len(apis.requests_to("api.mailjet.com")) == 3


async def test_client_error_not_retried(mailer, apis):
    """A 401 from Mailjet fails on the first attempt."""
    apis.mail_status = 401
    with pytest.raises(EmailDeliveryError):
        await mailer.send_code("alice@example.org", "654321", ttl_minutes=5)
    assert len(apis.requests_to("api.mailjet.com")) == 1

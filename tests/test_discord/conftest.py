"""Fixtures for driving the signed webhook end to end."""

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from membership_bot.app import app
from membership_bot.discord.router import get_dispatcher
from membership_bot.discord.verification import SIGNATURE_HEADER, TIMESTAMP_HEADER

TIMESTAMP = "1700000000"


@pytest.fixture
def signed_client(dispatcher, public_key_hex):
    """TestClient whose webhook trusts the test key and uses the fake-backed dispatcher."""
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    settings = MagicMock()
    settings.discord_public_key = public_key_hex
    with patch("membership_bot.discord.verification.get_settings", return_value=settings):
        yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def post_interaction(signed_client, signing_key):
    """Sign and POST an interaction payload (dict or raw bytes) to /callback.

    ``tamper=True`` alters the body after it was signed.
    """

    def _post(payload, *, tamper: bool = False):
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        signature = signing_key.sign(TIMESTAMP.encode() + body).hex()
        if tamper:
            body = body.replace(b"1", b"2", 1)
        return signed_client.post(
            "/callback",
            content=body,
            headers={
                SIGNATURE_HEADER: signature,
                TIMESTAMP_HEADER: TIMESTAMP,
                "Content-Type": "application/json",
            },
        )

    return _post

"""Shared test fixtures.

External services are replaced at the HTTP layer: one ``httpx.MockTransport``
answers for Discord, Google Sheets and Mailjet, and records every request. The
Redis store is replaced by an in-memory store with a controllable clock.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from fastapi.testclient import TestClient

from membership_bot.app import app
from membership_bot.config import Settings
from membership_bot.services import Services, build_services
from membership_bot.sheets.credentials import SheetsCredential

GUILD_ID = "G100"
DISCORD_API = "https://discord.com/api/v10"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryStore:
    """In-memory ``KeyValueStore`` with per-key expiry."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> str | None:
        if key not in self._data:
            return None
        value, expires_at = self._data[key]
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def seed(self, **values: str) -> None:
        """Store values without expiry, for sync fixtures."""
        for key, value in values.items():
            self._data[key] = (value, None)

    def peek(self, key: str) -> str | None:
        """Synchronous read for assertions in sync tests."""
        value, expires_at = self._data.get(key, (None, None))
        if expires_at is not None and self._clock() >= expires_at:
            return None
        return value


class FakeApis:
    """Answers for Discord, Google Sheets and Mailjet; records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.sheet_values: dict[str, list[list[str]]] = {}
        self.sheets_status = 200
        self.token_status = 200
        self.identity: dict = {"id": "U200", "email": "member@example.org", "verified": True}
        self.grant_status = 204
        self.mail_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "sheets.googleapis.com":
            if self.sheets_status != 200:
                return httpx.Response(self.sheets_status, json={"error": {"code": self.sheets_status}})
            range_expression = unquote(path.split("/values/", 1)[1])
            values = self.sheet_values.get(range_expression)
            if values is None:
                return httpx.Response(200, json={"range": range_expression})
            return httpx.Response(200, json={"range": range_expression, "values": values})

        if host == "api.mailjet.com":
            return httpx.Response(self.mail_status, json={"Messages": [{"Status": "success"}]})

        if path.endswith("/oauth2/token"):
            return httpx.Response(self.token_status, json={"access_token": "user-token"})

        if path.endswith("/users/@me"):
            return httpx.Response(200, json=self.identity)

        if request.method == "PUT" and "/roles/" in path:
            return httpx.Response(self.grant_status)

        return httpx.Response(404)

    def set_roster(
        self,
        vetted: list[str] | None = None,
        private: list[str] | None = None,
        heading: str = "Email Address",
    ) -> None:
        """Populate both tier tabs with a heading cell and email rows."""
        self.sheet_values["Vetted Members!D1"] = [[heading]]
        self.sheet_values["Private Members!D1"] = [[heading]]
        self.sheet_values["Vetted Members!D2:D"] = [[e] for e in vetted or []]
        self.sheet_values["Private Members!D2:D"] = [[e] for e in private or []]

    def granted_roles(self) -> list[str]:
        return [
            r.url.path.rsplit("/", 1)[1]
            for r in self.requests
            if r.method == "PUT" and "/roles/" in r.url.path
        ]

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock)


@pytest.fixture
def apis() -> FakeApis:
    return FakeApis()


@pytest.fixture
def http(apis: FakeApis) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(apis.handler))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        discord_app_id="APP1",
        discord_guild_id=GUILD_ID,
        discord_token="bot-token",
        discord_client_secret="client-secret",
        discord_oauth_redirect_uri="https://bot.example.org/oauth",
        discord_api_base=DISCORD_API,
        mailjet_public_key="mj-public",
        mailjet_secret_key="mj-secret",
        apply_url="https://example.org/join",
    )


@pytest.fixture
def credential() -> SheetsCredential:
    expires = datetime.now(timezone.utc) + timedelta(hours=1)
    return SheetsCredential(lambda: ("sheets-token", expires))


@pytest.fixture
def services(
    settings: Settings,
    http: httpx.AsyncClient,
    store: MemoryStore,
    credential: SheetsCredential,
) -> Services:
    return build_services(settings, http=http, store=store, credential=credential)


@pytest.fixture
def dispatcher(services: Services):
    return services.dispatcher


@pytest.fixture
def signing_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture
def public_key_hex(signing_key: Ed25519PrivateKey) -> str:
    return signing_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    ).hex()


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a TestClient for the FastAPI app (lifespan not started)."""
    return TestClient(app)

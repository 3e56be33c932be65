"""Cached Google service-account access token for the Sheets API.

One ``SheetsCredential`` is created per process and injected wherever the
Sheets API is called. The token is refreshed lazily when it is missing, close
to expiry, or explicitly invalidated after a failed request.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from membership_bot.errors import RosterFetchError

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

TokenFetcher = Callable[[], tuple[str, datetime]]


def service_account_token_fetcher(service_account_json: str) -> TokenFetcher:
    """Build a blocking token fetcher from a service-account JSON key.

    Raises:
        ValueError: The JSON is empty, malformed, or not a service-account key.
    """
    if not service_account_json.strip():
        raise ValueError("google_service_account_json is empty")
    info = json.loads(service_account_json)
    credentials = service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)

    def fetch() -> tuple[str, datetime]:
        credentials.refresh(Request())
        if credentials.expiry is None:
            return credentials.token, datetime.now(timezone.utc) + timedelta(hours=1)
        # google-auth reports expiry as a naive UTC datetime
        return credentials.token, credentials.expiry.replace(tzinfo=timezone.utc)

    return fetch


class SheetsCredential:
    """Process-wide access token with an explicit expiry check.

    Args:
        fetch_token: Blocking callable returning ``(token, expiry)``; run in a
            worker thread so the event loop is never blocked.
        refresh_margin: Seconds before expiry at which the token is renewed.
        now: Clock returning an aware UTC datetime, injectable for tests.
    """

    def __init__(
        self,
        fetch_token: TokenFetcher,
        refresh_margin: float = 60.0,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._fetch_token = fetch_token
        self._refresh_margin = timedelta(seconds=refresh_margin)
        self._now = now
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._lock = asyncio.Lock()

    @property
    def is_valid(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return self._now() < self._expires_at - self._refresh_margin

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it first if needed.

        Concurrent callers share a single refresh.

        Raises:
            RosterFetchError: Google refused to issue a token.
        """
        if self.is_valid:
            return self._token
        async with self._lock:
            if not self.is_valid:
                await self._refresh()
            return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next ``get_token`` fetches a fresh one."""
        self._token = None
        self._expires_at = None

    async def _refresh(self) -> None:
        try:
            token, expires_at = await asyncio.to_thread(self._fetch_token)
        except (GoogleAuthError, ValueError) as exc:
            raise RosterFetchError("Could not obtain a Google Sheets access token") from exc
        self._token = token
        self._expires_at = expires_at
        logger.info("Refreshed Google Sheets access token, expires %s", expires_at.isoformat())

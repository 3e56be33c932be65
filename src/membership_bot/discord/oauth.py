"""Discord OAuth2: authorization-code exchange and identity lookup."""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from membership_bot.errors import OAuthError
from membership_bot.models.membership import Identity
from membership_bot.retry import RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://discord.com/oauth2/authorize"


class DiscordOAuthClient:
    """Turns the ``code`` from the OAuth redirect into a verified Discord identity."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        executor: RetryExecutor,
        policy: RetryPolicy,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        api_base: str,
    ):
        self._http = http
        self._executor = executor
        self._policy = policy
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._api_base = api_base.rstrip("/")

    def authorize_url(self) -> str:
        """Link that starts the OAuth flow, asking for the user's email."""
        query = urlencode(
            {
                "client_id": self._client_id,
                "response_type": "code",
                "redirect_uri": self._redirect_uri,
                "scope": "email identify",
            }
        )
        return f"{AUTHORIZE_URL}?{query}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            OAuthError: Discord rejected the code or could not be reached.
        """

        async def _exchange() -> httpx.Response:
            response = await self._http.post(
                f"{self._api_base}/oauth2/token",
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self._redirect_uri,
                },
            )
            response.raise_for_status()
            return response

        try:
            response = await self._executor.execute(_exchange, self._policy)
            token = response.json().get("access_token")
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise OAuthError(f"Token exchange failed: {exc}") from exc
        if not token:
            raise OAuthError("Token response had no access_token")
        return token

    async def fetch_identity(self, access_token: str) -> Identity:
        """Return the id, email and verified flag of the token's owner.

        Raises:
            OAuthError: The lookup failed or returned an unexpected body.
        """

        async def _fetch() -> httpx.Response:
            response = await self._http.get(
                f"{self._api_base}/users/@me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            return response

        try:
            response = await self._executor.execute(_fetch, self._policy)
            return Identity.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            raise OAuthError(f"Identity lookup failed: {exc}") from exc

    async def identify(self, code: str) -> Identity:
        """Run the full code → token → identity exchange."""
        token = await self.exchange_code(code)
        identity = await self.fetch_identity(token)
        logger.info("OAuth identified user %s (verified=%s)", identity.id, identity.verified)
        return identity

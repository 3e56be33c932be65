"""Process-wide collaborators, built once in the application lifespan.

Everything that holds a connection or a cached credential is created here and
handed to the dispatcher, so tests can build the same graph around fakes.
"""

import logging
from dataclasses import dataclass, replace

import httpx

from membership_bot.config import Settings
from membership_bot.discord.handlers import InteractionDispatcher
from membership_bot.discord.oauth import DiscordOAuthClient
from membership_bot.discord.roles import RoleGrantClient
from membership_bot.mailjet import MailjetClient
from membership_bot.passcodes import PasscodeStore
from membership_bot.retry import RetryExecutor, RetryPolicy
from membership_bot.sheets.client import SheetsClient, is_retryable_sheets_error
from membership_bot.sheets.credentials import (
    SheetsCredential,
    TokenFetcher,
    service_account_token_fetcher,
)
from membership_bot.store import ConfigurationStore, KeyValueStore, RedisStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    http: httpx.AsyncClient
    store: KeyValueStore
    credential: SheetsCredential
    dispatcher: InteractionDispatcher

    async def aclose(self) -> None:
        await self.http.aclose()
        if isinstance(self.store, RedisStore):
            await self.store.close()


def network_policy(settings: Settings) -> RetryPolicy:
    """Retry policy for Discord and Mailjet calls, sized to the webhook budget."""
    return settings.retry_policy


def sheets_policy(settings: Settings) -> RetryPolicy:
    return replace(settings.retry_policy, should_retry=is_retryable_sheets_error)


def _token_fetcher(settings: Settings) -> TokenFetcher:
    if settings.google_service_account_json.strip():
        return service_account_token_fetcher(settings.google_service_account_json)

    def _unconfigured():
        raise ValueError("google_service_account_json is not configured")

    logger.warning("No Google service account configured; roster lookups will fail")
    return _unconfigured


def build_services(
    settings: Settings,
    *,
    http: httpx.AsyncClient | None = None,
    store: KeyValueStore | None = None,
    credential: SheetsCredential | None = None,
) -> Services:
    """Wire every collaborator from settings. Any piece can be swapped for a fake."""
    http = http or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    store = store or RedisStore.from_url(settings.redis_url)
    credential = credential or SheetsCredential(_token_fetcher(settings))
    executor = RetryExecutor(test_mode=settings.test_mode)
    network = network_policy(settings)

    mailer = MailjetClient(
        http,
        executor,
        network,
        public_key=settings.mailjet_public_key,
        secret_key=settings.mailjet_secret_key,
        from_email=settings.mail_from_email,
        from_name=settings.mail_from_name,
    )
    return_url = (
        f"https://discord.com/channels/{settings.discord_guild_id}"
        if settings.discord_guild_id
        else None
    )
    dispatcher = InteractionDispatcher(
        config=ConfigurationStore(store),
        passcodes=PasscodeStore(
            store, mailer, ttl_seconds=settings.passcode_ttl_seconds, return_url=return_url
        ),
        sheets=SheetsClient(http, credential, executor, sheets_policy(settings)),
        oauth=DiscordOAuthClient(
            http,
            executor,
            network,
            client_id=settings.discord_app_id,
            client_secret=settings.discord_client_secret,
            redirect_uri=settings.discord_oauth_redirect_uri,
            api_base=settings.discord_api_base,
        ),
        roles=RoleGrantClient(
            http,
            executor,
            network,
            token=settings.discord_token,
            api_base=settings.discord_api_base,
        ),
        guild_id=settings.discord_guild_id,
        apply_url=settings.apply_url,
    )
    return Services(http=http, store=store, credential=credential, dispatcher=dispatcher)

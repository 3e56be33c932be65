"""Application configuration via pydantic-settings."""

from dataclasses import replace
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from membership_bot.retry import NETWORK, RetryPolicy, worst_case_duration


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Discord
    discord_app_id: str = ""
    discord_guild_id: str = ""
    discord_public_key: str = ""
    discord_token: str = ""
    discord_client_secret: str = ""
    discord_oauth_redirect_uri: str = ""
    discord_api_base: str = "https://discord.com/api/v10"

    # Google Sheets
    google_service_account_json: str = ""

    # Mailjet
    mailjet_public_key: str = ""
    mailjet_secret_key: str = ""
    mail_from_email: str = "hello@example.org"
    mail_from_name: str = "Community Verification"

    # Store
    redis_url: str = "redis://localhost:6379/0"
    passcode_ttl_seconds: int = 300

    # Outbound calls: (retries + 1) * timeout + backoff must fit the webhook budget
    retry_count: int = 1
    retry_base_delay_seconds: float = 0.25
    http_timeout_seconds: float = 1.25
    webhook_budget_seconds: float = 3.0

    # Community
    apply_url: str = "https://example.org/join"

    # App
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8080

    @property
    def test_mode(self) -> bool:
        return self.environment == "test"

    @property
    def retry_policy(self) -> RetryPolicy:
        """Network retry policy with the configured retry count and base delay."""
        return replace(NETWORK, retries=self.retry_count, delay=self.retry_base_delay_seconds)

    @model_validator(mode="after")
    def _check_retry_budget(self) -> "Settings":
        """Reject retry settings whose slowest possible call cannot fit the webhook window."""
        worst = worst_case_duration(self.retry_policy, self.http_timeout_seconds)
        if worst >= self.webhook_budget_seconds:
            raise ValueError(
                f"worst-case call time of {worst:.2f}s exceeds the "
                f"{self.webhook_budget_seconds:.2f}s webhook budget"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()

"""Mailjet client for passcode emails."""

import logging

import httpx

from membership_bot.errors import EmailDeliveryError
from membership_bot.retry import RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)

MAILJET_SEND_URL = "https://api.mailjet.com/v3.1/send"


def build_code_message(
    recipient: str,
    code: str,
    *,
    from_email: str,
    from_name: str,
    ttl_minutes: int,
    return_url: str | None = None,
) -> dict:
    """Build the Mailjet v3.1 send payload for a passcode email. Pure function."""
    text = f"Your confirmation code is {code}. It expires in {ttl_minutes} minutes."
    if return_url:
        text += f"\n\nEnter it back in Discord: {return_url}"
    return {
        "Messages": [
            {
                "From": {"Email": from_email, "Name": from_name},
                "To": [{"Email": recipient, "Name": "Member"}],
                "Subject": "Your confirmation code!",
                "TextPart": text,
            }
        ]
    }


class MailjetClient:
    """Sends plain-text passcode emails through the Mailjet send API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        executor: RetryExecutor,
        policy: RetryPolicy,
        *,
        public_key: str,
        secret_key: str,
        from_email: str,
        from_name: str,
        send_url: str = MAILJET_SEND_URL,
    ):
        self._http = http
        self._executor = executor
        self._policy = policy
        self._auth = httpx.BasicAuth(public_key, secret_key)
        self._from_email = from_email
        self._from_name = from_name
        self._send_url = send_url

    async def send_code(
        self, recipient: str, code: str, ttl_minutes: int, return_url: str | None = None
    ) -> int:
        """Send a passcode email and return Mailjet's HTTP status.

        Raises:
            EmailDeliveryError: Mailjet rejected the message or was unreachable
                after retries.
        """
        payload = build_code_message(
            recipient,
            code,
            from_email=self._from_email,
            from_name=self._from_name,
            ttl_minutes=ttl_minutes,
            return_url=return_url,
        )

        async def _send() -> httpx.Response:
            response = await self._http.post(self._send_url, json=payload, auth=self._auth)
            response.raise_for_status()
            return response

        try:
            response = await self._executor.execute(_send, self._policy)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Mailjet send failed: {exc}") from exc

        logger.info("Mailjet accepted passcode email for %s (%d)", recipient, response.status_code)
        return response.status_code

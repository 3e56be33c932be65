"""One-time passcodes proving control of an email address.

A passcode is stored under ``email:{normalized}`` with a TTL, so it lives in
the shared store rather than in any one process. Starting again for the same
email overwrites the previous code.
"""

import logging
import secrets

from fastapi import BackgroundTasks

from membership_bot.emails import normalize_email
from membership_bot.errors import EmailDeliveryError
from membership_bot.mailjet import MailjetClient
from membership_bot.store import KeyValueStore

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
DEFAULT_TTL_SECONDS = 5 * 60


def passcode_key(email: str) -> str:
    return f"email:{normalize_email(email)}"


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return a zero-padded random numeric code."""
    return f"{secrets.randbelow(10**length):0{length}d}"


class PasscodeStore:
    """Issues and checks email passcodes.

    Args:
        store: Shared key/value store holding live codes.
        mailer: Client used to email the code to its owner.
        ttl_seconds: Lifetime of a code.
        return_url: Link back into the Discord community, included in the email.
    """

    def __init__(
        self,
        store: KeyValueStore,
        mailer: MailjetClient,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        return_url: str | None = None,
    ):
        self._store = store
        self._mailer = mailer
        self._ttl_seconds = ttl_seconds
        self._return_url = return_url

    async def start(self, email: str, background_tasks: BackgroundTasks | None = None) -> str:
        """Store a fresh code for ``email`` and send it out.

        The code is stored before delivery is attempted. With
        ``background_tasks`` the email goes out after the response is sent;
        without, it is sent inline. Either way a delivery failure never
        propagates.
        """
        email = normalize_email(email)
        code = generate_code()
        await self._store.put(passcode_key(email), code, ttl_seconds=self._ttl_seconds)
        logger.info("Issued passcode for %s (ttl %ds)", email, self._ttl_seconds)

        if background_tasks is not None:
            background_tasks.add_task(self.deliver, email, code)
        else:
            await self.deliver(email, code)
        return code

    async def deliver(self, email: str, code: str) -> bool:
        """Email the code. Returns False instead of raising on failure."""
        try:
            await self._mailer.send_code(
                email, code, ttl_minutes=self._ttl_seconds // 60, return_url=self._return_url
            )
        except EmailDeliveryError:
            logger.warning("Passcode email to %s was not delivered", email, exc_info=True)
            return False
        return True

    async def check(self, email: str, submitted: str) -> bool:
        """Compare a submitted code with the live one for ``email``.

        A missing or expired code never matches. The code is left in place
        either way; call ``consume`` once the verification it guards is done.
        """
        key = passcode_key(email)
        stored = await self._store.get(key)
        if stored is None or not secrets.compare_digest(stored.encode(), submitted.encode()):
            logger.info("Passcode mismatch for %s", normalize_email(email))
            return False
        return True

    async def consume(self, email: str) -> None:
        """Delete the live code for ``email`` so it cannot be used again."""
        await self._store.delete(passcode_key(email))

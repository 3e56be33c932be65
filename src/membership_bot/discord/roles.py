"""Discord role grants.

Grants are best effort: a failed grant is logged and reported back in its
``RoleGrant`` but never raised, so one tier failing does not stop the other.
Discord treats adding a role the member already has as a no-op, so repeating a
grant is safe.
"""

import logging

import httpx

from membership_bot.models.membership import MembershipResult, RoleBindings, RoleGrant
from membership_bot.retry import RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)


class RoleGrantClient:
    """Adds guild roles to members with the bot token."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        executor: RetryExecutor,
        policy: RetryPolicy,
        *,
        token: str,
        api_base: str,
    ):
        self._http = http
        self._executor = executor
        self._policy = policy
        self._token = token
        self._api_base = api_base.rstrip("/")

    async def grant(self, role_id: str, guild_id: str, user_id: str) -> RoleGrant:
        """Attach ``role_id`` to ``user_id`` in ``guild_id``."""
        url = f"{self._api_base}/guilds/{guild_id}/members/{user_id}/roles/{role_id}"
        logger.info("Granting user %s role %s", user_id, role_id)

        async def _put() -> httpx.Response:
            response = await self._http.put(url, headers={"Authorization": f"Bot {self._token}"})
            if response.status_code == 429 or response.status_code >= 500:
                response.raise_for_status()
            return response

        try:
            response = await self._executor.execute(_put, self._policy)
        except httpx.HTTPError as exc:
            logger.error("Role grant %s for %s failed: %s", role_id, user_id, exc)
            status = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
            return RoleGrant(role_id=role_id, user_id=user_id, status_code=status)

        grant = RoleGrant(role_id=role_id, user_id=user_id, status_code=response.status_code)
        if not grant.ok:
            logger.warning("Discord error: %d %s", response.status_code, response.text)
        return grant

    async def grant_tiers(
        self,
        membership: MembershipResult,
        bindings: RoleBindings,
        guild_id: str,
        user_id: str,
    ) -> list[RoleGrant]:
        """Grant one role per matched tier, vetted first, continuing past failures."""
        return [
            await self.grant(bindings.role_for(tier), guild_id, user_id)
            for tier in membership.tiers
        ]

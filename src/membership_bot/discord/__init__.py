"""Discord ingress: signature verification, interaction dispatch, OAuth and role grants."""

from membership_bot.discord.handlers import InteractionDispatcher
from membership_bot.discord.oauth import DiscordOAuthClient
from membership_bot.discord.roles import RoleGrantClient
from membership_bot.discord.router import get_dispatcher, router
from membership_bot.discord.verification import verify_discord_request, verify_signature

__all__ = [
    "DiscordOAuthClient",
    "InteractionDispatcher",
    "RoleGrantClient",
    "get_dispatcher",
    "router",
    "verify_discord_request",
    "verify_signature",
]

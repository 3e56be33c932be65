"""Data models for interactions, membership and role grants."""

from membership_bot.models.interaction import (
    CommandInteraction,
    ComponentInteraction,
    Interaction,
    InteractionType,
    ModalSubmitInteraction,
    PingInteraction,
    TextField,
    UnknownInteraction,
    decode_interaction,
)
from membership_bot.models.membership import (
    Identity,
    MembershipResult,
    RoleBindings,
    RoleGrant,
    Tier,
)

__all__ = [
    "CommandInteraction",
    "ComponentInteraction",
    "Identity",
    "Interaction",
    "InteractionType",
    "MembershipResult",
    "ModalSubmitInteraction",
    "PingInteraction",
    "RoleBindings",
    "RoleGrant",
    "TextField",
    "Tier",
    "UnknownInteraction",
    "decode_interaction",
]

"""Membership, identity and role-grant models."""

from enum import Enum

from pydantic import BaseModel


class Tier(str, Enum):
    """Membership tiers checked against the roster. Values double as store keys."""

    VETTED = "vetted"
    PRIVATE = "private"


class MembershipResult(BaseModel):
    """Which roster lists an email was found in. A user may be in both or neither."""

    is_vetted: bool = False
    is_private: bool = False

    @property
    def tiers(self) -> list[Tier]:
        """Matched tiers in grant order (vetted first)."""
        matched = []
        if self.is_vetted:
            matched.append(Tier.VETTED)
        if self.is_private:
            matched.append(Tier.PRIVATE)
        return matched

    @property
    def any(self) -> bool:
        return self.is_vetted or self.is_private


class RoleBindings(BaseModel):
    """Discord role id granted for each tier, set by the admin during /setup."""

    vetted_role_id: str
    private_role_id: str

    def role_for(self, tier: Tier) -> str:
        return self.vetted_role_id if tier == Tier.VETTED else self.private_role_id


class Identity(BaseModel):
    """The Discord user behind an OAuth access token."""

    id: str
    email: str | None = None
    verified: bool = False


class RoleGrant(BaseModel):
    """Outcome of one role-grant call. ``status_code`` is None if no response arrived."""

    role_id: str
    user_id: str
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

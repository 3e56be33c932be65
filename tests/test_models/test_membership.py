"""Tests for membership, role binding and grant models."""

from membership_bot.models.membership import (
    Identity,
    MembershipResult,
    RoleBindings,
    RoleGrant,
    Tier,
)


def test_tiers_vetted_first():
    """Both tiers are returned vetted first."""
    result = MembershipResult(is_vetted=True, is_private=True)
    assert result.tiers == [Tier.VETTED, Tier.PRIVATE]
    assert result.any


def test_no_tiers():
    result = MembershipResult()
    assert result.tiers == []
    assert not result.any


def test_private_only():
    assert MembershipResult(is_private=True).tiers == [Tier.PRIVATE]


def test_role_for_tier():
    bindings = RoleBindings(vetted_role_id="R1", private_role_id="R2")
    assert bindings.role_for(Tier.VETTED) == "R1"
    assert bindings.role_for(Tier.PRIVATE) == "R2"


def test_role_grant_ok():
    """Only 2xx statuses count as a successful grant."""
    assert RoleGrant(role_id="R", user_id="U", status_code=204).ok
    assert not RoleGrant(role_id="R", user_id="U", status_code=403).ok
    assert not RoleGrant(role_id="R", user_id="U").ok


def test_identity_ignores_extra_fields():
    identity = Identity.model_validate(
        {"id": "U1", "username": "calvin", "email": "c@x.org", "verified": True}
    )
    assert identity.email == "c@x.org"
    assert identity.verified

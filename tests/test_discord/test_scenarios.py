"""End-to-end verification scenarios through the signed webhook.

Discord, Google Sheets and Mailjet are served by the in-process fake APIs;
the store is in memory.
"""

import pytest


def _modal(custom_id: str, **values: str) -> dict:
    return {
        "type": 5,
        "member": {"user": {"id": "U1"}},
        "data": {
            "custom_id": custom_id,
            "components": [
                {"type": 1, "components": [{"type": 4, "custom_id": k, "value": v}]}
                for k, v in values.items()
            ],
        },
    }


def _click(custom_id: str) -> dict:
    return {"type": 3, "member": {"user": {"id": "U1"}}, "data": {"custom_id": custom_id}}


@pytest.fixture
def configured(store, apis):
    """Roles R1/R2 and sheet SHEET123 already set up by an admin."""
    store.seed(vetted="R1", private="R2", sheet="SHEET123")
    apis.set_roster(vetted=["test@example.com"], private=["someone-else@example.com"])


def test_admin_setup(post_interaction, store, apis):
    """Setup stores roles and sheet id, then posts both entry buttons."""
    apis.set_roster()

    response = post_interaction(
        {
            "type": 2,
            "member": {"user": {"id": "ADMIN"}},
            "data": {
                "name": "setup",
                "options": [
                    {"name": "vetted-role", "type": 8, "value": "R1"},
                    {"name": "private-role", "type": 8, "value": "R2"},
                ],
            },
        }
    )
    assert response.json()["data"]["custom_id"] == "modal-setup"

    response = post_interaction(
        _modal(
            "modal-setup",
            **{"sheet-url": "https://docs.google.com/spreadsheets/d/SHEET123/edit"},
        )
    )
    body = response.json()
    assert body["type"] == 4
    buttons = body["data"]["components"][0]["components"]
    assert [b["label"] for b in buttons] == ["Verify me", "Manually verify email"]
    assert "url" in buttons[0]
    assert buttons[1]["custom_id"] == "manual-verify"
    assert store.peek("sheet") == "SHEET123"
    assert store.peek("vetted") == "R1"
    assert store.peek("private") == "R2"


def test_manual_flow_grants_matching_tier_only(post_interaction, store, apis, configured):
    """Email → code → roster lookup → one grant for the vetted role."""
    response = post_interaction(_click("manual-verify"))
    assert response.json()["data"]["custom_id"] == "modal-verify-email"

    response = post_interaction(_modal("modal-verify-email", email="Test@Example.com"))
    button = response.json()["data"]["components"][0]["components"][0]
    assert button["custom_id"] == "verify-email:test@example.com"

    code = store.peek("email:test@example.com")
    assert code is not None and len(code) == 6 and code.isdigit()
    assert len(apis.requests_to("api.mailjet.com")) == 1

    response = post_interaction(_click(button["custom_id"]))
    modal_id = response.json()["data"]["custom_id"]
    assert modal_id == "modal-confirm-code:test@example.com"

    response = post_interaction(_modal(modal_id, code=code))
    body = response.json()
    assert body["type"] == 7
    assert body["data"]["components"] == []
    assert apis.granted_roles() == ["R1"]


def test_wrong_code_keeps_stored_code(post_interaction, store, apis, configured):
    """A wrong guess leaves the code usable for a later correct submission."""
    post_interaction(_modal("modal-verify-email", email="test@example.com"))
    code = store.peek("email:test@example.com")
    wrong = "000000" if code != "000000" else "999999"

    response = post_interaction(_modal("modal-confirm-code:test@example.com", code=wrong))
    assert response.json() == {
        "type": 7,
        "data": {"content": "That's not the right code! Try again?"},
    }
    assert store.peek("email:test@example.com") == code
    assert apis.granted_roles() == []

    response = post_interaction(_modal("modal-confirm-code:test@example.com", code=code))
    assert response.json()["data"]["content"].startswith("Thank you!")
    assert apis.granted_roles() == ["R1"]


def test_oauth_email_not_on_roster(signed_client, apis, configured):
    """An identity on neither list sees the not-found page and gets no roles."""
    apis.identity = {"id": "U300", "email": "stranger@example.org", "verified": True}
    response = signed_client.get("/oauth", params={"code": "auth-code"})
    assert response.status_code == 200
    assert "stranger@example.org was not found in the list" in response.text
    assert apis.granted_roles() == []

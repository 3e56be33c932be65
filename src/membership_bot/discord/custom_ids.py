"""Custom ids carried on buttons and modals.

Discord echoes a component's ``custom_id`` back on the next callback. That is
the only place the workflow step and the email being verified survive between
requests, so the later steps encode the email after a colon.
"""

SETUP_MODAL = "modal-setup"
SHEET_URL_INPUT = "sheet-url"

MANUAL_VERIFY = "manual-verify"
EMAIL_MODAL = "modal-verify-email"
EMAIL_INPUT = "email"

ENTER_CODE = "verify-email"
CODE_MODAL = "modal-confirm-code"
CODE_INPUT = "code"

# Discord caps custom ids at 100 characters
MAX_CUSTOM_ID_LENGTH = 100
MAX_EMAIL_LENGTH = MAX_CUSTOM_ID_LENGTH - len(CODE_MODAL) - 1


def enter_code(email: str) -> str:
    return f"{ENTER_CODE}:{email}"


def code_modal(email: str) -> str:
    return f"{CODE_MODAL}:{email}"


def parse(custom_id: str) -> tuple[str, str | None]:
    """Split a custom id into its step and optional payload. Pure function.

    ``"verify-email:a@b.org"`` → ``("verify-email", "a@b.org")``;
    ``"manual-verify"`` → ``("manual-verify", None)``.
    """
    step, sep, payload = custom_id.partition(":")
    return step, payload if sep else None

"""Exception hierarchy for the verification workflow.

Only ``AuthenticityError`` escapes to the HTTP layer as an error status. Every
other error is caught at the dispatcher boundary and rendered as a 200 response
carrying a human-readable message, because Discord expects content back for
every signed interaction.
"""

from enum import Enum


class SetupFailure(str, Enum):
    """Reasons the admin setup workflow can fail, worded for the admin."""

    INVALID_URL = "That URL doesn't look like a Google Sheet"
    ERROR_FETCHING = "There was a problem fetching from the Google Sheet"
    WRONG_HEADINGS = (
        "The Google Sheet provided did not have the sheet name or column headers expected. "
        "Looked for sheets named 'Private Members' and 'Vetted Members', "
        "looked for 'Email Address' in column D."
    )


class MembershipBotError(Exception):
    """Base class for all errors raised by this package."""


class AuthenticityError(MembershipBotError):
    """The request was not signed by Discord."""


class ConfigurationError(MembershipBotError):
    """Admin-configured state (sheet id, role ids) is missing."""

    def __init__(self, missing: str):
        self.missing = missing
        super().__init__(f"'{missing}' has not been configured; run /setup first")


class SetupValidationError(MembershipBotError):
    """The sheet supplied during setup is unusable."""

    def __init__(self, reason: SetupFailure):
        self.reason = reason
        super().__init__(reason.value)


class TransientExternalError(MembershipBotError):
    """An external service failed after retries were exhausted."""


class RosterFetchError(TransientExternalError):
    """Google Sheets could not be read."""


class OAuthError(TransientExternalError):
    """The Discord OAuth code exchange or identity lookup failed."""


class EmailDeliveryError(TransientExternalError):
    """Mailjet rejected or never received the passcode email."""

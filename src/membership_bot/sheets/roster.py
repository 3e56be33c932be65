"""Roster lookups: setup-time heading validation and live membership checks."""

import asyncio
import logging
import re

from membership_bot.emails import normalize_email
from membership_bot.errors import RosterFetchError, SetupFailure, SetupValidationError
from membership_bot.models.membership import MembershipResult, Tier
from membership_bot.sheets.client import SheetsClient

logger = logging.getLogger(__name__)

TIER_TABS = {
    Tier.VETTED: "Vetted Members",
    Tier.PRIVATE: "Private Members",
}
EMAIL_COLUMN = "D"
EXPECTED_HEADING = "Email Address"

_SHEET_ID_RE = re.compile(r"/d/([^/]+)/edit")


def heading_range(tab: str) -> str:
    return f"{tab}!{EMAIL_COLUMN}1"


def email_range(tab: str) -> str:
    return f"{tab}!{EMAIL_COLUMN}2:{EMAIL_COLUMN}"


def extract_sheet_id(url: str) -> str:
    """Pull the spreadsheet id out of a Google Sheets edit URL.

    Raises:
        SetupValidationError: The URL has no ``/d/{id}/edit`` segment.
    """
    match = _SHEET_ID_RE.search(url or "")
    if not match:
        raise SetupValidationError(SetupFailure.INVALID_URL)
    return match.group(1)


def email_in_list(email: str, entries: list[str]) -> bool:
    """Case-insensitive substring match of a normalized email. Pure function.

    Substring containment mirrors how the roster has always been matched, so
    ``"ann@x.org"`` also matches an entry ``"joann@x.org"``. An empty email
    never matches.
    """
    needle = normalize_email(email)
    if not needle:
        return False
    return any(needle in entry.lower() for entry in entries)


async def validate_headings(client: SheetsClient, sheet_id: str) -> list[str]:
    """Confirm both tier tabs have the expected heading in the email column.

    Returns:
        The headings read, one per tab.

    Raises:
        SetupValidationError: ERROR_FETCHING if the sheet could not be read,
            WRONG_HEADINGS if any tab's heading differs or is missing.
    """
    try:
        columns = await asyncio.gather(
            *(client.fetch_column(sheet_id, heading_range(tab)) for tab in TIER_TABS.values())
        )
    except RosterFetchError as exc:
        raise SetupValidationError(SetupFailure.ERROR_FETCHING) from exc

    headings = [cell for column in columns for cell in column]
    logger.info("Roster column headings: %s", ", ".join(headings))
    if any(column != [EXPECTED_HEADING] for column in columns):
        raise SetupValidationError(SetupFailure.WRONG_HEADINGS)
    return headings


async def check_membership(client: SheetsClient, sheet_id: str, email: str) -> MembershipResult:
    """Look the email up in both tier lists, fetched fresh from the sheet.

    Raises:
        RosterFetchError: Either list could not be fetched.
    """
    vetted, private = await asyncio.gather(
        client.fetch_column(sheet_id, email_range(TIER_TABS[Tier.VETTED])),
        client.fetch_column(sheet_id, email_range(TIER_TABS[Tier.PRIVATE])),
    )
    result = MembershipResult(
        is_vetted=email_in_list(email, vetted),
        is_private=email_in_list(email, private),
    )
    logger.info(
        "%s is %s and %s",
        email,
        "vetted" if result.is_vetted else "not vetted",
        "private" if result.is_private else "not private",
    )
    return result

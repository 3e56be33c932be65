"""Google Sheets roster: credentials, values client and membership lookups."""

from membership_bot.sheets.client import SheetsClient, flatten_values
from membership_bot.sheets.credentials import SheetsCredential, service_account_token_fetcher
from membership_bot.sheets.roster import (
    check_membership,
    email_in_list,
    extract_sheet_id,
    validate_headings,
)

__all__ = [
    "SheetsClient",
    "SheetsCredential",
    "check_membership",
    "email_in_list",
    "extract_sheet_id",
    "flatten_values",
    "service_account_token_fetcher",
    "validate_headings",
]

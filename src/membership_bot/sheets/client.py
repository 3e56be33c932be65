"""Google Sheets values API client."""

import logging
from urllib.parse import quote

import httpx

from membership_bot.errors import RosterFetchError
from membership_bot.retry import RetryExecutor, RetryPolicy
from membership_bot.sheets.credentials import SheetsCredential

logger = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4"


def is_retryable_sheets_error(error: BaseException) -> bool:
    """Retry everything except requests Google will never accept.

    400 (bad range) and 404 (unknown sheet) are permanent. 401/403 are retried
    because the token is refreshed before the next attempt.
    """
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code not in (400, 404)
    return isinstance(error, (httpx.HTTPError, RosterFetchError))


def flatten_values(data: object) -> list[str]:
    """Flatten a values response into non-empty cell strings. Pure function.

    A missing or malformed ``values`` field yields an empty list.
    """
    if not isinstance(data, dict):
        return []
    values = data.get("values")
    if not isinstance(values, list):
        return []
    cells = []
    for row in values:
        if not isinstance(row, list):
            continue
        cells.extend(str(cell) for cell in row if cell)
    return cells


class SheetsClient:
    """Reads single-column ranges from a spreadsheet."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        credential: SheetsCredential,
        executor: RetryExecutor,
        policy: RetryPolicy,
        base_url: str = SHEETS_API,
    ):
        self._http = http
        self._credential = credential
        self._executor = executor
        self._policy = policy.with_observer(self._on_retry)
        self._base_url = base_url.rstrip("/")

    async def fetch_column(self, sheet_id: str, range_expression: str) -> list[str]:
        """Fetch a range such as ``"Vetted Members!D2:D"`` as a flat list of cells.

        Raises:
            RosterFetchError: The API could not be reached or kept returning
                an error after retries.
        """
        url = (
            f"{self._base_url}/spreadsheets/{quote(sheet_id, safe='')}"
            f"/values/{quote(range_expression, safe='')}"
        )

        async def _fetch() -> object:
            token = await self._credential.get_token()
            response = await self._http.get(url, headers={"Authorization": f"Bearer {token}"})
            logger.info("Sheets GET %s -> %d", range_expression, response.status_code)
            response.raise_for_status()
            return response.json()

        try:
            data = await self._executor.execute(_fetch, self._policy)
        except RosterFetchError:
            raise
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Sheets fetch failed for %s: %s", range_expression, exc)
            raise RosterFetchError(
                "Something went wrong while retrieving the list of emails."
            ) from exc

        return flatten_values(data)

    def _on_retry(self, error: BaseException, attempt: int) -> None:
        logger.info("Sheets request failed (attempt %d), refreshing token: %s", attempt, error)
        self._credential.invalidate()

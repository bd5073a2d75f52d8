"""Fetch spreadsheet tabs as CSV over HTTP."""

import logging

import httpx

from memberpages.config import get_settings
from memberpages.exceptions import SheetSourceError
from memberpages.sheets.parsers import export_url, parse_csv_text
from memberpages.sheets.schemas import ParsedTable

logger = logging.getLogger(__name__)


class SheetFetcher:
    """Downloads the CSV export of a spreadsheet tab.

    Attributes:
        timeout: Request timeout in seconds.
    """

    def __init__(self, timeout: float | None = None):
        """Initialize the fetcher.

        Args:
            timeout: Request timeout (defaults to settings.sheet_fetch_timeout).
        """
        self.timeout = timeout if timeout is not None else get_settings().sheet_fetch_timeout

    async def fetch_csv(self, sheet_id: str, gid: str) -> str:
        """Download one tab as CSV text.

        Args:
            sheet_id: Spreadsheet id.
            gid: Tab id.

        Returns:
            str: CSV text.

        Raises:
            SheetSourceError: On a non-2xx answer or a network error.
        """
        url = export_url(sheet_id, gid)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as e:
            logger.warning(f"Sheet fetch failed (HTTP {e.response.status_code}) for {sheet_id}:{gid}")
            raise SheetSourceError(
                f"Failed to fetch sheet (HTTP {e.response.status_code})"
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Sheet fetch network error for {sheet_id}:{gid}: {e}")
            raise SheetSourceError(f"Failed to fetch sheet: {e}") from e

    async def fetch_table(self, sheet_id: str, gid: str) -> ParsedTable:
        """Download and parse one tab."""
        return parse_csv_text(await self.fetch_csv(sheet_id, gid))


# Singleton instance
_sheet_fetcher: SheetFetcher | None = None


def get_sheet_fetcher() -> SheetFetcher:
    """Get the sheet fetcher singleton.

    Returns:
        SheetFetcher: The fetcher instance.
    """
    global _sheet_fetcher
    if _sheet_fetcher is None:
        _sheet_fetcher = SheetFetcher()
    return _sheet_fetcher

"""Spreadsheet API connection and request helpers for the course sheets.

The backend is an Apps Script web app sitting in front of the spreadsheet:

- ``GET ?type=<Sheet>`` dumps a sheet as a list of header-keyed rows
- ``GET ?type=CheckApplication&name=&email=`` returns matching applications
- ``POST`` with a JSON body submits a new application or a cancellation
"""

import logging
from typing import Any

import httpx
from fastapi import Request

from course_site.config import SHEETS_API_URL, SHEETS_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

CHECK_APPLICATION = "CheckApplication"
CANCEL = "Cancel"


class SheetsAPIError(Exception):
    """The endpoint could not be reached or answered with something unreadable."""


class SheetsClient:
    """Async client for the spreadsheet endpoint. One instance per app."""

    def __init__(
        self,
        base_url: str = SHEETS_API_URL,
        timeout: float = SHEETS_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise RuntimeError("SHEETS_API_URL must be set")
        self.base_url = base_url
        # Apps Script answers every call with a redirect to the rendered output
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # -----------------------------------------------------------------------
    # Generic helpers
    # -----------------------------------------------------------------------

    async def _request(self, method: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, self.base_url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise SheetsAPIError(f"{method} {self.base_url} failed: {e}") from e
        except ValueError as e:
            raise SheetsAPIError(f"{method} {self.base_url} returned invalid JSON") from e

    async def _get(self, params: dict[str, str]) -> Any:
        logger.debug("GET sheets %s", params.get("type"))
        return await self._request("GET", params=params)

    async def _post(self, body: dict) -> dict:
        logger.debug("POST sheets type=%s", body.get("type", "Apply"))
        result = await self._request("POST", json=body)
        if not isinstance(result, dict):
            raise SheetsAPIError(f"POST returned {type(result).__name__}, expected an object")
        return result

    # -----------------------------------------------------------------------
    # Sheets
    # -----------------------------------------------------------------------

    async def fetch_sheet(self, sheet: str) -> Any:
        """Dump a sheet. A list of rows, or ``{"error": ...}`` for an unknown sheet."""
        return await self._get({"type": sheet})

    # -----------------------------------------------------------------------
    # Applications
    # -----------------------------------------------------------------------

    async def check_application(self, name: str, email: str) -> Any:
        """Look up applications by exact (trimmed) name and email."""
        return await self._get({
            "type": CHECK_APPLICATION,
            "name": name.strip(),
            "email": email.strip(),
        })

    async def submit_application(self, payload: dict) -> dict:
        """Submit a new application. Returns ``{success, message|error}``."""
        return await self._post(payload)

    async def cancel_application(self, name: str, email: str, course: str,
                                 reason: str) -> dict:
        """Cancel the application identified by (name, email, course)."""
        return await self._post({
            "type": CANCEL,
            "name": name,
            "email": email,
            "course": course,
            "cancelReason": reason,
        })


def get_sheets_client(request: Request) -> SheetsClient:
    """FastAPI dependency — returns the app's SheetsClient instance."""
    return request.app.state.sheets

"""Data cache — memoises the three read-only sheets for the life of the app.

Each sheet has one slot. The first access fetches it; every later access gets
the stored list back without touching the network. Concurrent first accesses
share one in-flight task, so a slot is never fetched twice. A failed fetch
resolves to ``[]`` and leaves the slot empty, so the next access tries again.
Nothing is ever invalidated: a restart is the only refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from fastapi import Request

from course_site.config import COMPANIES_SHEET, COURSES_SHEET, FAQ_SHEET
from course_site.records import CourseRound, FaqEntry, company_name
from course_site.sheets_client import SheetsAPIError, SheetsClient

logger = logging.getLogger(__name__)


class DataCache:
    """Get-or-fetch access to courses, FAQ entries and company names."""

    def __init__(self, sheets: SheetsClient) -> None:
        self._sheets = sheets
        self._values: dict[str, list] = {}
        self._pending: dict[str, asyncio.Future] = {}

    async def get_courses(self) -> list[CourseRound]:
        return await self._get_or_fetch(COURSES_SHEET, _parse_courses)

    async def get_faq(self) -> list[FaqEntry]:
        return await self._get_or_fetch(FAQ_SHEET, _parse_faq)

    async def get_companies(self) -> list[str]:
        return await self._get_or_fetch(COMPANIES_SHEET, _parse_companies)

    async def _get_or_fetch(self, sheet: str, parse: Callable[[list], list]) -> list:
        if sheet in self._values:
            return self._values[sheet]

        pending = self._pending.get(sheet)
        if pending is None:
            pending = asyncio.ensure_future(self._fill(sheet, parse))
            self._pending[sheet] = pending
        # A caller giving up must not cancel the fetch other callers wait on
        return await asyncio.shield(pending)

    async def _fill(self, sheet: str, parse: Callable[[list], list]) -> list:
        try:
            payload = await self._sheets.fetch_sheet(sheet)
        except SheetsAPIError as e:
            logger.error("Failed to load sheet %s: %s", sheet, e)
            return []
        finally:
            self._pending.pop(sheet, None)

        if not isinstance(payload, list):
            logger.warning("Sheet %s returned %s instead of a list: %.200r",
                           sheet, type(payload).__name__, payload)
            return []

        value = parse([row for row in payload if isinstance(row, dict)])
        self._values[sheet] = value
        logger.info("Loaded %d entries from sheet %s", len(value), sheet)
        return value


def _parse_courses(rows: list[dict[str, Any]]) -> list[CourseRound]:
    return [CourseRound.from_row(row) for row in rows]


def _parse_faq(rows: list[dict[str, Any]]) -> list[FaqEntry]:
    entries = [FaqEntry.from_row(row) for row in rows]
    return [e for e in entries if e.question]


def _parse_companies(rows: list[dict[str, Any]]) -> list[str]:
    names: list[str] = []
    for row in rows:
        name = company_name(row)
        if name and name not in names:
            names.append(name)
    return names


def get_data_cache(request: Request) -> DataCache:
    """FastAPI dependency — returns the app's DataCache instance."""
    return request.app.state.data_cache

"""Typed records for rows coming back from the spreadsheet.

Rows arrive keyed by the sheet's header row (Korean and English headers mixed).
They are translated here, right at the API boundary, so nothing past this
module ever reads a raw header key.
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass

from markupsafe import Markup, escape

# Course round statuses as written in the Education sheet
RECRUITING = "모집중"
UPCOMING = "모집예정"
CLOSED_FULL = "모집마감"
CLOSED = "마감"
CANCELLED = "폐강"
PREPARING = "준비중"

# Application statuses as written in the Applications sheet
PENDING = "대기"
APPROVED = "승인"
REJECTED = "반려"
CANCELLED_APPLICATION = "취소"
COMPLETED = "완료"

CANCELLABLE_STATUSES = {PENDING, APPROVED}

STATUS_COLORS = {
    RECRUITING: "#059669",
    CLOSED: "#6b7280",
    CLOSED_FULL: "#6b7280",
    UPCOMING: "#3b82f6",
    CANCELLED: "#ef4444",
}
DEFAULT_STATUS_COLOR = "#6b7280"

_DRIVE_HOST = "drive.google.com"
_DRIVE_DIRECT = "https://lh3.googleusercontent.com/u/0/d/{file_id}"
_INT_RE = re.compile(r"^-?\d+$")
_DATE_RE = re.compile(r"(\d{4})\D{1,3}(\d{1,2})\D{1,3}(\d{1,2})")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------

def coerce_id(value) -> int | str:
    """Integer ids stay integers; anything else is kept as the sheet wrote it."""
    text = str(value).strip() if value is not None else ""
    if _INT_RE.match(text):
        return int(text)
    return value if value is not None else ""


def drive_image_url(url):
    """Rewrite a Drive "view" link to a direct-content link.

    Handles ``/file/d/<id>/view`` and ``open?id=<id>``; every other value is
    returned untouched.
    """
    if not url or not isinstance(url, str) or _DRIVE_HOST not in url:
        return url

    file_id = ""
    if "/file/d/" in url:
        file_id = url.split("/file/d/", 1)[1].split("/", 1)[0].split("?", 1)[0]
    elif "id=" in url:
        query = urllib.parse.urlsplit(url).query
        file_id = urllib.parse.parse_qs(query).get("id", [""])[0]

    if file_id:
        return _DRIVE_DIRECT.format(file_id=file_id)
    return url


def format_date(value) -> str:
    """Display a sheet date as ``YYYY.MM.DD``. Unparseable values pass through."""
    if not value:
        return ""
    text = str(value).strip()
    match = _DATE_RE.search(text)
    if not match:
        return text
    year, month, day = match.groups()
    return f"{year}.{int(month):02d}.{int(day):02d}"


def render_markdown(text) -> Markup:
    """Escape free text from the sheet and turn ``**bold**`` into <strong>."""
    if not text:
        return Markup("")
    escaped = str(escape(str(text)))
    return Markup(_BOLD_RE.sub(r"<strong>\1</strong>", escaped))


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)


def _text(row: dict, *keys: str) -> str:
    """First non-empty value among header aliases, stripped."""
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class CourseRound:
    """One scheduled offering of a course (one Education sheet row)."""

    id: int | str
    title: str
    start_date: str = ""
    end_date: str = ""
    status: str = ""
    round_number: str = ""
    location: str = ""
    image: str = ""
    description: str = ""
    benefits: str = ""
    curriculum: str = ""
    instructor: str = ""
    requirements: str = ""
    price: str = ""
    category: str = ""
    level: str = ""

    @classmethod
    def from_row(cls, row: dict) -> CourseRound:
        return cls(
            id=coerce_id(row.get("ID", "")),
            title=_text(row, "Title"),
            start_date=_text(row, "Start Date"),
            end_date=_text(row, "End Date"),
            status=_text(row, "Status"),
            round_number=_text(row, "Round", "회차"),
            location=_text(row, "Location"),
            image=drive_image_url(_text(row, "Image")),
            description=_text(row, "Description"),
            benefits=_text(row, "Benefits"),
            curriculum=_text(row, "Curriculum"),
            instructor=_text(row, "Instructor"),
            requirements=_text(row, "Requirements"),
            price=_text(row, "Price"),
            category=_text(row, "Category"),
            level=_text(row, "Level"),
        )

    def matches(self, detail_id) -> bool:
        """Loose id comparison: ``3`` matches ``"3"``."""
        return str(self.id).strip() == str(detail_id).strip()

    @property
    def schedule(self) -> str:
        return f"{format_date(self.start_date)} ~ {format_date(self.end_date)}"

    @property
    def label(self) -> str:
        """Option label used by the apply form."""
        suffix = f"{self.round_number}기, " if self.round_number else ""
        return f"{self.title} ({suffix}{self.schedule})"


@dataclass
class FaqEntry:
    question: str
    answer: str

    @classmethod
    def from_row(cls, row: dict) -> FaqEntry:
        return cls(
            question=_text(row, "Question", "question"),
            answer=_text(row, "Answer", "answer"),
        )


def company_name(row: dict) -> str:
    """Company name from a Companies sheet row, '' when the row is blank."""
    return _text(row, "Company", "Name", "회사명")


@dataclass
class ApplicationRecord:
    """One Applications sheet row as returned by the lookup call."""

    submitted_at: str
    name: str
    phone: str
    course: str
    start_date: str
    end_date: str
    status: str
    email: str
    company: str = ""
    position: str = ""
    employment: str = ""
    note: str = ""
    cancel_reason: str = ""

    @classmethod
    def from_row(cls, row: dict) -> ApplicationRecord:
        return cls(
            submitted_at=_text(row, "신청일시"),
            name=_text(row, "이름"),
            phone=_text(row, "연락처").lstrip("'"),
            course=_text(row, "신청과정"),
            start_date=_text(row, "Start Date"),
            end_date=_text(row, "End Date"),
            status=_text(row, "처리상태") or PENDING,
            email=_text(row, "이메일"),
            company=_text(row, "회사명"),
            position=_text(row, "부서/직급"),
            employment=_text(row, "재직여부"),
            note=_text(row, "비고"),
            cancel_reason=_text(row, "취소사유"),
        )

    @property
    def cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def tone(self) -> str:
        """Badge tone for the lookup panel."""
        if self.status in (APPROVED, COMPLETED):
            return "ok"
        if self.status in (REJECTED, CANCELLED_APPLICATION):
            return "bad"
        return "neutral"

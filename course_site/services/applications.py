"""Applications service — apply, lookup and cancel against the sheet backend.

Validation happens here before any request goes out. The backend owns the
business rules (duplicate check on (name, email, course), row lookup for
cancellation); its messages are passed on verbatim when the user can act on
them and wrapped in a generic retry message otherwise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from course_site.records import ApplicationRecord, CourseRound
from course_site.services.data_cache import DataCache
from course_site.services.pages import APPLY_STATUSES
from course_site.sheets_client import SheetsAPIError, SheetsClient

logger = logging.getLogger(__name__)

# Basic email format check
_EMAIL_RE = re.compile(r"^[^@\s]{1,64}@[^@\s]{1,255}$")
_MAX_FIELD_LEN = 200
_MAX_REASON_LEN = 500

INDIVIDUAL = "individual"
COMPANY = "company"
FORM_TYPES = (INDIVIDUAL, COMPANY)

REQUIRED_MESSAGE = "모든 필수 항목을 입력하고 동의해 주세요."
INVALID_EMAIL_MESSAGE = "올바른 이메일 주소를 입력해 주세요."
UNKNOWN_COURSE_MESSAGE = "선택하신 교육 과정은 현재 신청할 수 없습니다. 다른 과정을 선택해 주세요."
GENERIC_APPLY_ERROR = "신청 중 오류가 발생했습니다. 잠시 후 다시 시도해 주세요."
APPLY_FALLBACK_ERROR = "신청 처리 중 오류가 발생했습니다."
NETWORK_ERROR = "서버에 연결할 수 없습니다."

LOOKUP_REQUIRED_MESSAGE = "이름과 이메일을 모두 입력해 주세요."
LOOKUP_ERROR = "조회 중 오류가 발생했습니다. 잠시 후 다시 시도해 주세요."

CANCEL_REASON_REQUIRED = "취소 사유를 입력해 주세요."
CANCEL_NOT_ALLOWED = "취소할 수 있는 신청 내역이 없습니다."
CANCEL_AMBIGUOUS = (
    "같은 과정에 대한 신청 내역이 여러 건 있어 온라인으로 취소할 수 없습니다. "
    "교육 문의처로 연락해 주세요."
)
CANCEL_FALLBACK_ERROR = "취소 처리 중 오류가 발생했습니다."
CANCEL_SUCCESS = "취소가 완료되었습니다."

# Backend messages the user can act on ("already applied", "use the lookup page")
_VERBATIM_MARKERS = ("이미", "확인")


def _clean(value: str | None, max_len: int = _MAX_FIELD_LEN) -> str:
    return (value or "").strip()[:max_len]


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def user_facing_error(error: str) -> str:
    if any(marker in error for marker in _VERBATIM_MARKERS):
        return error
    return f"{GENERIC_APPLY_ERROR}\n{error}"


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------

@dataclass
class ApplicationForm:
    name: str = ""
    email: str = ""
    phone: str = ""
    round_id: str = ""
    employment: str = ""
    company: str = ""
    position: str = ""
    agree: bool = False
    form_type: str = INDIVIDUAL

    def __post_init__(self) -> None:
        self.name = _clean(self.name)
        self.email = _clean(self.email)
        self.phone = _clean(self.phone)
        self.round_id = _clean(self.round_id)
        self.employment = _clean(self.employment)
        self.company = _clean(self.company)
        self.position = _clean(self.position)
        if self.form_type not in FORM_TYPES:
            self.form_type = INDIVIDUAL

    def missing_fields(self) -> list[str]:
        required = ["name", "email", "phone", "round_id", "position"]
        required.append("company" if self.form_type == COMPANY else "employment")
        missing = [f for f in required if not getattr(self, f)]
        if not self.agree:
            missing.append("agree")
        return missing

    def as_dict(self) -> dict:
        """Values for re-rendering the form."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "round_id": self.round_id,
            "employment": self.employment,
            "company": self.company,
            "position": self.position,
            "agree": self.agree,
            "form_type": self.form_type,
        }


@dataclass
class SubmitResult:
    success: bool
    message: str
    course: str = ""
    missing: list[str] = field(default_factory=list)


def build_payload(form: ApplicationForm, course: CourseRound) -> dict:
    """JSON body of a new application. No ``type``: anything but "Cancel" is an apply."""
    return {
        "name": form.name,
        "email": form.email,
        "phone": form.phone,
        "course": course.title,
        "startDate": course.start_date,
        "endDate": course.end_date,
        "employment": form.employment,
        "company": form.company,
        "position": form.position,
        "agree": form.agree,
        "formType": form.form_type,
    }


async def _find_open_round(cache: DataCache, round_id: str) -> CourseRound | None:
    for course in await cache.get_courses():
        if course.matches(round_id) and course.status in APPLY_STATUSES:
            return course
    return None


async def submit_application(sheets: SheetsClient, cache: DataCache,
                             form: ApplicationForm) -> SubmitResult:
    """Validate and submit an application."""
    missing = form.missing_fields()
    if missing:
        return SubmitResult(success=False, message=REQUIRED_MESSAGE, missing=missing)

    if not is_valid_email(form.email):
        return SubmitResult(success=False, message=INVALID_EMAIL_MESSAGE, missing=["email"])

    course = await _find_open_round(cache, form.round_id)
    if course is None:
        return SubmitResult(success=False, message=UNKNOWN_COURSE_MESSAGE, missing=["round_id"])

    try:
        result = await sheets.submit_application(build_payload(form, course))
    except SheetsAPIError as e:
        logger.error("Application submit failed for %s: %s", course.title, e)
        return SubmitResult(success=False, message=f"{GENERIC_APPLY_ERROR}\n{NETWORK_ERROR}",
                            course=course.title)

    if result.get("success"):
        logger.info("Application received: %s (%s)", course.title, form.email)
        return SubmitResult(success=True, message=result.get("message", ""), course=course.title)

    error = str(result.get("error") or APPLY_FALLBACK_ERROR)
    logger.info("Application rejected for %s: %s", course.title, error)
    return SubmitResult(success=False, message=user_facing_error(error), course=course.title)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

@dataclass
class LookupResult:
    name: str = ""
    email: str = ""
    records: list[ApplicationRecord] = field(default_factory=list)
    error: str | None = None
    notice: str | None = None
    searched: bool = False

    @property
    def found(self) -> bool:
        return bool(self.records)


async def lookup_applications(sheets: SheetsClient, name: str, email: str) -> LookupResult:
    name, email = _clean(name), _clean(email)
    if not name or not email:
        return LookupResult(name=name, email=email, error=LOOKUP_REQUIRED_MESSAGE)

    try:
        payload = await sheets.check_application(name, email)
    except SheetsAPIError as e:
        logger.error("Application lookup failed: %s", e)
        return LookupResult(name=name, email=email, error=LOOKUP_ERROR)

    if not isinstance(payload, list):
        logger.warning("Application lookup returned %s instead of a list: %.200r",
                       type(payload).__name__, payload)
        payload = []

    records = [ApplicationRecord.from_row(row) for row in payload if isinstance(row, dict)]
    return LookupResult(name=name, email=email, records=records, searched=True)


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------

async def cancel_application(sheets: SheetsClient, name: str, email: str,
                             course: str, reason: str) -> LookupResult:
    """Cancel one application and return the refreshed lookup.

    The backend finds the row by (name, email, course) and takes the first
    match, so a triple that matches more than one row is refused here.
    """
    name, email = _clean(name), _clean(email)
    course = _clean(course)
    reason = _clean(reason, _MAX_REASON_LEN)
    if not name or not email:
        return LookupResult(name=name, email=email, error=LOOKUP_REQUIRED_MESSAGE)
    if not reason:
        return LookupResult(name=name, email=email, error=CANCEL_REASON_REQUIRED)

    current = await lookup_applications(sheets, name, email)
    if current.error:
        return current

    matches = [r for r in current.records if r.course == course]
    if len(matches) > 1:
        logger.warning("Refusing ambiguous cancellation: %d rows for %s / %s",
                       len(matches), current.email, course)
        current.error = CANCEL_AMBIGUOUS
        return current
    if not matches or not matches[0].cancellable:
        current.error = CANCEL_NOT_ALLOWED
        return current

    try:
        result = await sheets.cancel_application(current.name, current.email, course, reason)
    except SheetsAPIError as e:
        logger.error("Cancellation failed for %s: %s", course, e)
        current.error = f"{CANCEL_FALLBACK_ERROR}\n{NETWORK_ERROR}"
        return current

    if not result.get("success"):
        current.error = str(result.get("error") or CANCEL_FALLBACK_ERROR)
        return current

    logger.info("Application cancelled: %s (%s)", course, current.email)
    refreshed = await lookup_applications(sheets, current.name, current.email)
    if not refreshed.error:
        refreshed.notice = result.get("message") or CANCEL_SUCCESS
    return refreshed

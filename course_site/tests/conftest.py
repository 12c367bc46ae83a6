"""Shared fixtures for course site tests.

Provides:
- fake_sheets: in-memory stand-in for the spreadsheet web app, served
  through httpx.MockTransport
- sheets_client / data_cache: real client and cache wired to the fake
- client: TestClient over the full app
- row factories for Education and Applications sheet rows
"""

import json
import os

import httpx
import pytest

# Set env vars before any course_site imports
os.environ.setdefault("SHEETS_API_URL", "https://sheets.example.test/exec")
os.environ.setdefault("CALENDAR_ID", "calendar@example.test")

from course_site.app import create_app
from course_site.services.data_cache import DataCache
from course_site.sheets_client import SheetsClient

API_URL = "https://sheets.example.test/exec"

APPLICATION_HEADERS = [
    "신청일시", "이름", "연락처", "신청과정", "Start Date", "End Date", "처리상태",
    "이메일", "회사명", "부서/직급", "재직여부", "주민등록번호", "비고", "취소사유",
]


# ---------------------------------------------------------------------------
# In-memory fake spreadsheet web app
# ---------------------------------------------------------------------------

class FakeSheetsBackend:
    """Mimics the Apps Script endpoint: sheet dumps, lookup, apply and cancel."""

    def __init__(self):
        self.sheets = {
            "Education": [],
            "FAQ": [],
            "Companies": [],
        }
        self.applications = []
        self.calls = []
        self.failing = set()
        self.overrides = {}

    # -- inspection ---------------------------------------------------------

    def count(self, method, kind=None):
        return sum(1 for m, k in self.calls if m == method and (kind is None or k == kind))

    def posts(self):
        return [k for m, k in self.calls if m == "POST"]

    # -- transport ----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            kind = request.url.params.get("type", "Education").strip()
            self.calls.append(("GET", kind))
            if kind in self.failing:
                return httpx.Response(500, text="Internal error")
            if kind in self.overrides:
                return httpx.Response(200, json=self.overrides[kind])
            return httpx.Response(200, json=self._do_get(kind, request.url.params))

        body = json.loads(request.content or b"{}")
        kind = (body.get("type") or "Apply").strip()
        self.calls.append(("POST", kind))
        if kind in self.failing:
            return httpx.Response(500, text="Internal error")
        if kind in self.overrides:
            return httpx.Response(200, json=self.overrides[kind])
        if kind == "Cancel":
            return httpx.Response(200, json=self._cancel(body))
        return httpx.Response(200, json=self._apply(body))

    def _find_sheet(self, name):
        wanted = name.lower().strip()
        for sheet_name, rows in self.sheets.items():
            if sheet_name.lower().strip() == wanted:
                return rows
        return None

    def _do_get(self, kind, params):
        if kind == "CheckApplication":
            name = params.get("name", "").strip()
            email = params.get("email", "").strip()
            return [
                dict(row) for row in self.applications
                if row["이름"].strip() == name and row["이메일"].strip() == email
            ]
        rows = self._find_sheet(kind)
        if rows is None:
            return {"error": f"Sheet named '{kind}' not found."}
        return [dict(row) for row in rows]

    def _matches(self, row, body):
        return (
            row["이름"].strip() == (body.get("name") or "").strip()
            and row["이메일"].strip() == (body.get("email") or "").strip()
            and row["신청과정"].strip() == (body.get("course") or "").strip()
        )

    def _cancel(self, body):
        for row in self.applications:
            if self._matches(row, body):
                row["처리상태"] = "취소"
                row["취소사유"] = body.get("cancelReason") or "사용자 요청 취소"
                return {"success": True, "message": "취소가 성공적으로 처리되었습니다."}
        return {"success": False, "error": "해당 신청 내역을 찾을 수 없습니다."}

    def _apply(self, body):
        if any(self._matches(row, body) for row in self.applications):
            return {
                "success": False,
                "error": "신청 확인 메뉴를 이용해 주세요. 이미 해당 교육 과정에 신청하신 내역이 있습니다.",
            }
        self.applications.append(make_application_row(
            name=body.get("name", ""),
            email=body.get("email", ""),
            phone="'" + body.get("phone", ""),
            course=body.get("course", ""),
            start=body.get("startDate", ""),
            end=body.get("endDate", ""),
            company=body.get("company", ""),
            position=body.get("position", ""),
            employment=body.get("employment", ""),
        ))
        return {"success": True, "message": "신청이 성공적으로 접수되었습니다."}


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def make_course_row(id=1, title="AI 영상 제작 실무", status="모집중", **overrides):
    row = {
        "ID": str(id),
        "Title": title,
        "Start Date": "2025-03-01",
        "End Date": "2025-03-15",
        "Status": status,
        "Round": "1",
        "Location": "웹툰융합센터",
        "Image": "",
        "Description": "생성형 AI로 **영상**을 만듭니다.",
        "Benefits": "",
        "Curriculum": "",
        "Instructor": "",
        "Requirements": "",
        "Price": "",
        "Category": "AI",
        "Level": "초급",
    }
    row.update(overrides)
    return row


def make_application_row(name="홍길동", email="hong@example.com", course="AI 영상 제작 실무",
                         status="대기", **overrides):
    row = {header: "" for header in APPLICATION_HEADERS}
    row.update({
        "신청일시": "2025-02-01 10:00:00",
        "이름": name,
        "연락처": overrides.pop("phone", "'010-1234-5678"),
        "신청과정": course,
        "Start Date": overrides.pop("start", "2025-03-01"),
        "End Date": overrides.pop("end", "2025-03-15"),
        "처리상태": status,
        "이메일": email,
        "회사명": overrides.pop("company", ""),
        "부서/직급": overrides.pop("position", "개발자/주임"),
        "재직여부": overrides.pop("employment", "재직중"),
    })
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_sheets():
    backend = FakeSheetsBackend()
    backend.sheets["Education"] = [
        make_course_row(1, "AI 영상 제작 실무", "모집중"),
        make_course_row(2, "AI 영상 제작 실무", "마감", Round="2",
                        **{"Start Date": "2025-05-01", "End Date": "2025-05-15"}),
        make_course_row(3, "버추얼 프로덕션 입문", "모집예정"),
        make_course_row(4, "웹툰 AI 채색", "폐강"),
    ]
    backend.sheets["FAQ"] = [
        {"Question": "수강료가 있나요?", "Answer": "대부분의 과정은 **무료**입니다."},
        {"Question": "", "Answer": "빈 질문은 표시되지 않습니다."},
    ]
    backend.sheets["Companies"] = [
        {"Company": "에스비에스"},
        {"Company": "웹툰랩"},
        {"Company": "에스비에스"},
    ]
    return backend


@pytest.fixture
def sheets_client(fake_sheets):
    return SheetsClient(base_url=API_URL, transport=httpx.MockTransport(fake_sheets.handler))


@pytest.fixture
def data_cache(sheets_client):
    return DataCache(sheets_client)


@pytest.fixture
def app(sheets_client):
    return create_app(sheets=sheets_client)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture
def htmx_headers():
    """Headers htmx sends for a request made from ``current_url``."""
    def _headers(current_url="http://testserver/?page=home#home"):
        return {"HX-Request": "true", "HX-Current-URL": current_url}
    return _headers

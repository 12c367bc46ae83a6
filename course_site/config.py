"""Course site configuration — loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Root of the repository
REPO_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(REPO_ROOT / ".env")

# Jinja2 templates for the web UI
WEB_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

# Spreadsheet backend (Apps Script web app exposing the sheets as JSON)
SHEETS_API_URL = os.environ.get("SHEETS_API_URL", "")
SHEETS_TIMEOUT_SECONDS = float(os.environ.get("SHEETS_TIMEOUT_SECONDS", "20"))

# Sheet names
COURSES_SHEET = os.environ.get("COURSES_SHEET", "Education")
FAQ_SHEET = os.environ.get("FAQ_SHEET", "FAQ")
COMPANIES_SHEET = os.environ.get("COMPANIES_SHEET", "Companies")

# Site identity
SITE_NAME = os.environ.get("SITE_NAME", "SBSKHP 교육 서비스 플랫폼")
CONTACT_EMAIL = os.environ.get("CONTACT_EMAIL", "haba98@sbs.co.kr")
CONTACT_ADDRESS = os.environ.get(
    "CONTACT_ADDRESS",
    "(14505)경기도 부천시 원미구 길주로 17(상동 529-28), 웹툰융합센터",
)

# Google Calendar embedded on the schedule page
CALENDAR_ID = os.environ.get("CALENDAR_ID", "sbskhpdev@gmail.com")
CALENDAR_TIMEZONE = os.environ.get("CALENDAR_TIMEZONE", "Asia/Seoul")

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")

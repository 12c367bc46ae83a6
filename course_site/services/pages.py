"""Page renderer — builds the markup of each logical page from cached sheet data."""

from __future__ import annotations

import logging
import urllib.parse

from fastapi.templating import Jinja2Templates

from course_site.config import (
    CALENDAR_ID, CALENDAR_TIMEZONE, CONTACT_ADDRESS, CONTACT_EMAIL, SITE_NAME,
    WEB_TEMPLATES_DIR,
)
from course_site.records import (
    PREPARING, RECRUITING, format_date, render_markdown, status_color,
)
from course_site.routing import Overlay, build_url
from course_site.services.data_cache import DataCache
from course_site.services.grouping import (
    ALL, FILTERS, CourseGroup, filter_groups, find_group, group_rounds,
)

logger = logging.getLogger(__name__)

PAGE_ERROR_MESSAGE = "페이지를 불러오는 중 오류가 발생했습니다."

# Rounds that can be picked on the apply form
APPLY_STATUSES = {RECRUITING, PREPARING}

NAV_ITEMS = [
    ("home", "홈"),
    ("schedule", "교육일정"),
    ("education", "교육정보"),
    ("apply", "교육신청"),
    ("confirm", "신청확인"),
    ("faq", "FAQ"),
    ("contact", "오시는 길"),
]

EMPLOYMENT_OPTIONS = ["재직중", "구직중", "학생", "프리랜서", "기타"]


def page_url(page: str, detail=None, **params) -> str:
    """Relative link to a page, with the page mirrored into the fragment."""
    url = build_url("/", page, str(detail) if detail is not None else None)
    if not params:
        return url
    parts = urllib.parse.urlsplit(url)
    query = urllib.parse.parse_qsl(parts.query) + [(k, str(v)) for k, v in params.items()]
    return urllib.parse.urlunsplit(
        ("", "", parts.path, urllib.parse.urlencode(query), parts.fragment)
    )


def build_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(WEB_TEMPLATES_DIR))
    templates.env.filters["markdown"] = render_markdown
    templates.env.filters["date"] = format_date
    templates.env.filters["status_color"] = status_color
    templates.env.globals["page_url"] = page_url
    templates.env.globals["site_name"] = SITE_NAME
    templates.env.globals["nav_items"] = NAV_ITEMS
    return templates


templates = build_templates()


def calendar_embed_url(calendar_id: str = CALENDAR_ID, tz: str = CALENDAR_TIMEZONE) -> str:
    params = urllib.parse.urlencode({
        "src": calendar_id,
        "ctz": tz,
        "showTitle": 0,
        "showPrint": 0,
        "showTabs": 1,
        "showCalendars": 0,
        "showTz": 0,
    })
    return f"https://calendar.google.com/calendar/embed?{params}"


def apply_choices(groups: list[CourseGroup]) -> list[tuple[CourseGroup, list]]:
    """(group, open rounds) for every group with at least one open round."""
    choices = []
    for group in groups:
        rounds = [r for r in group.rounds if r.status in APPLY_STATUSES]
        if rounds:
            choices.append((group, rounds))
    return choices


class PageRenderer:
    """Renders pages and the course overlay. One per request; the cache is shared."""

    def __init__(self, cache: DataCache, jinja: Jinja2Templates = templates) -> None:
        self._cache = cache
        self._templates = jinja

    def _render_template(self, name: str, **context) -> str:
        return self._templates.get_template(name).render(**context)

    async def render(self, page: str, *, status_filter: str = ALL, course: str = "",
                     **extra) -> str:
        """Markup for one page. ``extra`` is passed through to the template."""
        context = dict(extra)
        context["page"] = page

        if page == "schedule":
            context["calendar_src"] = calendar_embed_url()
        elif page == "education":
            context.update(await self.catalog_context(status_filter))
        elif page == "apply":
            groups = group_rounds(await self._cache.get_courses())
            context["choices"] = apply_choices(groups)
            context["companies"] = await self._cache.get_companies()
            context["employment_options"] = EMPLOYMENT_OPTIONS
            form = dict(context.get("form") or {})
            if course and not form.get("round_id"):
                form["round_id"] = course
            context["form"] = form
        elif page == "faq":
            context["entries"] = await self._cache.get_faq()
        elif page == "contact":
            context["address"] = CONTACT_ADDRESS
            context["contact_email"] = CONTACT_EMAIL

        return self._render_template(f"pages/{page}.html", **context)

    async def load_page(self, page: str, **kwargs) -> str:
        """Render ``page``; a failure becomes the generic error panel, never a partial page."""
        try:
            return await self.render(page, **kwargs)
        except Exception:
            logger.exception("Failed to render page %s", page)
            return self._render_template("partials/page_error.html", message=PAGE_ERROR_MESSAGE)

    async def catalog_context(self, status_filter: str = ALL) -> dict:
        groups = group_rounds(await self._cache.get_courses())
        if status_filter not in FILTERS:
            status_filter = ALL
        visible = {g.title for g in filter_groups(groups, status_filter)}
        return {
            "groups": groups,
            "visible": visible,
            "filters": FILTERS,
            "active_filter": status_filter,
        }

    async def render_catalog(self, status_filter: str = ALL) -> str:
        """Just the course grid, for filter button swaps."""
        context = await self.catalog_context(status_filter)
        return self._render_template("partials/course_grid.html", **context)

    async def render_overlay(self, overlay: Overlay, page: str = "education") -> str:
        """Course overlay markup, or '' when closed or the id is unknown."""
        if not overlay.is_open:
            return ""
        groups = group_rounds(await self._cache.get_courses())
        group = find_group(groups, overlay.detail)
        if group is None:
            logger.info("Overlay requested for unknown course round %s", overlay.detail)
            return ""
        return self._render_template(
            "partials/course_modal.html",
            group=group,
            selected=group.find_round(overlay.detail),
            close_url=page_url(page),
            apply_statuses=APPLY_STATUSES,
        )

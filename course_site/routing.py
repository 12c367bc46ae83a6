"""Page routing: URL to (page, detail) and overlay state.

The site is one logical page at a time, addressed by the ``page`` query
parameter (the fragment is read as a fallback, and ``page`` is mirrored into
it). ``detail`` names a course round and opens the course overlay.

``Router`` is the navigation state machine: it tracks the current URL and
the page last rendered, and on every re-entry decides whether the page has to
be rendered again and how the overlay moves. Back/forward stay with the
browser history.
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Awaitable, Callable

VALID_PAGES = (
    "home", "schedule", "education", "apply", "confirm", "faq", "contact", "privacy",
)
DEFAULT_PAGE = "home"

# Pages where ``detail`` drives the course overlay
DETAIL_PAGES = {"education", "apply"}


@dataclass(frozen=True)
class RouteState:
    page: str = DEFAULT_PAGE
    detail: str | None = None


@dataclass(frozen=True)
class Overlay:
    """Course overlay: closed, or open on one course round id."""

    detail: str | None = None

    @classmethod
    def closed(cls) -> Overlay:
        return cls()

    @classmethod
    def open(cls, detail: str) -> Overlay:
        return cls(detail=detail)

    @property
    def is_open(self) -> bool:
        return self.detail is not None


@dataclass
class RouteUpdate:
    """Outcome of one router re-entry."""

    route: RouteState
    markup: str | None
    overlay: Overlay
    overlay_changed: bool = False

    @property
    def rendered(self) -> bool:
        return self.markup is not None


def is_valid_page(page: str | None) -> bool:
    return page in VALID_PAGES


def parse_route(url: str) -> RouteState:
    """Read (page, detail) from a URL. Unknown or missing pages are ``home``."""
    parts = urllib.parse.urlsplit(url or "")
    params = urllib.parse.parse_qs(parts.query, keep_blank_values=True)

    page = (params.get("page") or [""])[0] or parts.fragment or DEFAULT_PAGE
    if not is_valid_page(page):
        page = DEFAULT_PAGE

    detail = (params.get("detail") or [""])[0] or None
    return RouteState(page=page, detail=detail)


def overlay_for(route: RouteState) -> Overlay:
    if route.detail and route.page in DETAIL_PAGES:
        return Overlay.open(route.detail)
    return Overlay.closed()


def _set_param(pairs: list[tuple[str, str]], key: str, value: str) -> list[tuple[str, str]]:
    """Replace the first ``key`` in place and drop the rest, or append it."""
    out: list[tuple[str, str]] = []
    placed = False
    for k, v in pairs:
        if k != key:
            out.append((k, v))
        elif not placed:
            out.append((key, value))
            placed = True
    if not placed:
        out.append((key, value))
    return out


def build_url(current_url: str, page: str, detail: str | None = None) -> str:
    """URL for ``page``/``detail`` keeping every other query parameter."""
    parts = urllib.parse.urlsplit(current_url or "/")
    pairs = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)

    pairs = _set_param(pairs, "page", page)
    if detail:
        pairs = _set_param(pairs, "detail", str(detail))
    else:
        pairs = [(k, v) for k, v in pairs if k != "detail"]

    return urllib.parse.urlunsplit((
        parts.scheme,
        parts.netloc,
        parts.path or "/",
        urllib.parse.urlencode(pairs),
        page,
    ))


class Router:
    """Navigation state machine.

    ``render`` is called with a page name whenever the logical page changes
    (or on the first re-entry) and returns that page's markup.
    """

    def __init__(self, render: Callable[[str], Awaitable[str]], url: str = "/") -> None:
        self._render = render
        self.url = url
        self.rendered_page: str | None = None
        self.overlay = Overlay.closed()

    @classmethod
    def resume(cls, render: Callable[[str], Awaitable[str]], url: str) -> Router:
        """Router for a client already showing ``url`` (page rendered, overlay as in the URL)."""
        router = cls(render, url)
        route = parse_route(url)
        router.rendered_page = route.page
        router.overlay = overlay_for(route)
        return router

    @property
    def route(self) -> RouteState:
        return parse_route(self.url)

    async def handle(self) -> RouteUpdate:
        """Re-entry point: render on page change, then reconcile the overlay."""
        route = self.route

        markup = None
        if self.rendered_page is None or route.page != self.rendered_page:
            self.rendered_page = route.page
            markup = await self._render(route.page)

        target = overlay_for(route)
        changed = target != self.overlay
        self.overlay = target

        return RouteUpdate(route=route, markup=markup, overlay=target, overlay_changed=changed)

    async def navigate(self, page: str, detail: str | None = None) -> RouteUpdate | None:
        """Go to ``page``/``detail``. ``None`` when the URL would not change."""
        url = build_url(self.url, page, detail)
        if url == self.url:
            return None
        self.url = url
        return await self.handle()

    async def visit(self, url: str) -> RouteUpdate:
        """Client-initiated navigation to ``url`` (link follow, load, hash change)."""
        self.url = url
        return await self.handle()

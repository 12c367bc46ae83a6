"""Tests for URL parsing, URL building and the navigation state machine."""

import asyncio

import pytest

from course_site.routing import (
    DEFAULT_PAGE,
    Overlay,
    Router,
    RouteState,
    build_url,
    overlay_for,
    parse_route,
)


def run(coro):
    return asyncio.run(coro)


class RecordingRender:
    """Render callback that remembers every page it was asked for."""

    def __init__(self):
        self.pages = []

    async def __call__(self, page):
        self.pages.append(page)
        return f"<section>{page}</section>"


class TestParseRoute:
    def test_page_from_query(self):
        assert parse_route("https://x.test/?page=faq") == RouteState("faq", None)

    def test_query_wins_over_fragment(self):
        assert parse_route("/?page=faq#contact").page == "faq"

    def test_fragment_fallback(self):
        assert parse_route("/#apply") == RouteState("apply", None)

    def test_defaults_to_home(self):
        assert parse_route("/") == RouteState(DEFAULT_PAGE, None)
        assert parse_route("") == RouteState(DEFAULT_PAGE, None)

    def test_invalid_page_becomes_home(self):
        assert parse_route("/?page=admin").page == "home"
        assert parse_route("/#nowhere").page == "home"

    def test_detail_is_returned_unvalidated(self):
        route = parse_route("/?page=education&detail=3")
        assert route == RouteState("education", "3")
        assert parse_route("/?page=education&detail=zzz").detail == "zzz"

    def test_empty_detail_is_none(self):
        assert parse_route("/?page=education&detail=").detail is None

    def test_detail_kept_on_invalid_page(self):
        assert parse_route("/?page=bogus&detail=7") == RouteState("home", "7")


class TestBuildUrl:
    def test_sets_page_and_fragment(self):
        url = build_url("/", "faq")
        assert url == "/?page=faq#faq"

    def test_keeps_other_params(self):
        url = build_url("/?utm_source=mail&page=home", "apply")
        assert url == "/?utm_source=mail&page=apply#apply"

    def test_sets_detail(self):
        url = build_url("/?page=education", "education", "5")
        assert parse_route(url) == RouteState("education", "5")

    def test_removes_detail_when_absent(self):
        url = build_url("/?page=education&detail=5", "education")
        assert "detail" not in url
        assert parse_route(url) == RouteState("education", None)

    def test_keeps_scheme_and_host(self):
        url = build_url("http://testserver/?page=home#home", "confirm")
        assert url == "http://testserver/?page=confirm#confirm"


class TestOverlayFor:
    def test_open_on_education_with_detail(self):
        assert overlay_for(RouteState("education", "3")) == Overlay.open("3")

    def test_closed_without_detail(self):
        assert not overlay_for(RouteState("education")).is_open

    def test_closed_on_pages_without_overlay(self):
        assert not overlay_for(RouteState("faq", "3")).is_open


class TestRouter:
    def test_first_handle_renders(self):
        render = RecordingRender()
        update = run(Router(render, "/?page=faq").handle())
        assert render.pages == ["faq"]
        assert update.rendered
        assert update.markup == "<section>faq</section>"

    def test_same_page_is_not_rerendered(self):
        render = RecordingRender()

        async def scenario():
            router = Router(render, "/?page=faq")
            await router.handle()
            return await router.handle()

        update = run(scenario())
        assert render.pages == ["faq"]
        assert not update.rendered

    def test_detail_change_only_moves_overlay(self):
        render = RecordingRender()

        async def scenario():
            router = Router(render, "/?page=education")
            await router.handle()
            return await router.navigate("education", "3")

        update = run(scenario())
        assert render.pages == ["education"]
        assert not update.rendered
        assert update.overlay == Overlay.open("3")
        assert update.overlay_changed

    def test_navigate_to_same_url_is_noop(self):
        render = RecordingRender()

        async def scenario():
            router = Router(render, "/?page=faq#faq")
            await router.handle()
            return router, await router.navigate("faq")

        router, update = run(scenario())
        assert update is None
        assert router.url == "/?page=faq#faq"
        assert render.pages == ["faq"]

    def test_navigate_renders_each_new_page(self):
        render = RecordingRender()

        async def scenario():
            router = Router(render, "/")
            await router.handle()
            await router.navigate("faq")
            await router.navigate("contact")
            return router

        router = run(scenario())
        assert router.route.page == "contact"
        assert render.pages == ["home", "faq", "contact"]

    def test_visit_same_url_changes_nothing(self):
        render = RecordingRender()
        router = Router.resume(render, "/?page=education&detail=3#education")
        update = run(router.visit("/?page=education&detail=3#education"))
        assert render.pages == []
        assert not update.rendered
        assert not update.overlay_changed

    def test_visit_back_to_previous_page_rerenders(self):
        render = RecordingRender()

        async def scenario():
            router = Router(render, "/")
            await router.handle()
            await router.navigate("faq")
            return await router.visit("/")

        update = run(scenario())
        assert update.route.page == "home"
        assert render.pages == ["home", "faq", "home"]

    def test_overlay_closes_on_page_change(self):
        render = RecordingRender()

        async def scenario():
            router = Router.resume(render, "/?page=education&detail=3")
            return await router.navigate("faq")

        update = run(scenario())
        assert update.rendered
        assert not update.overlay.is_open
        assert update.overlay_changed

    def test_overlay_switches_between_rounds(self):
        render = RecordingRender()

        async def scenario():
            router = Router.resume(render, "/?page=education&detail=3")
            return await router.navigate("education", "5")

        update = run(scenario())
        assert render.pages == []
        assert update.overlay == Overlay.open("5")
        assert update.overlay_changed


class TestResume:
    def test_resumed_router_does_not_rerender_current_page(self):
        render = RecordingRender()
        router = Router.resume(render, "http://testserver/?page=education")
        update = run(router.visit("http://testserver/?page=education&detail=2"))
        assert render.pages == []
        assert update.overlay == Overlay.open("2")

    def test_resumed_router_renders_new_page(self):
        render = RecordingRender()
        router = Router.resume(render, "http://testserver/?page=home")
        update = run(router.visit("http://testserver/?page=faq"))
        assert render.pages == ["faq"]
        assert update.rendered

    @pytest.mark.parametrize("url", ["/?page=bogus", "/#bogus"])
    def test_invalid_page_renders_home(self, url):
        render = RecordingRender()
        update = run(Router(render, url).handle())
        assert update.route.page == "home"
        assert render.pages == ["home"]

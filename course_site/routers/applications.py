"""Application routes — apply, lookup and cancel forms."""

from fastapi import APIRouter, Depends, Form, Request

from course_site.routers.pages import is_htmx, respond
from course_site.routing import Overlay, Router, RouteState, RouteUpdate
from course_site.services.applications import (
    INDIVIDUAL,
    ApplicationForm,
    LookupResult,
    cancel_application,
    lookup_applications,
    submit_application,
)
from course_site.services.data_cache import DataCache, get_data_cache
from course_site.services.pages import PageRenderer, page_url, templates
from course_site.sheets_client import SheetsClient, get_sheets_client

router = APIRouter(prefix="/applications")


def _in_place(page: str, markup: str) -> RouteUpdate:
    """Update for a page re-rendered where the user already is."""
    return RouteUpdate(route=RouteState(page=page), markup=markup, overlay=Overlay.closed())


@router.post("")
async def apply(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    round_id: str = Form(""),
    employment: str = Form(""),
    company: str = Form(""),
    position: str = Form(""),
    agree: bool = Form(False),
    form_type: str = Form(INDIVIDUAL),
    sheets: SheetsClient = Depends(get_sheets_client),
    cache: DataCache = Depends(get_data_cache),
):
    form = ApplicationForm(
        name=name, email=email, phone=phone, round_id=round_id,
        employment=employment, company=company, position=position,
        agree=agree, form_type=form_type,
    )
    result = await submit_application(sheets, cache, form)
    renderer = PageRenderer(cache)

    if not result.success:
        markup = await renderer.load_page(
            "apply", form=form.as_dict(), error=result.message, missing=result.missing,
        )
        return await respond(request, renderer, _in_place("apply", markup))

    notice = f"신청이 완료되었습니다! 과정: {result.course} / 신청자: {form.name}"

    async def load(page: str) -> str:
        return await renderer.load_page(
            page, notice=notice, lookup_name=form.name, lookup_email=form.email,
        )

    current = request.headers.get("HX-Current-URL") or page_url("apply")
    nav = Router.resume(load, current)
    update = await nav.navigate("confirm")

    if update is None or not update.rendered:
        update = _in_place("confirm", await load("confirm"))
    push_url = nav.url if is_htmx(request) else None
    return await respond(request, renderer, update, push_url=push_url)


async def _lookup_response(request: Request, cache: DataCache, lookup: LookupResult):
    if is_htmx(request):
        return templates.TemplateResponse(
            request, "partials/lookup_result.html", {"lookup": lookup},
        )
    renderer = PageRenderer(cache)
    markup = await renderer.load_page(
        "confirm", lookup=lookup, lookup_name=lookup.name, lookup_email=lookup.email,
    )
    return await respond(request, renderer, _in_place("confirm", markup))


@router.post("/lookup")
async def lookup(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    sheets: SheetsClient = Depends(get_sheets_client),
    cache: DataCache = Depends(get_data_cache),
):
    result = await lookup_applications(sheets, name, email)
    return await _lookup_response(request, cache, result)


@router.post("/cancel")
async def cancel(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    course: str = Form(""),
    cancel_reason: str = Form(""),
    sheets: SheetsClient = Depends(get_sheets_client),
    cache: DataCache = Depends(get_data_cache),
):
    result = await cancel_application(sheets, name, email, course, cancel_reason)
    return await _lookup_response(request, cache, result)

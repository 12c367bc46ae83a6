"""Page routes — GET / (every logical page) and the catalog filter partial.

A normal request gets the whole layout. An htmx request carries the URL the
browser is showing in ``HX-Current-URL``; the router resumes from it and the
response is the content block when the page changed, only the overlay when
just ``detail`` moved, or nothing at all when neither did. A history restore
(back/forward to a page htmx has no snapshot of) is answered with the whole
layout, like a normal request.
"""

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse

from course_site.routing import Router, RouteUpdate
from course_site.services.data_cache import DataCache, get_data_cache
from course_site.services.grouping import ALL
from course_site.services.pages import PageRenderer, templates

router = APIRouter()


def is_htmx(request: Request) -> bool:
    """True for htmx swaps. History restores expect the full layout."""
    if request.headers.get("HX-History-Restore-Request"):
        return False
    return bool(request.headers.get("HX-Request"))


async def respond(request: Request, renderer: PageRenderer, update: RouteUpdate,
                  push_url: str | None = None):
    """Turn a router update into a full page or an htmx swap."""
    htmx = is_htmx(request)
    if htmx and not update.rendered and not update.overlay_changed:
        return Response(status_code=204, headers={"HX-Reswap": "none"})

    overlay = await renderer.render_overlay(update.overlay, update.route.page)
    context = {
        "active_page": update.route.page,
        "content": update.markup or "",
        "overlay": overlay,
    }

    if not htmx:
        return templates.TemplateResponse(request, "base.html", context)

    headers = {"HX-Push-Url": push_url} if push_url else {}
    if update.rendered:
        return templates.TemplateResponse(
            request, "partials/content_swap.html", context, headers=headers,
        )

    # Same page: leave the content alone, only the overlay moves
    headers["HX-Reswap"] = "none"
    return templates.TemplateResponse(
        request, "partials/overlay_oob.html", context, headers=headers,
    )


@router.get("/")
async def site_page(
    request: Request,
    status_filter: str = Query(ALL, alias="filter", description="Catalog status filter"),
    course: str = Query("", description="Course round to preselect on the apply form"),
    cache: DataCache = Depends(get_data_cache),
):
    renderer = PageRenderer(cache)

    async def load(page: str) -> str:
        return await renderer.load_page(page, status_filter=status_filter, course=course)

    url = str(request.url)
    if is_htmx(request):
        current = request.headers.get("HX-Current-URL")
        nav = Router.resume(load, current) if current else Router(load, url)
        update = await nav.visit(url)
    else:
        update = await Router(load, url).handle()

    return await respond(request, renderer, update)


@router.get("/courses")
async def course_grid(
    status_filter: str = Query(ALL, alias="filter"),
    cache: DataCache = Depends(get_data_cache),
):
    """Catalog grid for the filter buttons. Filtering only hides cards."""
    html = await PageRenderer(cache).render_catalog(status_filter)
    return HTMLResponse(html)

"""Guarded view rendering."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from analytics import events
from api.dependencies import get_router, get_view_context
from session.router import LOGIN_VIEW, GuardedRouter, decide
from views import AddRoundView, DashboardView, HistoryView, ProfileView, ViewContext

router = APIRouter()


@router.get("/{path:path}")
async def render_view(
    path: str,
    course_id: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    course: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    mode: Optional[str] = Query(None),
    ctx: ViewContext = Depends(get_view_context),
    nav: GuardedRouter = Depends(get_router),
):
    decision = decide(path, ctx.session.status)
    if decision.is_redirect:
        return RedirectResponse(url=f"/api/views{decision.target}", status_code=303)
    nav.navigate(decision.path)
    events.track_page_view(decision.target, decision.path)

    if decision.target == LOGIN_VIEW:
        return {"view": LOGIN_VIEW, "path": decision.path, "data": {"status": ctx.session.status.value}}

    if decision.target == "dashboard":
        controller = DashboardView(ctx)
    elif decision.target == "add_round":
        controller = AddRoundView(ctx, preselected_course_id=course_id)
    elif decision.target == "history":
        controller = HistoryView(ctx)
        controller.set_filters(year=year, course_id=course, search=search, view_mode=mode)
    else:
        controller = ProfileView(ctx)

    await controller.mount()
    try:
        data = controller.render()
    finally:
        controller.unmount()
    return {"view": decision.target, "path": decision.path, "data": data}

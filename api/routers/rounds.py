"""Round API endpoints."""

from fastapi import APIRouter, Depends
from typing import List

from api.dependencies import get_signed_in_context
from api.schemas import PhotoPayload
from models import Round
from views import AddRoundView, PhotoUpload, RoundForm, ViewContext

router = APIRouter()


class AddRoundRequest(RoundForm):
    course_id: str
    photos: List[PhotoPayload] = []


@router.post("", response_model=Round, status_code=201)
async def add_round(body: AddRoundRequest, ctx: ViewContext = Depends(get_signed_in_context)):
    view = AddRoundView(ctx, preselected_course_id=body.course_id)
    await view.mount()
    try:
        form = RoundForm(**body.model_dump(exclude={"course_id", "photos"}))
        photos = [PhotoUpload(p.filename, p.data, p.content_type) for p in body.photos]
        return await view.submit(form, photos)
    finally:
        view.unmount()

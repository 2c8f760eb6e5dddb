"""Profile and account endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_signed_in_context
from api.schemas import ProfilePhotoRequest
from models import Profile, ProfileUpdate
from views import ProfileView, ViewContext

router = APIRouter()


@router.patch("/profile", response_model=Profile)
async def update_profile(body: ProfileUpdate, ctx: ViewContext = Depends(get_signed_in_context)):
    await ProfileView(ctx).save(body)
    return ctx.session.profile


@router.post("/profile/photo", response_model=Profile)
async def upload_profile_photo(
    body: ProfilePhotoRequest,
    ctx: ViewContext = Depends(get_signed_in_context),
):
    await ProfileView(ctx).upload_photo(body.filename, body.data, body.content_type)
    return ctx.session.profile


@router.delete("/account", status_code=204)
async def delete_account(
    confirm: bool = Query(False),
    ctx: ViewContext = Depends(get_signed_in_context),
):
    if not await ProfileView(ctx).delete_account(confirm):
        raise HTTPException(400, "Account deletion must be confirmed with confirm=true")
    return Response(status_code=204)

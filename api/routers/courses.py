"""Course API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from typing import List, Optional

from api.dependencies import get_signed_in_context
from models import Course
from views import AddRoundView, CourseForm, HistoryView, ViewContext

router = APIRouter()


class UpdateCourseRequest(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    country: Optional[str] = None
    state: Optional[str] = None
    rating: Optional[float] = None


@router.get("/search", response_model=List[Course])
async def search_courses(
    q: str = Query(""),
    ctx: ViewContext = Depends(get_signed_in_context),
):
    return await AddRoundView(ctx).search_courses(q)


@router.post("", response_model=Course, status_code=201)
async def add_course(body: CourseForm, ctx: ViewContext = Depends(get_signed_in_context)):
    return await AddRoundView(ctx).add_course(body)


@router.patch("/{course_id}", response_model=Course)
async def update_course(
    course_id: str,
    body: UpdateCourseRequest,
    ctx: ViewContext = Depends(get_signed_in_context),
):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(400, "No fields to update")
    return await HistoryView(ctx).edit_course(course_id, **fields)


@router.delete("/{course_id}", status_code=204)
async def delete_course(course_id: str, ctx: ViewContext = Depends(get_signed_in_context)):
    await HistoryView(ctx).delete_course(course_id)
    return Response(status_code=204)

"""Transient notification endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from api.dependencies import get_notifications
from api.schemas import NotificationResponse
from session.notifications import NotificationChannel

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(channel: NotificationChannel = Depends(get_notifications)):
    return [
        NotificationResponse(id=n.id, message=n.message, kind=n.kind.value)
        for n in channel.active()
    ]


@router.delete("/{notification_id}", status_code=204)
async def dismiss_notification(
    notification_id: str,
    channel: NotificationChannel = Depends(get_notifications),
):
    if not channel.dismiss(notification_id):
        raise HTTPException(404, "Notification not found")
    return Response(status_code=204)

"""Notification API routes for the POS terminal"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.session import PosSession
from ..models.notification import NotificationListResponse
from .deps import get_pos_session

router = APIRouter(prefix="/api/sessions/{session_id}/notifications", tags=["Notifications"])


def _list(session: PosSession) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=session.sink.notifications,
        unread_count=session.sink.unread_count,
    )


@router.get("", response_model=NotificationListResponse)
async def list_notifications(session: PosSession = Depends(get_pos_session)):
    """Session notifications, newest first"""
    return _list(session)


@router.post("/read-all", response_model=NotificationListResponse)
async def mark_all_read(session: PosSession = Depends(get_pos_session)):
    """Mark every notification as read"""
    session.sink.mark_all_read()
    return _list(session)


@router.post("/{notification_id}/read", response_model=NotificationListResponse)
async def mark_read(
    notification_id: int,
    session: PosSession = Depends(get_pos_session),
):
    """Mark one notification as read"""
    if not session.sink.mark_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return _list(session)


@router.delete("", response_model=NotificationListResponse)
async def clear_notifications(session: PosSession = Depends(get_pos_session)):
    """Empty the notification log"""
    session.sink.clear()
    return _list(session)

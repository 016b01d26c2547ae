from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from eduverse.core.firebase_connector import get_db
from eduverse.core.security import get_current_active_user
from eduverse.models.firestore_models import Notification
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.notification import MarkedRead, UnreadCount
from eduverse.services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=List[Notification])
def read_notifications(
    limit: Optional[int] = Query(None, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_active_user),
    db=Depends(get_db),
):
    return notification_service.get_notifications_for_user(db, current_user.uid, limit)


@router.get("/unread-count", response_model=UnreadCount)
def read_unread_count(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    return UnreadCount(count=notification_service.get_unread_notification_count(db, current_user.uid))


@router.post("/read-all", response_model=MarkedRead)
def mark_all_read(current_user: CurrentUser = Depends(get_current_active_user), db=Depends(get_db)):
    return MarkedRead(updated=notification_service.mark_all_notifications_as_read(db, current_user.uid))


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read(notification_id: str, current_user: CurrentUser = Depends(get_current_active_user),
              db=Depends(get_db)):
    notification_service.mark_notification_as_read(db, current_user.uid, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: str, current_user: CurrentUser = Depends(get_current_active_user),
                        db=Depends(get_db)):
    notification_service.delete_notification(db, current_user.uid, notification_id)

"""
Notifications in-app (collection `notifications`) avec copie email.
"""
import logging
from typing import Any, Dict, List, Optional

from eduverse.core.config import settings
from eduverse.core.exceptions import NotFoundError
from eduverse.models.firestore_models import (
    NOTIFICATIONS,
    USERS,
    Notification,
    create_doc,
    get_doc,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.services import email as email_service

logger = logging.getLogger(__name__)


def create_notification(
    db,
    user_id: str,
    title: str,
    message: str,
    type: str = "info",
    link: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    send_email: bool = True,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        link=link,
        data=data,
        read=False,
        created_at=utcnow(),
    )
    notification.id = create_doc(db, NOTIFICATIONS, notification.to_dict())

    if send_email:
        try:
            user = get_doc(db, USERS, user_id)
            if user and user.get("email"):
                email_service.send_email(
                    user["email"], title, email_service.notification_email(title, message, link)
                )
        except Exception:
            logger.exception(f"Failed to email notification {notification.id} to user {user_id}")

    return notification


def get_notifications_for_user(db, user_id: str, limit: Optional[int] = None) -> List[Notification]:
    limit = limit or settings.NOTIFICATIONS_PAGE_SIZE
    items = list_models(db, Notification, NOTIFICATIONS, where=[("userId", "==", user_id)])
    # sorted in memory: where + order_by would need a composite index
    return newest_first(items)[:limit]


def get_unread_notification_count(db, user_id: str) -> int:
    items = list_models(db, Notification, NOTIFICATIONS, where=[("userId", "==", user_id)])
    return sum(1 for n in items if not n.read)


def _owned_ref(db, user_id: str, notification_id: str):
    ref = db.collection(NOTIFICATIONS).document(notification_id)
    doc = ref.get()
    if not doc.exists or (doc.to_dict() or {}).get("userId") != user_id:
        raise NotFoundError("Notification not found")
    return ref


def mark_notification_as_read(db, user_id: str, notification_id: str) -> None:
    _owned_ref(db, user_id, notification_id).update({"read": True})


def mark_all_notifications_as_read(db, user_id: str) -> int:
    batch = db.batch()
    count = 0
    for doc in query(db, NOTIFICATIONS, where=[("userId", "==", user_id)]).stream():
        if not (doc.to_dict() or {}).get("read"):
            batch.update(doc.reference, {"read": True})
            count += 1
    if count:
        batch.commit()
    return count


def delete_notification(db, user_id: str, notification_id: str) -> None:
    _owned_ref(db, user_id, notification_id).delete()


def get_user_ids_by_role(db, role: str) -> List[str]:
    return [d.id for d in query(db, USERS, where=[("role", "==", role)]).stream()]


def get_admin_user_ids(db) -> List[str]:
    return get_user_ids_by_role(db, "admin")


def _notify_many(db, user_ids: List[str], **notification) -> int:
    sent = 0
    for uid in user_ids:
        try:
            create_notification(db, uid, **notification)
            sent += 1
        except Exception:
            logger.exception(f"Failed to notify user {uid}")
    return sent


def notify_all_admins(db, title: str, message: str, type: str = "info", link: Optional[str] = None,
                      data: Optional[Dict[str, Any]] = None) -> int:
    return _notify_many(db, get_admin_user_ids(db), title=title, message=message, type=type, link=link, data=data)


def notify_all_instructors(db, title: str, message: str, type: str = "info", link: Optional[str] = None,
                           data: Optional[Dict[str, Any]] = None) -> int:
    return _notify_many(db, get_user_ids_by_role(db, "formateur"),
                        title=title, message=message, type=type, link=link, data=data)

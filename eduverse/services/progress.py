"""
Suivi de progression : un document `progress` par (étudiant, cours).
Its existence is what "enrolled" means.
"""
import logging
from typing import List, Optional

from google.cloud.firestore import Increment

from eduverse.core.exceptions import NotFoundError, PermissionDeniedError
from eduverse.models.firestore_models import (
    COURSES,
    PROGRESS,
    Progress,
    list_models,
    query,
    utcnow,
)
from eduverse.schemas.auth import CurrentUser
from eduverse.services import admin_notifications
from eduverse.services.courses import actor_name, get_course, lesson_ids

logger = logging.getLogger(__name__)


def compute_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, round(100 * completed / total))


def _find(db, user_id: str, course_id: str):
    docs = list(query(db, PROGRESS, where=[("userId", "==", user_id), ("courseId", "==", course_id)],
                      limit=1).stream())
    return docs[0] if docs else None


def get_progress_for_user(db, user_id: str) -> List[Progress]:
    return list_models(db, Progress, PROGRESS, where=[("userId", "==", user_id)])


def get_progress(db, user_id: str, course_id: str) -> Optional[Progress]:
    return Progress.from_doc(_find(db, user_id, course_id))


def is_enrolled(db, user_id: str, course_id: str) -> bool:
    return _find(db, user_id, course_id) is not None


def create_progress(db, user_id: str, course_id: str, enrollment_request_id: Optional[str] = None,
                    batch=None) -> str:
    """Create the progress record unless one already exists; returns its id.

    With `batch`, the write is queued and the caller commits.
    """
    existing = _find(db, user_id, course_id)
    if existing is not None:
        return existing.id

    record = Progress(
        user_id=user_id,
        course_id=course_id,
        progress=0,
        completed=False,
        completed_lessons=[],
        started_at=utcnow(),
        enrollment_request_id=enrollment_request_id,
        status="active",
    )
    ref = db.collection(PROGRESS).document()
    if batch is not None:
        batch.set(ref, record.to_dict())
    else:
        ref.set(record.to_dict())
    return ref.id


def complete_lesson(db, user: CurrentUser, course_id: str, lesson_id: str) -> Progress:
    course = get_course(db, course_id)
    current = lesson_ids(course)
    if lesson_id not in current:
        raise NotFoundError("Lesson not found in this course")

    doc = _find(db, user.uid, course_id)
    if doc is None:
        raise PermissionDeniedError("You are not enrolled in this course.")
    record = Progress.from_doc(doc)

    if lesson_id in record.completed_lessons:
        return record

    completed_lessons = record.completed_lessons + [lesson_id]
    # lessons removed from the course since they were completed do not count
    done = set(completed_lessons) & set(current)
    percentage = compute_percentage(len(done), len(current))
    patch = {"completedLessons": completed_lessons, "progress": percentage}

    first_completion = percentage >= 100 and not record.completed
    if percentage >= 100:
        patch["completed"] = True
        if record.completed_at is None:
            patch["completedAt"] = utcnow()

    doc.reference.update(patch)
    logger.info(f"User {user.uid} completed lesson {lesson_id} of course {course_id} ({percentage}%)")

    if first_completion:
        admin_notifications.notify_admins_course_completed(db, course_id, course.title, actor_name(user))

    return Progress.from_doc(doc.reference.get())


def unenroll(db, user_id: str, course_id: str) -> None:
    doc = _find(db, user_id, course_id)
    if doc is None:
        raise NotFoundError("Not enrolled in this course")

    course_ref = db.collection(COURSES).document(course_id)
    course_doc = course_ref.get()
    batch = db.batch()
    batch.delete(doc.reference)
    if course_doc.exists and (course_doc.to_dict() or {}).get("studentCount", 0) > 0:
        batch.update(course_ref, {"studentCount": Increment(-1)})
    batch.commit()
    logger.info(f"User {user_id} unenrolled from course {course_id}")

"""
Catalogue des cours, édition par les formateurs et validation par l'admin.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from eduverse.core.config import settings
from eduverse.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from eduverse.core.permissions import Permissions, has_permission
from eduverse.models.firestore_models import (
    COURSES,
    ENROLLMENT_REQUESTS,
    PROGRESS,
    Course,
    Module,
    create_doc,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.course import CourseCreate, CourseUpdate, ModuleIn
from eduverse.services import admin_notifications
from eduverse.services.cloudinary import is_blob_url

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def build_modules(modules: List[ModuleIn]) -> List[Module]:
    """Give every module and lesson a stable id (kept when the client sent one)."""
    built = []
    for m in modules:
        lessons = [lesson.model_dump() | {"id": lesson.id or _new_id()} for lesson in m.lessons]
        built.append(Module(id=m.id or _new_id(), title=m.title, lessons=lessons))
    return built


def modules_payload(modules: List[Module]) -> List[Dict[str, Any]]:
    # `to_dict` drops ids, which lessons and modules need to keep
    return [m.model_dump(by_alias=True, exclude_none=True) for m in modules]


def lesson_ids(course: Course) -> List[str]:
    return [lesson.id for m in course.modules for lesson in m.lessons if lesson.id]


def count_lessons(course: Course) -> int:
    return sum(len(m.lessons) for m in course.modules)


def actor_name(user: CurrentUser) -> str:
    return user.display_name or user.email or user.uid


def get_course(db, course_id: str) -> Course:
    course = Course.from_doc(db.collection(COURSES).document(course_id).get())
    if course is None:
        raise NotFoundError("Course not found")
    return course


def list_courses(db, status: Optional[str] = None) -> List[Course]:
    where = [("status", "==", status)] if status else None
    return newest_first(list_models(db, Course, COURSES, where=where))


def list_published_courses(db) -> List[Course]:
    return list_courses(db, status="Published")


def list_courses_by_instructor(db, instructor_id: str) -> List[Course]:
    return newest_first(list_models(db, Course, COURSES, where=[("instructorId", "==", instructor_id)]))


def _ensure_can_edit(user: CurrentUser, course: Course) -> None:
    if not has_permission(user.role, Permissions.UPDATE_COURSE, "courses",
                          {"owner": course.instructor_id == user.uid}):
        raise PermissionDeniedError("You can only edit your own courses.")


def _ensure_unique_title(db, title: str, exclude_id: Optional[str] = None) -> None:
    for doc in query(db, COURSES, where=[("title", "==", title)]).stream():
        if doc.id != exclude_id:
            raise ConflictError(f'A course titled "{title}" already exists.')


def create_course(db, author: CurrentUser, payload: CourseCreate) -> Course:
    if not has_permission(author.role, Permissions.CREATE_COURSE, "courses"):
        raise PermissionDeniedError("Only instructors and admins can create courses.")
    _ensure_unique_title(db, payload.title)

    if payload.save_as_draft:
        status = "Draft"
    elif author.is_admin and payload.publish:
        status = "Published"
    else:
        status = "pending_approval"

    now = utcnow()
    course = Course(
        title=payload.title,
        description=payload.description,
        instructor_id=author.uid,
        status=status,
        modules=build_modules(payload.modules),
        student_count=0,
        image_url=payload.image_url if payload.image_url and not is_blob_url(payload.image_url)
        else settings.DEFAULT_COURSE_IMAGE,
        category=payload.category,
        level=payload.level,
        requires_approval=payload.requires_approval,
        created_at=now,
        updated_at=now,
    )
    data = course.to_dict()
    data["modules"] = modules_payload(course.modules)
    course.id = create_doc(db, COURSES, data)
    logger.info(f"Course {course.id} created by {author.uid} with status {status}")

    admin_notifications.notify_admins_new_course(db, course.id, course.title, actor_name(author))
    return course


def update_course(db, actor: CurrentUser, course_id: str, changes: CourseUpdate) -> Course:
    course = get_course(db, course_id)
    _ensure_can_edit(actor, course)

    patch = changes.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if not patch:
        return course
    if "title" in patch and patch["title"] != course.title:
        _ensure_unique_title(db, patch["title"], exclude_id=course_id)
    if changes.modules is not None:
        patch["modules"] = modules_payload(build_modules(changes.modules))
    if "imageUrl" in patch and is_blob_url(patch["imageUrl"]):
        patch["imageUrl"] = settings.DEFAULT_COURSE_IMAGE
    patch["updatedAt"] = utcnow()

    db.collection(COURSES).document(course_id).update(patch)
    admin_notifications.notify_admins_course_updated(db, course_id, patch.get("title", course.title),
                                                     actor_name(actor))
    return get_course(db, course_id)


def submit_course_for_review(db, actor: CurrentUser, course_id: str) -> Course:
    course = get_course(db, course_id)
    if course.instructor_id != actor.uid:
        raise PermissionDeniedError("Only the course instructor can submit it for review.")
    if course.status not in ("Draft", "rejected"):
        raise ConflictError(f"Course cannot be submitted while {course.status}.")

    db.collection(COURSES).document(course_id).update({"status": "pending_approval", "updatedAt": utcnow()})
    admin_notifications.notify_admins_course_updated(db, course_id, course.title, actor_name(actor))
    return get_course(db, course_id)


def review_course(db, admin: CurrentUser, course_id: str, action: str, reason: Optional[str] = None) -> Course:
    if not admin.is_admin:
        raise PermissionDeniedError("Only admins can review courses.")
    course = get_course(db, course_id)
    if course.status != "pending_approval":
        raise ConflictError("Course is not pending approval")

    new_status = "Published" if action == "approve" else "rejected"
    now = utcnow()
    db.collection(COURSES).document(course_id).update({
        "status": new_status,
        "approvedBy": admin.uid,
        "approvedAt": now,
        "approvalReason": reason,
        "updatedAt": now,
    })
    logger.info(f"Course {course_id} {new_status} by {admin.uid}")

    if action == "approve":
        admin_notifications.notify_formateur_course_approved(
            db, course.instructor_id, course_id, course.title, actor_name(admin))
    else:
        admin_notifications.notify_formateur_course_rejected(
            db, course.instructor_id, course_id, course.title, actor_name(admin), reason)
    return get_course(db, course_id)


def delete_course(db, actor: CurrentUser, course_id: str) -> int:
    """Delete a course, its progress records and its pending enrollment requests.

    Returns the number of progress records removed.
    """
    course = get_course(db, course_id)
    if not (actor.is_admin or course.instructor_id == actor.uid):
        raise PermissionDeniedError("You can only delete your own courses.")

    batch = db.batch()
    removed = 0
    for doc in query(db, PROGRESS, where=[("courseId", "==", course_id)]).stream():
        batch.delete(doc.reference)
        removed += 1
    pending = [("courseId", "==", course_id), ("status", "==", "pending")]
    for doc in query(db, ENROLLMENT_REQUESTS, where=pending).stream():
        batch.delete(doc.reference)
    batch.delete(db.collection(COURSES).document(course_id))
    batch.commit()
    logger.info(f"Course {course_id} deleted by {actor.uid} ({removed} progress records)")

    admin_notifications.notify_admins_course_deleted(db, course.title, actor_name(actor))
    return removed


def cleanup_blob_image_urls(db) -> int:
    """Replace `blob:` or empty image URLs saved by the web client with the placeholder."""
    fixed = 0
    for doc in db.collection(COURSES).stream():
        url = (doc.to_dict() or {}).get("imageUrl")
        if not url or is_blob_url(url):
            doc.reference.update({"imageUrl": settings.DEFAULT_COURSE_IMAGE, "updatedAt": utcnow()})
            fixed += 1
    logger.info(f"Fixed {fixed} course image URLs")
    return fixed

"""
Demandes d'inscription : création, réponse (admin ou formateur du cours), annulation.
"""
import logging
from typing import List, Optional

from google.cloud.firestore import Increment

from eduverse.core.config import settings
from eduverse.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from eduverse.models.firestore_models import (
    COURSES,
    ENROLLMENT_REQUESTS,
    EnrollmentRequest,
    create_doc,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.enrollment import EnrollmentResult
from eduverse.services import admin_notifications
from eduverse.services import email as email_service
from eduverse.services.courses import actor_name, get_course
from eduverse.services.notifications import create_notification
from eduverse.services.progress import create_progress, is_enrolled

logger = logging.getLogger(__name__)


def _has_pending_request(db, student_id: str, course_id: str) -> bool:
    docs = query(db, ENROLLMENT_REQUESTS, where=[
        ("studentId", "==", student_id),
        ("courseId", "==", course_id),
        ("status", "==", "pending"),
    ], limit=1).stream()
    return any(True for _ in docs)


def request_enrollment(db, student: CurrentUser, course_id: str, message: Optional[str] = None) -> EnrollmentResult:
    if student.is_admin:
        raise PermissionDeniedError("Admins cannot enroll in courses.")

    course = get_course(db, course_id)
    if not course.is_published:
        raise ValidationFailedError("This course is not open for enrollment.")
    if is_enrolled(db, student.uid, course_id):
        raise ConflictError("You are already enrolled in this course.")
    if _has_pending_request(db, student.uid, course_id):
        raise ConflictError("You already have a pending request for this course.")

    if not course.requires_approval:
        batch = db.batch()
        progress_id = create_progress(db, student.uid, course_id, batch=batch)
        batch.update(db.collection(COURSES).document(course_id), {"studentCount": Increment(1)})
        batch.commit()
        logger.info(f"User {student.uid} enrolled directly in course {course_id}")
        return EnrollmentResult(
            requires_approval=False,
            enrolled=True,
            progress_id=progress_id,
            message="Successfully enrolled in the course.",
        )

    now = utcnow()
    request = EnrollmentRequest(
        student_id=student.uid,
        student_name=actor_name(student),
        student_email=student.email or "",
        course_id=course_id,
        course_title=course.title,
        instructor_id=course.instructor_id,
        status="pending",
        request_message=message,
        created_at=now,
        updated_at=now,
    )
    data = request.to_dict()
    data["requestMessage"] = message
    request.id = create_doc(db, ENROLLMENT_REQUESTS, data)
    logger.info(f"Enrollment request {request.id} created by {student.uid} for course {course_id}")

    _send_request_notifications(db, request)
    return EnrollmentResult(
        requires_approval=True,
        request_id=request.id,
        message="Enrollment request submitted. You will be notified once it is reviewed.",
    )


def _send_request_notifications(db, request: EnrollmentRequest) -> None:
    admin_notifications.notify_admins_new_enrollment_request(
        db, request.student_name, request.student_email, request.course_title)

    if request.instructor_id:
        try:
            create_notification(
                db,
                request.instructor_id,
                title="New Enrollment Request",
                message=f'{request.student_name} has requested to enroll in your course "{request.course_title}"',
                link="/formateur/enrollment-requests",
                data={"requestId": request.id, "courseId": request.course_id},
            )
        except Exception:
            logger.exception(f"Failed to notify instructor {request.instructor_id}")

    try:
        email_service.send_email(
            settings.ADMIN_EMAIL,
            f"New enrollment request: {request.course_title}",
            email_service.enrollment_request_email(
                request.student_name, request.student_email, request.course_title, request.request_message),
        )
    except Exception:
        logger.exception("Failed to email the admin address about a new enrollment request")


def list_enrollment_requests(db, user: CurrentUser, status: Optional[str] = None) -> List[EnrollmentRequest]:
    where = []
    if user.is_student:
        where.append(("studentId", "==", user.uid))
    elif user.is_formateur:
        where.append(("instructorId", "==", user.uid))
    if status:
        where.append(("status", "==", status))
    return newest_first(list_models(db, EnrollmentRequest, ENROLLMENT_REQUESTS, where=where or None))


def get_enrollment_request(db, request_id: str) -> EnrollmentRequest:
    request = EnrollmentRequest.from_doc(db.collection(ENROLLMENT_REQUESTS).document(request_id).get())
    if request is None:
        raise NotFoundError("Enrollment request not found")
    return request


def respond_to_enrollment_request(
    db,
    responder: CurrentUser,
    request_id: str,
    status: str,
    response_message: Optional[str] = None,
) -> EnrollmentRequest:
    request = get_enrollment_request(db, request_id)
    if not (responder.is_admin or (responder.is_formateur and request.instructor_id == responder.uid)):
        raise PermissionDeniedError("You cannot respond to this enrollment request.")
    if request.status != "pending":
        raise ConflictError(f"This request has already been {request.status}.")
    # raises NotFoundError when the course was deleted in the meantime
    get_course(db, request.course_id)

    now = utcnow()
    batch = db.batch()
    batch.update(db.collection(ENROLLMENT_REQUESTS).document(request_id), {
        "status": status,
        "responseMessage": response_message,
        "respondedBy": responder.uid,
        "respondedAt": now,
        "updatedAt": now,
    })
    if status == "approved" and not is_enrolled(db, request.student_id, request.course_id):
        create_progress(db, request.student_id, request.course_id, enrollment_request_id=request_id, batch=batch)
        batch.update(db.collection(COURSES).document(request.course_id), {"studentCount": Increment(1)})
    batch.commit()
    logger.info(f"Enrollment request {request_id} {status} by {responder.uid}")

    request = request.model_copy(update={
        "status": status,
        "response_message": response_message,
        "responded_by": responder.uid,
        "responded_at": now,
        "updated_at": now,
    })
    _send_response_notifications(db, request, actor_name(responder))
    return request


def _send_response_notifications(db, request: EnrollmentRequest, responder_name: str) -> None:
    approved = request.status == "approved"

    try:
        create_notification(
            db,
            request.student_id,
            title=f"Enrollment {'Approved' if approved else 'Denied'}",
            message=(
                f'Your enrollment in "{request.course_title}" has been approved.'
                if approved else f'Your enrollment in "{request.course_title}" has been denied.'
            ),
            type="success" if approved else "warning",
            link=f"/courses/{request.course_id}" if approved else "/courses",
            send_email=False,
        )
    except Exception:
        logger.exception(f"Failed to notify student {request.student_id}")

    if request.student_email:
        try:
            if approved:
                html = email_service.enrollment_approved_email(
                    request.student_name, request.course_title, request.course_id, request.response_message)
                subject = f"Enrollment approved: {request.course_title}"
            else:
                html = email_service.enrollment_denied_email(
                    request.student_name, request.course_title, request.response_message)
                subject = f"Enrollment request update: {request.course_title}"
            email_service.send_email(request.student_email, subject, html)
        except Exception:
            logger.exception(f"Failed to email student {request.student_id}")

    if request.instructor_id and request.instructor_id != request.responded_by:
        try:
            create_notification(
                db,
                request.instructor_id,
                title=f"Enrollment {'Approved' if approved else 'Denied'}",
                message=f'{request.student_name}\'s request for "{request.course_title}" was {request.status}.',
                type="info",
                link="/formateur/enrollment-requests",
                send_email=False,
            )
        except Exception:
            logger.exception(f"Failed to notify instructor {request.instructor_id}")

    if approved:
        admin_notifications.notify_admins_enrollment_approved(
            db, request.student_name, request.course_title, responder_name)
    else:
        admin_notifications.notify_admins_enrollment_denied(
            db, request.student_name, request.course_title, responder_name, request.response_message)


def cancel_enrollment_request(db, student: CurrentUser, request_id: str) -> None:
    request = get_enrollment_request(db, request_id)
    if request.student_id != student.uid:
        raise PermissionDeniedError("You can only cancel your own requests.")
    if request.status != "pending":
        raise ConflictError("Only pending requests can be cancelled.")
    db.collection(ENROLLMENT_REQUESTS).document(request_id).delete()
    logger.info(f"Enrollment request {request_id} cancelled by {student.uid}")

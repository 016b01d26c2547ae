"""
Notifications pour les événements de la plateforme.

Every sender here is best effort: a failure is logged and swallowed so the
operation that triggered it still succeeds.
"""
import functools
import logging
from typing import Optional

from eduverse.services.notifications import create_notification, notify_all_admins

logger = logging.getLogger(__name__)


def best_effort(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception(f"Notification '{func.__name__}' failed")
            return None
    return wrapper


def _reason(reason: Optional[str]) -> str:
    return f" - Reason: {reason}" if reason else ""


# --- Courses ---
@best_effort
def notify_admins_new_course(db, course_id: str, title: str, created_by: str):
    notify_all_admins(
        db,
        title="New Course Created",
        message=f'A new course "{title}" has been created by {created_by}',
        link=f"/admin/courses/{course_id}",
    )


@best_effort
def notify_admins_course_updated(db, course_id: str, title: str, updated_by: str):
    notify_all_admins(
        db,
        title="Course Updated",
        message=f'Course "{title}" has been updated by {updated_by}',
        link=f"/admin/courses/{course_id}",
    )


@best_effort
def notify_admins_course_deleted(db, title: str, deleted_by: str):
    notify_all_admins(
        db,
        title="Course Deleted",
        message=f'Course "{title}" has been deleted by {deleted_by}',
        type="warning",
        link="/admin/courses",
    )


@best_effort
def notify_formateur_course_approved(db, instructor_id: str, course_id: str, title: str, admin_name: str):
    create_notification(
        db,
        instructor_id,
        title="Course Approved!",
        message=f'Your course "{title}" has been approved by {admin_name} and is now live for students.',
        type="success",
        link=f"/formateur/courses/{course_id}",
    )


@best_effort
def notify_formateur_course_rejected(db, instructor_id: str, course_id: str, title: str, admin_name: str,
                                     reason: Optional[str] = None):
    detail = f"Reason: {reason}" if reason else "Please review and resubmit."
    create_notification(
        db,
        instructor_id,
        title="Course Review Required",
        message=f'Your course "{title}" needs revisions ({admin_name}). {detail}',
        type="warning",
        link=f"/formateur/courses/{course_id}",
    )


@best_effort
def notify_admins_course_completed(db, course_id: str, course_title: str, student_name: str):
    notify_all_admins(
        db,
        title="Course Completion",
        message=f'{student_name} has completed the course "{course_title}"',
        type="success",
        link=f"/admin/courses/{course_id}/progress",
    )


@best_effort
def notify_admins_new_quiz(db, course_id: str, quiz_title: str, course_title: str, created_by: str):
    notify_all_admins(
        db,
        title="New Quiz Created",
        message=f'New quiz "{quiz_title}" has been added to course "{course_title}" by {created_by}',
        link=f"/admin/courses/{course_id}/quizzes",
    )


# --- Users ---
def _who(display_name: str, email: Optional[str]) -> str:
    return f"{display_name} ({email})" if email else display_name


@best_effort
def notify_admins_new_user(db, uid: str, display_name: str, email: Optional[str], role: str, created_by: str):
    notify_all_admins(
        db,
        title="New User Account Created",
        message=f"New {role} account created for {_who(display_name, email)} by {created_by}",
        link=f"/admin/users/{uid}",
    )


@best_effort
def notify_admins_user_updated(db, uid: str, display_name: str, email: Optional[str], updated_by: str):
    notify_all_admins(
        db,
        title="User Account Updated",
        message=f"User account for {_who(display_name, email)} has been updated by {updated_by}",
        link=f"/admin/users/{uid}",
    )


@best_effort
def notify_admins_user_deleted(db, display_name: str, email: Optional[str], deleted_by: str):
    notify_all_admins(
        db,
        title="User Account Deleted",
        message=f"User account for {_who(display_name, email)} has been deleted by {deleted_by}",
        type="warning",
        link="/admin/users",
    )


@best_effort
def notify_admins_user_suspended(db, uid: str, display_name: str, email: Optional[str], suspended_by: str,
                                 reason: Optional[str] = None):
    notify_all_admins(
        db,
        title="User Account Suspended",
        message=f"User account for {_who(display_name, email)} has been suspended by {suspended_by}{_reason(reason)}",
        type="warning",
        link=f"/admin/users/{uid}",
    )


@best_effort
def notify_admins_user_activated(db, uid: str, display_name: str, email: Optional[str], activated_by: str):
    notify_all_admins(
        db,
        title="User Account Activated",
        message=f"User account for {_who(display_name, email)} has been activated by {activated_by}",
        type="success",
        link=f"/admin/users/{uid}",
    )


# --- Enrollment ---
@best_effort
def notify_admins_new_enrollment_request(db, student_name: str, student_email: str, course_title: str):
    notify_all_admins(
        db,
        title="New Enrollment Request",
        message=f'{student_name} ({student_email}) has requested to enroll in "{course_title}"',
        link="/admin/enrollment-requests",
    )


@best_effort
def notify_admins_enrollment_approved(db, student_name: str, course_title: str, approved_by: str):
    notify_all_admins(
        db,
        title="Enrollment Approved",
        message=f'Enrollment request for {student_name} in "{course_title}" has been approved by {approved_by}',
        type="success",
        link="/admin/enrollment-requests",
    )


@best_effort
def notify_admins_enrollment_denied(db, student_name: str, course_title: str, denied_by: str,
                                    reason: Optional[str] = None):
    notify_all_admins(
        db,
        title="Enrollment Denied",
        message=(
            f'Enrollment request for {student_name} in "{course_title}" has been denied by {denied_by}'
            f"{_reason(reason)}"
        ),
        type="warning",
        link="/admin/enrollment-requests",
    )

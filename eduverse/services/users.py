"""
Gestion des comptes : Firebase Auth + profil Firestore `users/{uid}`.
"""
import logging
from typing import List, Optional

from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError
from google.cloud.firestore import Increment

from eduverse.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    ValidationFailedError,
)
from eduverse.core.permissions import (
    can_delete_role,
    can_manage_role,
    can_suspend_role,
    manageable_roles,
    validate_role_assignment,
)
from eduverse.models.firestore_models import (
    COURSES,
    ENROLLMENT_REQUESTS,
    PROGRESS,
    USERS,
    UserProfile,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.schemas.auth import CurrentUser, SignupRequest
from eduverse.schemas.user import UserCreate, UserUpdate
from eduverse.services import admin_notifications
from eduverse.services import email as email_service
from eduverse.services.courses import actor_name
from eduverse.services.progress import create_progress

logger = logging.getLogger(__name__)


def _create_auth_account(email: str, password: str, display_name: str, role: str) -> str:
    try:
        record = auth.create_user(email=email, password=password, display_name=display_name)
    except auth.EmailAlreadyExistsError:
        raise ConflictError("An account with this email already exists.")
    except ValueError as e:
        raise ValidationFailedError(str(e))
    except FirebaseError as e:
        logger.error(f"Firebase Auth create_user failed for {email}: {e}")
        raise ServiceUnavailableError("Could not create the account. Please try again.")
    auth.set_custom_user_claims(record.uid, {"role": role})
    return record.uid


def _write_profile(db, uid: str, profile: UserProfile) -> None:
    """Store the profile, removing the Auth account again if the write fails."""
    try:
        db.collection(USERS).document(uid).set(profile.to_dict())
    except Exception:
        logger.exception(f"Profile write failed for {uid}; rolling back the Auth account")
        try:
            auth.delete_user(uid)
        except FirebaseError:
            logger.exception(f"Rollback of Auth account {uid} failed")
        raise


def _send_welcome(profile: UserProfile) -> None:
    if not profile.email:
        return
    try:
        email_service.send_email(
            profile.email,
            "Welcome to EduVerse",
            email_service.welcome_email(profile.display_name, profile.role),
        )
    except Exception:
        logger.exception(f"Failed to send welcome email to {profile.email}")


def get_user(db, uid: str) -> UserProfile:
    profile = UserProfile.from_doc(db.collection(USERS).document(uid).get())
    if profile is None:
        raise NotFoundError("User not found")
    return profile


def create_user(db, creator: CurrentUser, payload: UserCreate) -> UserProfile:
    ok, message = validate_role_assignment(creator.role, payload.role)
    if not ok:
        raise PermissionDeniedError(message)

    course_refs = []
    for course_id in dict.fromkeys(payload.course_ids):
        ref = db.collection(COURSES).document(course_id)
        if not ref.get().exists:
            raise NotFoundError(f"Course {course_id} not found")
        course_refs.append(ref)

    uid = _create_auth_account(payload.email, payload.password, payload.display_name, payload.role)
    profile = UserProfile(
        id=uid,
        email=payload.email,
        display_name=payload.display_name,
        role=payload.role,
        status="active",
        created_at=utcnow(),
        created_by=creator.uid,
    )
    _write_profile(db, uid, profile)
    logger.info(f"User {uid} ({payload.role}) created by {creator.uid}")

    if course_refs:
        batch = db.batch()
        for ref in course_refs:
            create_progress(db, uid, ref.id, batch=batch)
            batch.update(ref, {"studentCount": Increment(1)})
        batch.commit()

    _send_welcome(profile)
    admin_notifications.notify_admins_new_user(
        db, uid, profile.display_name, profile.email, profile.role, actor_name(creator))
    return profile


def signup(db, payload: SignupRequest) -> UserProfile:
    display_name = f"{payload.first_name} {payload.last_name}".strip()
    uid = _create_auth_account(payload.email, payload.password, display_name, payload.role)
    profile = UserProfile(
        id=uid,
        email=payload.email,
        display_name=display_name,
        role=payload.role,
        status="active",
        created_at=utcnow(),
    )
    _write_profile(db, uid, profile)
    logger.info(f"User {uid} signed up as {payload.role}")

    _send_welcome(profile)
    admin_notifications.notify_admins_new_user(
        db, uid, display_name, profile.email, profile.role, "self-registration")
    return profile


def list_users(db, actor: CurrentUser, role: Optional[str] = None) -> List[UserProfile]:
    visible = manageable_roles(actor.role)
    if not visible:
        raise PermissionDeniedError("Not enough permissions")
    if role and role not in visible:
        return []
    roles = [role] if role else visible
    if len(roles) == 1:
        users = list_models(db, UserProfile, USERS, where=[("role", "==", roles[0])])
    else:
        users = [u for u in list_models(db, UserProfile, USERS) if u.role in roles]
    return newest_first(users)


def _ensure_can_manage(actor: CurrentUser, target: UserProfile) -> None:
    if actor.uid != target.id and not can_manage_role(actor.role, target.role):
        raise PermissionDeniedError("You cannot manage this user.")


def update_user(db, actor: CurrentUser, uid: str, changes: UserUpdate) -> UserProfile:
    target = get_user(db, uid)
    _ensure_can_manage(actor, target)

    patch = changes.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if not patch:
        return target

    if "role" in patch and patch["role"] != target.role:
        if actor.uid == uid:
            raise PermissionDeniedError("You cannot change your own role.")
        ok, message = validate_role_assignment(actor.role, patch["role"])
        if not ok:
            raise PermissionDeniedError(message)

    auth_changes = {}
    if "displayName" in patch:
        auth_changes["display_name"] = patch["displayName"]
    if "email" in patch:
        auth_changes["email"] = patch["email"]
    try:
        if auth_changes:
            auth.update_user(uid, **auth_changes)
        if "role" in patch:
            auth.set_custom_user_claims(uid, {"role": patch["role"]})
    except auth.EmailAlreadyExistsError:
        raise ConflictError("An account with this email already exists.")
    except auth.UserNotFoundError:
        logger.warning(f"User {uid} has a profile but no Auth account; updating the profile only")

    patch["updatedAt"] = utcnow()
    db.collection(USERS).document(uid).update(patch)
    logger.info(f"User {uid} updated by {actor.uid}: {sorted(patch)}")

    updated = get_user(db, uid)
    admin_notifications.notify_admins_user_updated(db, uid, updated.display_name, updated.email, actor_name(actor))
    return updated


def set_user_status(db, actor: CurrentUser, uid: str, status: str, reason: Optional[str] = None) -> UserProfile:
    if actor.uid == uid:
        raise PermissionDeniedError("You cannot change the status of your own account.")
    target = get_user(db, uid)
    if not can_suspend_role(actor.role, target.role):
        raise PermissionDeniedError("You cannot change the status of this user.")

    try:
        auth.update_user(uid, disabled=status == "suspended")
    except auth.UserNotFoundError:
        logger.warning(f"User {uid} has no Auth account; updating the profile only")

    db.collection(USERS).document(uid).update({"status": status, "updatedAt": utcnow()})
    logger.info(f"User {uid} set to {status} by {actor.uid}")

    if status == "suspended":
        admin_notifications.notify_admins_user_suspended(
            db, uid, target.display_name, target.email, actor_name(actor), reason)
    else:
        admin_notifications.notify_admins_user_activated(
            db, uid, target.display_name, target.email, actor_name(actor))
    return get_user(db, uid)


def delete_user(db, actor: CurrentUser, uid: str) -> None:
    if actor.uid == uid:
        raise PermissionDeniedError("You cannot delete your own account.")
    target = get_user(db, uid)
    if not can_delete_role(actor.role, target.role):
        raise PermissionDeniedError("You cannot delete this user.")

    try:
        auth.delete_user(uid)
    except auth.UserNotFoundError:
        logger.warning(f"Auth account {uid} already gone; removing the profile")

    batch = db.batch()
    for doc in query(db, PROGRESS, where=[("userId", "==", uid)]).stream():
        batch.delete(doc.reference)
        course_id = (doc.to_dict() or {}).get("courseId")
        if not course_id:
            continue
        course_ref = db.collection(COURSES).document(course_id)
        course_doc = course_ref.get()
        if course_doc.exists and (course_doc.to_dict() or {}).get("studentCount", 0) > 0:
            batch.update(course_ref, {"studentCount": Increment(-1)})
    pending = [("studentId", "==", uid), ("status", "==", "pending")]
    for doc in query(db, ENROLLMENT_REQUESTS, where=pending).stream():
        batch.delete(doc.reference)
    batch.delete(db.collection(USERS).document(uid))
    batch.commit()
    logger.info(f"User {uid} deleted by {actor.uid}")

    admin_notifications.notify_admins_user_deleted(db, target.display_name, target.email, actor_name(actor))

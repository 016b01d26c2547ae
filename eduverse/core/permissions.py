"""
Role-based access control: which role may do what, and which roles it may
create, manage, suspend or delete.
"""
from typing import Any, Dict, List, NamedTuple, Optional, Tuple


class Roles:
    ADMIN = "admin"
    FORMATEUR = "formateur"
    STUDENT = "student"

    ALL = (ADMIN, FORMATEUR, STUDENT)


class Permissions:
    CREATE_USER = "create_user"
    READ_USER = "read_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    SUSPEND_USER = "suspend_user"

    CREATE_COURSE = "create_course"
    READ_COURSE = "read_course"
    UPDATE_COURSE = "update_course"
    DELETE_COURSE = "delete_course"
    PUBLISH_COURSE = "publish_course"

    CREATE_QUIZ = "create_quiz"
    READ_QUIZ = "read_quiz"
    UPDATE_QUIZ = "update_quiz"
    DELETE_QUIZ = "delete_quiz"

    VIEW_ANALYTICS = "view_analytics"
    VIEW_REPORTS = "view_reports"

    MANAGE_SYSTEM = "manage_system"
    ACCESS_ADMIN_PANEL = "access_admin_panel"


class Permission(NamedTuple):
    action: str
    resource: str
    conditions: Optional[Dict[str, Any]] = None


ROLE_PERMISSIONS: Dict[str, Dict[str, Any]] = {
    Roles.ADMIN: {
        "permissions": [
            Permission(Permissions.CREATE_USER, "users"),
            Permission(Permissions.READ_USER, "users"),
            Permission(Permissions.UPDATE_USER, "users"),
            Permission(Permissions.DELETE_USER, "users"),
            Permission(Permissions.SUSPEND_USER, "users"),
            Permission(Permissions.CREATE_COURSE, "courses"),
            Permission(Permissions.READ_COURSE, "courses"),
            Permission(Permissions.UPDATE_COURSE, "courses"),
            Permission(Permissions.DELETE_COURSE, "courses"),
            Permission(Permissions.PUBLISH_COURSE, "courses"),
            Permission(Permissions.CREATE_QUIZ, "quizzes"),
            Permission(Permissions.READ_QUIZ, "quizzes"),
            Permission(Permissions.UPDATE_QUIZ, "quizzes"),
            Permission(Permissions.DELETE_QUIZ, "quizzes"),
            Permission(Permissions.VIEW_ANALYTICS, "analytics"),
            Permission(Permissions.VIEW_REPORTS, "reports"),
            Permission(Permissions.MANAGE_SYSTEM, "system"),
            Permission(Permissions.ACCESS_ADMIN_PANEL, "admin"),
        ],
        "can_create": list(Roles.ALL),
        "can_manage": list(Roles.ALL),
        "can_delete": list(Roles.ALL),
        "can_suspend": list(Roles.ALL),
    },
    Roles.FORMATEUR: {
        "permissions": [
            Permission(Permissions.CREATE_USER, "users", {"role": Roles.STUDENT}),
            Permission(Permissions.READ_USER, "users", {"role": Roles.STUDENT}),
            Permission(Permissions.UPDATE_USER, "users", {"role": Roles.STUDENT}),
            Permission(Permissions.CREATE_COURSE, "courses"),
            Permission(Permissions.READ_COURSE, "courses"),
            Permission(Permissions.UPDATE_COURSE, "courses", {"owner": True}),
            Permission(Permissions.PUBLISH_COURSE, "courses", {"owner": True}),
            Permission(Permissions.CREATE_QUIZ, "quizzes", {"course_owner": True}),
            Permission(Permissions.READ_QUIZ, "quizzes", {"course_owner": True}),
            Permission(Permissions.UPDATE_QUIZ, "quizzes", {"course_owner": True}),
            Permission(Permissions.DELETE_QUIZ, "quizzes", {"course_owner": True}),
            Permission(Permissions.VIEW_ANALYTICS, "analytics", {"own_courses": True}),
        ],
        "can_create": [Roles.STUDENT],
        "can_manage": [Roles.STUDENT],
        "can_delete": [],
        "can_suspend": [Roles.STUDENT],
    },
    Roles.STUDENT: {
        "permissions": [
            Permission(Permissions.READ_COURSE, "courses", {"published": True}),
            Permission(Permissions.READ_QUIZ, "quizzes", {"enrolled": True}),
        ],
        "can_create": [],
        "can_manage": [],
        "can_delete": [],
        "can_suspend": [],
    },
}


def has_permission(role: str, action: str, resource: str, context: Optional[Dict[str, Any]] = None) -> bool:
    """True when `role` holds (action, resource) and every condition matches `context`.

    Conditions are only enforced when a context is supplied, so callers can ask
    the coarse question ("may formateurs update courses at all?") first.
    """
    entry = ROLE_PERMISSIONS.get(role)
    if not entry:
        return False

    permission = next((p for p in entry["permissions"] if p.action == action and p.resource == resource), None)
    if permission is None:
        return False

    if permission.conditions and context is not None:
        for key, expected in permission.conditions.items():
            if context.get(key) != expected:
                return False
    return True


def _roles(role: str, key: str) -> List[str]:
    entry = ROLE_PERMISSIONS.get(role)
    return list(entry[key]) if entry else []


def can_create_role(role: str, target_role: str) -> bool:
    return target_role in _roles(role, "can_create")


def can_manage_role(role: str, target_role: str) -> bool:
    return target_role in _roles(role, "can_manage")


def can_delete_role(role: str, target_role: str) -> bool:
    return target_role in _roles(role, "can_delete")


def can_suspend_role(role: str, target_role: str) -> bool:
    return target_role in _roles(role, "can_suspend")


def creatable_roles(role: str) -> List[str]:
    return _roles(role, "can_create")


def manageable_roles(role: str) -> List[str]:
    return _roles(role, "can_manage")


def validate_role_assignment(creator_role: str, target_role: str) -> Tuple[bool, Optional[str]]:
    """Prevent privilege escalation when a user creates or re-roles another user."""
    if target_role not in Roles.ALL:
        return False, "Invalid role assignment."
    if can_create_role(creator_role, target_role):
        return True, None
    if creator_role == Roles.FORMATEUR:
        return False, "Instructors can only create student accounts."
    if creator_role == Roles.STUDENT:
        return False, "Students cannot assign roles to other users."
    return False, "Invalid role assignment."

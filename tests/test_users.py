from types import SimpleNamespace

import pytest
from firebase_admin import auth as firebase_auth

from eduverse.core.exceptions import ConflictError, PermissionDeniedError
from eduverse.models.firestore_models import COURSES, ENROLLMENT_REQUESTS, NOTIFICATIONS, PROGRESS, USERS
from eduverse.schemas.auth import SignupRequest
from eduverse.schemas.user import UserCreate, UserUpdate
from eduverse.services import users as service


@pytest.fixture
def firebase_accounts(monkeypatch):
    """In-memory stand-in for Firebase Auth accounts."""
    accounts = {}

    def create_user(email, password, display_name):
        if any(a["email"] == email for a in accounts.values()):
            raise firebase_auth.EmailAlreadyExistsError("exists", None, None)
        uid = f"uid-{len(accounts) + 1}"
        accounts[uid] = {"email": email, "display_name": display_name, "claims": {}, "disabled": False}
        return SimpleNamespace(uid=uid)

    def update_user(uid, **changes):
        accounts[uid].update(changes)

    monkeypatch.setattr(firebase_auth, "create_user", create_user)
    monkeypatch.setattr(firebase_auth, "update_user", update_user)
    monkeypatch.setattr(firebase_auth, "set_custom_user_claims",
                        lambda uid, claims: accounts[uid].update(claims=claims))
    monkeypatch.setattr(firebase_auth, "delete_user", lambda uid: accounts.pop(uid))
    return accounts


def _new(role="student", **extra):
    return UserCreate(email=f"{role}@eduverse.test", password="secret123", display_name=f"New {role}",
                      role=role, **extra)


def test_admin_creates_any_role(db, admin, firebase_accounts, sent_emails):
    profile = service.create_user(db, admin, _new("formateur"))

    assert db.docs(USERS)[profile.id]["role"] == "formateur"
    assert db.docs(USERS)[profile.id]["createdBy"] == admin.uid
    assert firebase_accounts[profile.id]["claims"] == {"role": "formateur"}
    assert ("formateur@eduverse.test", "Welcome to EduVerse") in sent_emails


def test_formateur_only_creates_students(db, formateur, firebase_accounts):
    with pytest.raises(PermissionDeniedError):
        service.create_user(db, formateur, _new("admin"))
    assert firebase_accounts == {}
    assert service.create_user(db, formateur, _new("student")).role == "student"


def test_created_student_is_enrolled_in_courses(db, admin, firebase_accounts, course_id):
    profile = service.create_user(db, admin, _new(course_ids=[course_id, course_id]))

    records = [p for p in db.docs(PROGRESS).values() if p["userId"] == profile.id]
    assert len(records) == 1
    assert db.docs(COURSES)[course_id]["studentCount"] == 1


def test_duplicate_email_conflicts(db, admin, firebase_accounts):
    service.create_user(db, admin, _new())
    with pytest.raises(ConflictError):
        service.create_user(db, admin, _new())


def test_signup_notifies_admins(db, admin, firebase_accounts):
    profile = service.signup(db, SignupRequest(email="kofi@eduverse.test", password="secret123",
                                               first_name="Kofi", last_name="Mensah"))
    assert profile.display_name == "Kofi Mensah"
    assert profile.role == "student"
    admin_notes = [n for n in db.docs(NOTIFICATIONS).values() if n["userId"] == admin.uid]
    assert admin_notes[0]["title"] == "New User Account Created"


def test_signup_refuses_admin_role():
    with pytest.raises(ValueError):
        SignupRequest(email="x@eduverse.test", password="secret123", first_name="X", last_name="Y", role="admin")


def test_list_users_is_scoped(db, admin, formateur, student):
    assert {u.id for u in service.list_users(db, admin)} == {admin.uid, formateur.uid, student.uid}
    assert [u.id for u in service.list_users(db, formateur)] == [student.uid]
    assert service.list_users(db, formateur, role="admin") == []
    with pytest.raises(PermissionDeniedError):
        service.list_users(db, student)


def test_role_change_syncs_claims(db, admin, firebase_accounts):
    profile = service.create_user(db, admin, _new())
    updated = service.update_user(db, admin, profile.id, UserUpdate(role="formateur"))
    assert updated.role == "formateur"
    assert firebase_accounts[profile.id]["claims"] == {"role": "formateur"}


def test_nobody_changes_own_role_or_status(db, admin, firebase_accounts):
    with pytest.raises(PermissionDeniedError):
        service.update_user(db, admin, admin.uid, UserUpdate(role="student"))
    with pytest.raises(PermissionDeniedError):
        service.set_user_status(db, admin, admin.uid, "suspended")
    with pytest.raises(PermissionDeniedError):
        service.delete_user(db, admin, admin.uid)


def test_suspend_and_activate(db, formateur, firebase_accounts):
    student = service.create_user(db, formateur, _new())

    suspended = service.set_user_status(db, formateur, student.id, "suspended", reason="Spam")
    assert suspended.status == "suspended"
    assert firebase_accounts[student.id]["disabled"] is True

    assert service.set_user_status(db, formateur, student.id, "active").status == "active"


def test_formateur_cannot_suspend_admin(db, admin, formateur):
    with pytest.raises(PermissionDeniedError):
        service.set_user_status(db, formateur, admin.uid, "suspended")


def test_delete_user_removes_profile_and_progress(db, admin, firebase_accounts, course_id):
    profile = service.create_user(db, admin, _new(course_ids=[course_id]))

    service.delete_user(db, admin, profile.id)

    assert profile.id not in db.docs(USERS)
    assert db.docs(PROGRESS) == {}
    assert profile.id not in firebase_accounts


def test_delete_user_releases_course_seats_and_requests(db, admin, firebase_accounts, course_id, make_course):
    profile = service.create_user(db, admin, _new(course_ids=[course_id]))
    other = make_course(title="Data Science")
    db.collection(ENROLLMENT_REQUESTS).document("req-1").set(
        {"studentId": profile.id, "courseId": other, "status": "pending"})
    db.collection(ENROLLMENT_REQUESTS).document("req-2").set(
        {"studentId": profile.id, "courseId": course_id, "status": "approved"})
    assert db.docs(COURSES)[course_id]["studentCount"] == 1

    service.delete_user(db, admin, profile.id)

    assert db.docs(COURSES)[course_id]["studentCount"] == 0
    assert db.docs(COURSES)[other]["studentCount"] == 0
    assert set(db.docs(ENROLLMENT_REQUESTS)) == {"req-2"}


def test_failed_profile_write_removes_auth_account(db, admin, firebase_accounts, monkeypatch):
    reference_type = type(db.collection(USERS).document(admin.uid))
    original_set = reference_type.set

    def set_or_fail(self, data, merge=False):
        if self._collection.name == USERS:
            raise RuntimeError("Firestore unavailable")
        return original_set(self, data, merge=merge)

    monkeypatch.setattr(reference_type, "set", set_or_fail)

    with pytest.raises(RuntimeError, match="Firestore unavailable"):
        service.create_user(db, admin, _new())
    assert firebase_accounts == {}
    assert set(db.docs(USERS)) == {admin.uid}


def test_user_endpoints(login, admin, student, firebase_accounts):
    client = login(admin)

    response = client.post("/api/v1/users", json={
        "email": "amina@eduverse.test", "password": "secret123", "displayName": "Amina", "role": "student",
    })
    assert response.status_code == 201
    uid = response.json()["id"]

    assert client.post(f"/api/v1/users/{uid}/suspend", json={"reason": "Spam"}).json()["status"] == "suspended"
    assert client.post(f"/api/v1/users/{uid}/activate").json()["status"] == "active"
    assert client.delete(f"/api/v1/users/{admin.uid}").status_code == 403
    assert client.get("/api/v1/users/unknown").status_code == 404

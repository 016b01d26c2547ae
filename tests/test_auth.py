import pytest
from firebase_admin import auth as firebase_auth

from eduverse.core.config import settings
from eduverse.core.security import create_access_token
from eduverse.models.firestore_models import USERS


@pytest.fixture
def firebase_tokens(monkeypatch):
    """Map fake ID tokens to decoded claims."""
    tokens = {}

    def verify(token, *args, **kwargs):
        if token not in tokens:
            raise firebase_auth.InvalidIdTokenError("unknown token")
        return tokens[token]

    monkeypatch.setattr(firebase_auth, "verify_id_token", verify)
    return tokens


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["api"] == settings.API_V1_STR


def test_protected_route_requires_token(client, firebase_tokens):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json() == {"detail": "Could not validate credentials"}

    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_first_login_creates_profile_and_cookie(client, db, firebase_tokens):
    firebase_tokens["good"] = {"uid": "new-user", "email": "lea@eduverse.test", "name": "Léa Dupont"}

    response = client.post("/api/v1/auth/login", json={"id_token": "good"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {"uid": "new-user", "email": "lea@eduverse.test", "displayName": "Léa Dupont",
                            "role": "student"}
    assert settings.AUTH_COOKIE_NAME in response.cookies
    assert db.docs(USERS)["new-user"]["status"] == "active"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["displayName"] == "Léa Dupont"


def test_invalid_id_token_is_rejected(client, firebase_tokens):
    assert client.post("/api/v1/auth/login", json={"id_token": "forged"}).status_code == 401


def test_suspended_account_cannot_log_in(client, make_user, firebase_tokens):
    user = make_user("student", uid="blocked", status="suspended")
    firebase_tokens["blocked-token"] = {"uid": user.uid, "email": user.email}

    assert client.post("/api/v1/auth/login", json={"id_token": "blocked-token"}).status_code == 403

    token = create_access_token({"sub": user.uid})
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_cookie_authentication(client, student):
    client.cookies.set(settings.AUTH_COOKIE_NAME, create_access_token({"sub": student.uid}))
    assert client.get("/api/v1/auth/me").json()["role"] == "student"


def test_firebase_id_token_accepted_as_bearer(client, student, firebase_tokens):
    firebase_tokens["web-client-token"] = {"uid": student.uid}
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer web-client-token"})
    assert response.status_code == 200


def test_role_guards(login, student, formateur):
    client = login(student)
    assert client.get("/api/v1/admin/dashboard").status_code == 403
    assert client.get("/api/v1/users").status_code == 403
    assert client.post("/api/v1/courses", json={"title": "Mine"}).status_code == 403

    client = login(formateur)
    assert client.get("/api/v1/admin/courses").status_code == 403
    assert client.get("/api/v1/dashboard/student").status_code == 403


def test_validation_errors_are_422(login, student):
    response = login(student).post("/api/v1/enrollment", json={})
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"][-1] == "courseId"

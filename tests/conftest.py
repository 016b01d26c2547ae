"""
Fixtures partagées : un Firestore en mémoire et des utilisateurs de chaque rôle.
"""
import copy
import operator
import uuid

import email_validator
import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import NotFound
from google.cloud.firestore import Increment

from eduverse.core.firebase_connector import get_db
from eduverse.core.security import get_current_user
from eduverse.main import app
from eduverse.models.firestore_models import COURSES, USERS, utcnow
from eduverse.schemas.auth import CurrentUser
from eduverse.services import email as email_service

# Autorise les domaines réservés « .test » utilisés par les fixtures.
email_validator.TEST_ENVIRONMENT = True

_OPS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
    "array_contains": lambda value, item: item in (value or []),
}


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentReference:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    @property
    def _store(self):
        return self._collection._docs

    def get(self):
        return FakeSnapshot(self, self._store.get(self.id))

    def set(self, data, merge=False):
        current = self._store.get(self.id) if merge else None
        merged = dict(current or {})
        merged.update(copy.deepcopy(data))
        self._store[self.id] = merged

    def update(self, data):
        if self.id not in self._store:
            raise NotFound(f"No document to update: {self._collection.name}/{self.id}")
        doc = self._store[self.id]
        for key, value in data.items():
            if isinstance(value, Increment):
                doc[key] = doc.get(key, 0) + value.value
            else:
                doc[key] = copy.deepcopy(value)

    def delete(self):
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit_to=None):
        self._collection = collection
        self._filters = list(filters)
        self._orders = list(orders)
        self._limit = limit_to

    def _copy(self, **changes):
        params = {"filters": self._filters, "orders": self._orders, "limit_to": self._limit}
        params.update(changes)
        return FakeQuery(self._collection, **params)

    def where(self, field_path=None, op_string=None, value=None, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path, direction="ASCENDING"):
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count):
        return self._copy(limit_to=count)

    def stream(self):
        docs = []
        for doc_id, data in list(self._collection._docs.items()):
            if all(field in data and _OPS[op](data[field], value) for field, op, value in self._filters):
                docs.append((doc_id, data))
        for field, direction in reversed(self._orders):
            docs.sort(key=lambda item: item[1].get(field), reverse=direction == "DESCENDING")
        if self._limit is not None:
            docs = docs[:self._limit]
        return iter([FakeDocumentReference(self._collection, doc_id).get() for doc_id, _ in docs])

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def __init__(self, name):
        self.name = name
        self._docs = {}
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocumentReference(self, doc_id or uuid.uuid4().hex[:20])


class FakeWriteBatch:
    def __init__(self):
        self._ops = []

    def set(self, reference, data, merge=False):
        self._ops.append(lambda: reference.set(data, merge=merge))

    def update(self, reference, data):
        self._ops.append(lambda: reference.update(data))

    def delete(self, reference):
        self._ops.append(reference.delete)

    def commit(self):
        for op in self._ops:
            op()
        self._ops = []


class FakeFirestore:
    """Just enough of `google.cloud.firestore.Client` for the service layer."""

    def __init__(self):
        self._collections = {}

    def collection(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def batch(self):
        return FakeWriteBatch()

    def docs(self, name):
        """Raw documents of a collection, keyed by id (test helper)."""
        return self.collection(name)._docs


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, "send_email", lambda to, subject, html: sent.append((to, subject)))
    return sent


@pytest.fixture
def make_user(db):
    def _make(role="student", uid=None, display_name=None, status="active", email=None):
        uid = uid or f"{role}-{uuid.uuid4().hex[:6]}"
        profile = {
            "email": email or f"{uid}@eduverse.test",
            "displayName": display_name or uid.replace("-", " ").title(),
            "role": role,
            "status": status,
            "createdAt": utcnow(),
        }
        db.collection(USERS).document(uid).set(profile)
        return CurrentUser.from_profile(uid, profile)
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", uid="admin-1", display_name="Ada Admin")


@pytest.fixture
def formateur(make_user):
    return make_user("formateur", uid="formateur-1", display_name="Claire Martin")


@pytest.fixture
def student(make_user):
    return make_user("student", uid="student-1", display_name="Yanis Diallo")


@pytest.fixture
def make_course(db, formateur):
    def _make(title="Introduction to Python", status="Published", requires_approval=True,
              instructor_id=None, lessons=("l1", "l2", "l3"), **extra):
        now = utcnow()
        data = {
            "title": title,
            "description": "Variables, loops and functions",
            "instructorId": instructor_id or formateur.uid,
            "status": status,
            "modules": [
                {"id": "m1", "title": "Basics", "lessons": [
                    {"id": lesson_id, "title": f"Lesson {lesson_id}", "contentType": "text"}
                    for lesson_id in lessons
                ]},
            ],
            "studentCount": 0,
            "requiresApproval": requires_approval,
            "createdAt": now,
            "updatedAt": now,
        }
        data.update(extra)
        ref = db.collection(COURSES).document()
        ref.set(data)
        return ref.id
    return _make


@pytest.fixture
def course_id(make_course):
    return make_course()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Authenticate following requests of `client` as the given user."""
    def _login(user: CurrentUser):
        app.dependency_overrides[get_current_user] = lambda: user
        return client
    return _login

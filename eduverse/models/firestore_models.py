"""
Pydantic models and lightweight Firestore helpers.
These are thin wrappers to map Firestore documents <-> Pydantic models
and provide simple CRUD helpers used by the service layer.

Documents are stored with camelCase field names (shared with the web client);
the models expose snake_case attributes and serialize by alias.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, TypeVar

from google.cloud.firestore import Query
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T", bound="FirestoreModel")

USERS = "users"
COURSES = "courses"
PROGRESS = "progress"
ENROLLMENT_REQUESTS = "enrollmentRequests"
QUIZZES = "quizzes"
QUIZ_ATTEMPTS = "quizAttempts"
NOTIFICATIONS = "notifications"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirestoreModel(BaseModel):
    id: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def from_doc(cls: Type[T], doc: Any) -> Optional[T]:
        if doc is None:
            return None
        if hasattr(doc, "to_dict"):
            if not getattr(doc, "exists", True):
                return None
            data = doc.to_dict() or {}
            data["id"] = getattr(doc, "id", None)
        elif isinstance(doc, dict):
            data = dict(doc)
        else:
            return None
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        d = self.model_dump(by_alias=True, exclude_none=True)
        # remove `id` when writing into Firestore (use document id instead)
        d.pop("id", None)
        return d


# --- Users ---
class UserProfile(FirestoreModel):
    email: Optional[str] = None
    display_name: str = ""
    role: Literal["admin", "formateur", "student"] = "student"
    status: Literal["active", "suspended"] = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @property
    def uid(self) -> Optional[str]:
        return self.id


# --- Courses ---
class Lesson(FirestoreModel):
    title: str
    description: Optional[str] = None
    content_type: Literal["video", "document", "text"] = "text"
    video_source: Optional[Literal["youtube", "vimeo", "gdrive", "self-hosted"]] = None
    url: Optional[str] = None
    content: Optional[str] = None


class Module(FirestoreModel):
    title: str
    lessons: List[Lesson] = Field(default_factory=list)


CourseStatus = Literal["Draft", "pending_approval", "Published", "rejected"]


class Course(FirestoreModel):
    title: str
    description: str = ""
    instructor_id: str
    status: CourseStatus = "Draft"
    modules: List[Module] = Field(default_factory=list)
    student_count: int = 0
    image_url: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    requires_approval: bool = True
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status == "Published"


# --- Enrollment ---
class EnrollmentRequest(FirestoreModel):
    student_id: str
    student_name: str = ""
    student_email: str = ""
    course_id: str
    course_title: str = ""
    instructor_id: str = ""
    status: Literal["pending", "approved", "denied"] = "pending"
    request_message: Optional[str] = None
    response_message: Optional[str] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Progress(FirestoreModel):
    user_id: str
    course_id: str
    progress: int = 0
    completed: bool = False
    completed_lessons: List[str] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    enrollment_request_id: Optional[str] = None
    status: str = "active"


# --- Quizzes ---
class QuizQuestion(FirestoreModel):
    question: str
    options: List[str]
    correct_answer: Optional[int] = None
    points: float = 1
    explanation: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class Quiz(FirestoreModel):
    title: str
    description: Optional[str] = None
    course_id: str
    module_id: Optional[str] = None
    questions: List[QuizQuestion] = Field(default_factory=list)
    time_limit: Optional[int] = None  # minutes
    passing_score: float = 70
    max_attempts: Optional[int] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttemptAnswer(FirestoreModel):
    question_id: str
    selected_answer: Optional[int] = None
    is_correct: bool = False
    points: float = 0
    time_spent: float = 0


class QuizAttempt(FirestoreModel):
    quiz_id: str
    user_id: str
    course_id: str
    attempt_number: int = 1
    answers: List[AttemptAnswer] = Field(default_factory=list)
    score: float = 0
    max_score: float = 0
    percentage: float = 0
    passed: bool = False
    time_spent: float = 0  # seconds
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


# --- Notifications ---
class Notification(FirestoreModel):
    user_id: str
    title: str
    message: str
    type: Literal["info", "success", "warning", "error"] = "info"
    link: Optional[str] = None
    read: bool = False
    data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


# --- Firestore helpers ---
def create_doc(db, collection: str, data: Dict[str, Any]) -> str:
    ref = db.collection(collection).document()
    ref.set(data)
    return ref.id


def set_doc(db, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
    db.collection(collection).document(str(doc_id)).set(data, merge=merge)


def get_doc(db, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    doc = db.collection(collection).document(str(doc_id)).get()
    if not doc.exists:
        return None
    d = doc.to_dict() or {}
    d["id"] = doc.id
    return d


def update_doc(db, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
    db.collection(collection).document(str(doc_id)).update(data)


def delete_doc(db, collection: str, doc_id: str) -> None:
    db.collection(collection).document(str(doc_id)).delete()


def query(
    db,
    collection: str,
    where: Optional[List[Tuple[str, str, Any]]] = None,
    order_by: Optional[Tuple[str, str]] = None,
    limit: Optional[int] = None,
):
    q = db.collection(collection)
    for field, op, value in where or []:
        q = q.where(filter=FieldFilter(field, op, value))
    if order_by:
        field, direction = order_by
        q = q.order_by(field, direction=Query.DESCENDING if direction == "desc" else Query.ASCENDING)
    if limit:
        q = q.limit(limit)
    return q


def list_docs(
    db,
    collection: str,
    where: Optional[List[Tuple[str, str, Any]]] = None,
    order_by: Optional[Tuple[str, str]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    out = []
    for d in query(db, collection, where, order_by, limit).stream():
        dd = d.to_dict() or {}
        dd["id"] = d.id
        out.append(dd)
    return out


def list_models(
    db,
    model_cls: Type[T],
    collection: str,
    where: Optional[List[Tuple[str, str, Any]]] = None,
    limit: Optional[int] = None,
) -> List[T]:
    return [model_cls.from_doc(d) for d in query(db, collection, where, limit=limit).stream()]


def newest_first(items: List[Any], attr: str = "created_at") -> List[Any]:
    """Sort in memory (avoids composite Firestore indexes on where + order_by)."""
    floor = datetime.min.replace(tzinfo=timezone.utc)

    def key(item):
        value = getattr(item, attr, None) if not isinstance(item, dict) else item.get(attr)
        if value is None:
            return floor
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    return sorted(items, key=key, reverse=True)


__all__ = [
    "FirestoreModel",
    "UserProfile",
    "Lesson",
    "Module",
    "Course",
    "EnrollmentRequest",
    "Progress",
    "QuizQuestion",
    "Quiz",
    "AttemptAnswer",
    "QuizAttempt",
    "Notification",
    "USERS",
    "COURSES",
    "PROGRESS",
    "ENROLLMENT_REQUESTS",
    "QUIZZES",
    "QUIZ_ATTEMPTS",
    "NOTIFICATIONS",
    "utcnow",
    "create_doc",
    "set_doc",
    "get_doc",
    "update_doc",
    "delete_doc",
    "query",
    "list_docs",
    "list_models",
    "newest_first",
]

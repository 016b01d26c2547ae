"""
Données de démonstration : un admin, un formateur, un étudiant, un cours publié
avec ses leçons et un quiz.
Usage: python -m scripts.seed_firestore [--password PASSWORD]
"""
import argparse

from firebase_admin import auth
from google.cloud.firestore import Increment

from eduverse.core.config import settings
from eduverse.core.firebase_connector import get_db, initialize_firebase
from eduverse.models.firestore_models import (
    COURSES,
    QUIZZES,
    USERS,
    Course,
    Quiz,
    UserProfile,
    create_doc,
    query,
    utcnow,
)
from eduverse.schemas.course import ModuleIn
from eduverse.schemas.quiz import QuestionIn
from eduverse.services.courses import build_modules, modules_payload
from eduverse.services.progress import create_progress, is_enrolled
from eduverse.services.quiz import build_questions, questions_payload

DEMO_USERS = [
    ("admin@eduverse.com", "EduVerse Admin", "admin"),
    ("formateur@eduverse.com", "Claire Martin", "formateur"),
    ("student@eduverse.com", "Yanis Diallo", "student"),
]

DEMO_COURSE = {
    "title": "Introduction to Python",
    "description": "Variables, control flow and functions, with short exercises after each lesson.",
    "category": "Programming",
    "level": "Beginner",
    "modules": [
        {
            "title": "Getting started",
            "lessons": [
                {"title": "Installing Python", "content_type": "text",
                 "content": "Download the latest release from python.org and check `python --version`."},
                {"title": "Your first script", "content_type": "video", "video_source": "youtube",
                 "url": "https://www.youtube.com/watch?v=kqtD5dpn9C8"},
            ],
        },
        {
            "title": "Control flow",
            "lessons": [
                {"title": "if / elif / else", "content_type": "text",
                 "content": "Conditions are evaluated top to bottom; the first true branch runs."},
                {"title": "Loops", "content_type": "text",
                 "content": "`for` iterates over any iterable, `while` repeats until its condition is false."},
            ],
        },
    ],
}

DEMO_QUESTIONS = [
    {"question": "Which keyword defines a function?", "options": ["func", "def", "lambda", "fn"],
     "correct_answer": 1, "difficulty": "easy"},
    {"question": "What does `len([1, 2, 3])` return?", "options": ["2", "3", "4"],
     "correct_answer": 1, "difficulty": "easy"},
    {"question": "Which loop runs until its condition becomes false?", "options": ["for", "while"],
     "correct_answer": 1, "difficulty": "medium", "points": 2},
]


def ensure_user(db, email: str, display_name: str, role: str, password: str) -> str:
    try:
        record = auth.get_user_by_email(email)
        print(f"User {email} already exists in Auth")
    except auth.UserNotFoundError:
        record = auth.create_user(email=email, password=password, display_name=display_name)
        print(f"Created user {email} in Auth")
    auth.set_custom_user_claims(record.uid, {"role": role})

    ref = db.collection(USERS).document(record.uid)
    if not ref.get().exists:
        profile = UserProfile(email=email, display_name=display_name, role=role, status="active",
                              created_at=utcnow())
        ref.set(profile.to_dict())
        print(f"Added {email} to users collection")
    return record.uid


def ensure_course(db, instructor_id: str) -> str:
    existing = list(query(db, COURSES, where=[("title", "==", DEMO_COURSE["title"])], limit=1).stream())
    if existing:
        print(f"Course '{DEMO_COURSE['title']}' exists (id={existing[0].id})")
        return existing[0].id

    now = utcnow()
    modules = build_modules([ModuleIn(**m) for m in DEMO_COURSE["modules"]])
    course = Course(
        title=DEMO_COURSE["title"],
        description=DEMO_COURSE["description"],
        instructor_id=instructor_id,
        status="Published",
        modules=modules,
        image_url=settings.DEFAULT_COURSE_IMAGE,
        category=DEMO_COURSE["category"],
        level=DEMO_COURSE["level"],
        requires_approval=True,
        created_at=now,
        updated_at=now,
    )
    data = course.to_dict()
    data["modules"] = modules_payload(modules)
    course_id = create_doc(db, COURSES, data)
    print(f"Created course '{course.title}' (id={course_id})")
    return course_id


def ensure_quiz(db, course_id: str, author_id: str) -> None:
    if list(query(db, QUIZZES, where=[("courseId", "==", course_id)], limit=1).stream()):
        print("Quiz already exists.")
        return
    questions = build_questions([QuestionIn(**q) for q in DEMO_QUESTIONS])
    now = utcnow()
    quiz = Quiz(title="Python basics check", course_id=course_id, questions=questions, passing_score=70,
                max_attempts=3, created_by=author_id, created_at=now, updated_at=now)
    data = quiz.to_dict()
    data["questions"] = questions_payload(questions)
    print(f"Created quiz (id={create_doc(db, QUIZZES, data)})")


def seed(password: str):
    initialize_firebase()
    db = get_db()

    uids = {role: ensure_user(db, email, name, role, password) for email, name, role in DEMO_USERS}
    course_id = ensure_course(db, uids["formateur"])
    ensure_quiz(db, course_id, uids["formateur"])

    if not is_enrolled(db, uids["student"], course_id):
        create_progress(db, uids["student"], course_id)
        db.collection(COURSES).document(course_id).update({"studentCount": Increment(1)})
        print("Student enrolled in the demo course.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed Firestore with demo data")
    parser.add_argument("--password", default="eduverse123", help="password for the demo accounts")
    seed(parser.parse_args().password)

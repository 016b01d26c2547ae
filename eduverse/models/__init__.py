"""
Re-exports des modèles Firestore.
"""
from eduverse.models.firestore_models import (
    AttemptAnswer,
    Course,
    EnrollmentRequest,
    Lesson,
    Module,
    Notification,
    Progress,
    Quiz,
    QuizAttempt,
    QuizQuestion,
    UserProfile,
)

__all__ = [
    "AttemptAnswer",
    "Course",
    "EnrollmentRequest",
    "Lesson",
    "Module",
    "Notification",
    "Progress",
    "Quiz",
    "QuizAttempt",
    "QuizQuestion",
    "UserProfile",
]

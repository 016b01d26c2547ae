"""
Quiz : création par le formateur, tentatives et notation des étudiants.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from eduverse.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from eduverse.core.permissions import Permissions, has_permission
from eduverse.models.firestore_models import (
    QUIZ_ATTEMPTS,
    QUIZZES,
    Quiz,
    QuizAttempt,
    QuizQuestion,
    create_doc,
    list_models,
    newest_first,
    query,
    utcnow,
)
from eduverse.quiz_engine import QuizEngine
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.quiz import (
    AttemptResult,
    QuestionFeedback,
    QuestionIn,
    QuizCreate,
    QuizStats,
    QuizUpdate,
    SubmittedAnswer,
)
from eduverse.services import admin_notifications
from eduverse.services.courses import actor_name, get_course, list_courses_by_instructor
from eduverse.services.progress import get_progress_for_user, is_enrolled

logger = logging.getLogger(__name__)

engine = QuizEngine()

# nullable quiz settings: an explicit null in an update clears them
CLEARABLE_FIELDS = ("description", "moduleId", "timeLimit", "maxAttempts")


def build_questions(questions: List[QuestionIn]) -> List[QuizQuestion]:
    built = [QuizQuestion(**q.model_dump(exclude={"id"}), id=q.id or uuid.uuid4().hex[:12]) for q in questions]
    engine.validate_questions(built)
    return built


def questions_payload(questions: List[QuizQuestion]) -> List[Dict[str, Any]]:
    return [q.model_dump(by_alias=True, exclude_none=True) for q in questions]


def _ensure_owner(db, user: CurrentUser, course_id: str, action: str) -> None:
    if user.is_admin:
        return
    course = get_course(db, course_id)
    if not has_permission(user.role, action, "quizzes", {"course_owner": course.instructor_id == user.uid}):
        raise PermissionDeniedError("You can only manage quizzes of your own courses.")


def _load(db, quiz_id: str) -> Quiz:
    quiz = Quiz.from_doc(db.collection(QUIZZES).document(quiz_id).get())
    if quiz is None:
        raise NotFoundError("Quiz not found")
    return quiz


def hide_answers(quiz: Quiz) -> Quiz:
    questions = [q.model_copy(update={"correct_answer": None, "explanation": None}) for q in quiz.questions]
    return quiz.model_copy(update={"questions": questions})


def create_quiz(db, author: CurrentUser, payload: QuizCreate) -> Quiz:
    if not has_permission(author.role, Permissions.CREATE_QUIZ, "quizzes"):
        raise PermissionDeniedError("Only instructors and admins can create quizzes.")
    course = get_course(db, payload.course_id)
    _ensure_owner(db, author, course.id, Permissions.CREATE_QUIZ)

    now = utcnow()
    quiz = Quiz(
        title=payload.title,
        description=payload.description,
        course_id=payload.course_id,
        module_id=payload.module_id,
        questions=build_questions(payload.questions),
        time_limit=payload.time_limit,
        passing_score=engine.rules.passing_score_for(payload.passing_score),
        max_attempts=engine.rules.max_attempts_for(payload.max_attempts),
        is_active=payload.is_active,
        created_by=author.uid,
        created_at=now,
        updated_at=now,
    )
    data = quiz.to_dict()
    data["questions"] = questions_payload(quiz.questions)
    data["maxAttempts"] = quiz.max_attempts
    quiz.id = create_doc(db, QUIZZES, data)
    logger.info(f"Quiz {quiz.id} created for course {course.id} by {author.uid}")

    admin_notifications.notify_admins_new_quiz(db, course.id, quiz.title, course.title, actor_name(author))
    return quiz


def list_quizzes(db, user: CurrentUser, course_id: Optional[str] = None) -> List[Quiz]:
    where = [("courseId", "==", course_id)] if course_id else []

    if user.is_admin:
        return newest_first(list_models(db, Quiz, QUIZZES, where=where or None))

    if user.is_formateur:
        quizzes = list_models(db, Quiz, QUIZZES, where=where or None)
        own = {c.id for c in list_courses_by_instructor(db, user.uid)}
        return newest_first([q for q in quizzes if q.course_id in own])

    enrolled = {p.course_id for p in get_progress_for_user(db, user.uid)}
    if course_id and course_id not in enrolled:
        return []
    quizzes = list_models(db, Quiz, QUIZZES, where=where + [("isActive", "==", True)])
    return [hide_answers(q) for q in newest_first(quizzes) if q.course_id in enrolled]


def get_quiz(db, user: CurrentUser, quiz_id: str, include_answers: bool = False) -> Quiz:
    quiz = _load(db, quiz_id)
    if user.is_student:
        if not quiz.is_active or not is_enrolled(db, user.uid, quiz.course_id):
            raise NotFoundError("Quiz not found")
        return hide_answers(quiz)

    _ensure_owner(db, user, quiz.course_id, Permissions.READ_QUIZ)
    return quiz if include_answers else hide_answers(quiz)


def update_quiz(db, user: CurrentUser, quiz_id: str, changes: QuizUpdate) -> Quiz:
    quiz = _load(db, quiz_id)
    _ensure_owner(db, user, quiz.course_id, Permissions.UPDATE_QUIZ)

    patch = {key: value for key, value in changes.model_dump(by_alias=True, exclude_unset=True).items()
             if value is not None or key in CLEARABLE_FIELDS}
    if changes.questions is not None:
        patch["questions"] = questions_payload(build_questions(changes.questions))
    if not patch:
        return quiz
    patch["updatedAt"] = utcnow()
    db.collection(QUIZZES).document(quiz_id).update(patch)
    return _load(db, quiz_id)


def delete_quiz(db, user: CurrentUser, quiz_id: str) -> int:
    """Delete a quiz and all its attempts; returns the number of attempts removed."""
    quiz = _load(db, quiz_id)
    _ensure_owner(db, user, quiz.course_id, Permissions.DELETE_QUIZ)

    batch = db.batch()
    removed = 0
    for doc in query(db, QUIZ_ATTEMPTS, where=[("quizId", "==", quiz_id)]).stream():
        batch.delete(doc.reference)
        removed += 1
    batch.delete(db.collection(QUIZZES).document(quiz_id))
    batch.commit()
    logger.info(f"Quiz {quiz_id} deleted by {user.uid} ({removed} attempts)")
    return removed


def _user_attempts(db, user_id: str, quiz_id: str) -> List[QuizAttempt]:
    return list_models(db, QuizAttempt, QUIZ_ATTEMPTS,
                       where=[("quizId", "==", quiz_id), ("userId", "==", user_id)])


def start_attempt(db, student: CurrentUser, quiz_id: str) -> QuizAttempt:
    quiz = _load(db, quiz_id)
    if not quiz.is_active:
        raise ValidationFailedError("This quiz is not active.")
    if not is_enrolled(db, student.uid, quiz.course_id):
        raise PermissionDeniedError("You must be enrolled in the course to take this quiz.")

    attempts = _user_attempts(db, student.uid, quiz_id)
    unfinished = [a for a in attempts if not a.is_completed]
    if unfinished:
        return newest_first(unfinished, "started_at")[0]
    if engine.rules.attempts_exhausted(len(attempts), quiz.max_attempts):
        raise ConflictError("Maximum number of attempts reached.")

    attempt = QuizAttempt(
        quiz_id=quiz_id,
        user_id=student.uid,
        course_id=quiz.course_id,
        attempt_number=len(attempts) + 1,
        answers=[],
        score=0,
        max_score=sum(q.points for q in quiz.questions),
        percentage=0,
        passed=False,
        time_spent=0,
        started_at=utcnow(),
    )
    data = attempt.to_dict()
    data["completedAt"] = None
    attempt.id = create_doc(db, QUIZ_ATTEMPTS, data)
    return attempt


def submit_attempt(
    db,
    student: CurrentUser,
    quiz_id: str,
    attempt_id: str,
    answers: List[SubmittedAnswer],
    total_time: float = 0,
) -> AttemptResult:
    ref = db.collection(QUIZ_ATTEMPTS).document(attempt_id)
    attempt = QuizAttempt.from_doc(ref.get())
    if attempt is None or attempt.quiz_id != quiz_id:
        raise NotFoundError("Quiz attempt not found")
    if attempt.user_id != student.uid:
        raise PermissionDeniedError("This attempt belongs to another user.")
    if attempt.is_completed:
        raise ConflictError("This attempt has already been submitted.")

    quiz = _load(db, quiz_id)
    result = engine.score(quiz, answers)

    update = {
        "answers": [a.model_dump(by_alias=True, exclude={"id"}) for a in result.answers],
        "score": result.score,
        "maxScore": result.max_score,
        "percentage": result.percentage,
        "passed": result.passed,
        "timeSpent": total_time,
        "completedAt": utcnow(),
    }
    ref.update(update)
    logger.info(f"Attempt {attempt_id} of quiz {quiz_id} submitted by {student.uid}: {result.percentage:.0f}%")

    return AttemptResult(
        attempt=QuizAttempt.from_doc(ref.get()),
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        feedback=[
            QuestionFeedback(question_id=q.id, correct_answer=q.correct_answer, explanation=q.explanation)
            for q in quiz.questions
        ],
    )


def list_attempts(db, user: CurrentUser, quiz_id: str) -> List[QuizAttempt]:
    quiz = _load(db, quiz_id)
    if user.is_student:
        return newest_first(_user_attempts(db, user.uid, quiz_id), "started_at")
    _ensure_owner(db, user, quiz.course_id, Permissions.READ_QUIZ)
    return newest_first(list_models(db, QuizAttempt, QUIZ_ATTEMPTS, where=[("quizId", "==", quiz_id)]),
                        "started_at")


def get_quiz_stats(db, user: CurrentUser, quiz_id: str) -> QuizStats:
    quiz = _load(db, quiz_id)
    if user.is_student:
        raise PermissionDeniedError("Not enough permissions")
    _ensure_owner(db, user, quiz.course_id, Permissions.READ_QUIZ)
    attempts = list_models(db, QuizAttempt, QUIZ_ATTEMPTS, where=[("quizId", "==", quiz_id)])
    return engine.stats(quiz, attempts)

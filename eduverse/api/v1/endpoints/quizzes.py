"""
Routes des quiz et des tentatives
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from eduverse.core.firebase_connector import get_db
from eduverse.core.permissions import Roles
from eduverse.core.security import get_current_active_user, require_roles
from eduverse.models.firestore_models import Quiz, QuizAttempt
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.quiz import AttemptResult, AttemptSubmit, QuizCreate, QuizStats, QuizUpdate
from eduverse.services import quiz as quiz_service

router = APIRouter()

authors = require_roles(Roles.ADMIN, Roles.FORMATEUR)
students = require_roles(Roles.STUDENT)


@router.get("", response_model=List[Quiz])
def list_quizzes(
    course_id: Optional[str] = Query(None, alias="courseId"),
    current_user: CurrentUser = Depends(get_current_active_user),
    db=Depends(get_db),
):
    return quiz_service.list_quizzes(db, current_user, course_id)


@router.post("", response_model=Quiz, status_code=status.HTTP_201_CREATED)
def create_quiz(payload: QuizCreate, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    return quiz_service.create_quiz(db, current_user, payload)


@router.get("/{quiz_id}", response_model=Quiz)
def read_quiz(
    quiz_id: str,
    include_answers: bool = Query(False, alias="includeAnswers"),
    current_user: CurrentUser = Depends(get_current_active_user),
    db=Depends(get_db),
):
    """Students never receive correct answers; owners may ask for them."""
    return quiz_service.get_quiz(db, current_user, quiz_id, include_answers)


@router.patch("/{quiz_id}", response_model=Quiz)
def update_quiz(quiz_id: str, changes: QuizUpdate, current_user: CurrentUser = Depends(authors),
                db=Depends(get_db)):
    return quiz_service.update_quiz(db, current_user, quiz_id, changes)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(quiz_id: str, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    quiz_service.delete_quiz(db, current_user, quiz_id)


@router.get("/{quiz_id}/attempts", response_model=List[QuizAttempt])
def list_attempts(quiz_id: str, current_user: CurrentUser = Depends(get_current_active_user),
                  db=Depends(get_db)):
    return quiz_service.list_attempts(db, current_user, quiz_id)


@router.post("/{quiz_id}/attempts", response_model=QuizAttempt, status_code=status.HTTP_201_CREATED)
def start_attempt(quiz_id: str, current_user: CurrentUser = Depends(students), db=Depends(get_db)):
    return quiz_service.start_attempt(db, current_user, quiz_id)


@router.post("/{quiz_id}/attempts/{attempt_id}/submit", response_model=AttemptResult)
def submit_attempt(
    quiz_id: str,
    attempt_id: str,
    payload: AttemptSubmit,
    current_user: CurrentUser = Depends(students),
    db=Depends(get_db),
):
    return quiz_service.submit_attempt(db, current_user, quiz_id, attempt_id, payload.answers, payload.time_spent)


@router.get("/{quiz_id}/stats", response_model=QuizStats)
def read_stats(quiz_id: str, current_user: CurrentUser = Depends(authors), db=Depends(get_db)):
    return quiz_service.get_quiz_stats(db, current_user, quiz_id)

"""
Schémas des quiz et tentatives
"""
from typing import List, Literal, Optional

from pydantic import Field

from eduverse.models.firestore_models import AttemptAnswer, QuizAttempt
from eduverse.schemas.common import CamelModel


class QuestionIn(CamelModel):
    id: Optional[str] = None
    question: str = Field(min_length=1)
    options: List[str]
    correct_answer: int
    points: float = 1
    explanation: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class QuizCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    course_id: str
    module_id: Optional[str] = None
    questions: List[QuestionIn]
    time_limit: Optional[int] = Field(default=None, gt=0)
    passing_score: Optional[float] = Field(default=None, ge=0, le=100)
    max_attempts: Optional[int] = Field(default=None, gt=0)
    is_active: bool = True


class QuizUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    module_id: Optional[str] = None
    questions: Optional[List[QuestionIn]] = None
    time_limit: Optional[int] = Field(default=None, gt=0)
    passing_score: Optional[float] = Field(default=None, ge=0, le=100)
    max_attempts: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None


class SubmittedAnswer(CamelModel):
    question_id: str
    selected_answer: Optional[int] = None
    time_spent: float = 0


class AttemptSubmit(CamelModel):
    answers: List[SubmittedAnswer] = Field(default_factory=list)
    time_spent: float = Field(default=0, ge=0)


class ScoreResult(CamelModel):
    answers: List[AttemptAnswer]
    correct_answers: int
    total_questions: int
    score: float
    max_score: float
    percentage: float
    passed: bool


class QuestionFeedback(CamelModel):
    question_id: str
    correct_answer: Optional[int] = None
    explanation: Optional[str] = None


class AttemptResult(CamelModel):
    attempt: QuizAttempt
    correct_answers: int
    total_questions: int
    feedback: List[QuestionFeedback] = Field(default_factory=list)


class QuestionStats(CamelModel):
    question_id: str
    correct_answers: int = 0
    total_answers: int = 0
    average_time_spent: float = 0
    difficulty: str = "medium"
    success_rate: float = 0


class QuizStats(CamelModel):
    total_attempts: int = 0
    average_score: float = 0
    pass_rate: float = 0
    average_time_spent: float = 0  # seconds
    unique_students: int = 0
    question_stats: List[QuestionStats] = Field(default_factory=list)

"""
Moteur de notation des quiz

Pur calcul : aucune lecture Firestore ici, le service quiz charge les documents
et persiste les résultats.
"""
from typing import Iterable, List, Optional, Sequence

from eduverse.core.exceptions import ValidationFailedError
from eduverse.models.firestore_models import AttemptAnswer, Quiz, QuizAttempt
from eduverse.quiz_engine.rules import QuizRules
from eduverse.schemas.quiz import QuestionStats, QuizStats, ScoreResult, SubmittedAnswer


def _round2(value: float) -> float:
    return round(value, 2)


class QuizEngine:
    """
    Calcul automatique des scores et statistiques de quiz.
    """

    def __init__(self, rules: Optional[QuizRules] = None):
        self.rules = rules or QuizRules.get_default_rules()

    def validate_questions(self, questions: Sequence) -> None:
        """
        Vérifier la cohérence des questions d'un quiz.

        Raises ValidationFailedError on the first problem found.
        """
        if not questions:
            raise ValidationFailedError("A quiz needs at least one question.")

        seen = set()
        for index, q in enumerate(questions, start=1):
            if q.id:
                if q.id in seen:
                    raise ValidationFailedError(f"Duplicate question id '{q.id}'.")
                seen.add(q.id)

            count = len(q.options)
            if count < self.rules.min_options or count > self.rules.max_options:
                raise ValidationFailedError(
                    f"Question {index} must have between {self.rules.min_options} "
                    f"and {self.rules.max_options} options."
                )
            if q.correct_answer is None or not 0 <= q.correct_answer < count:
                raise ValidationFailedError(f"Question {index} has an invalid correct answer.")
            if q.points <= 0:
                raise ValidationFailedError(f"Question {index} must be worth more than 0 points.")

    def score(self, quiz: Quiz, answers: Iterable[SubmittedAnswer]) -> ScoreResult:
        """
        Noter une tentative.

        Answers for unknown questions are dropped and only the first answer to a
        given question counts. The percentage is based on the number of
        questions, the score on points earned.
        """
        questions = {q.id: q for q in quiz.questions}
        answered = set()
        processed: List[AttemptAnswer] = []
        correct = 0
        earned = 0.0

        for answer in answers:
            question = questions.get(answer.question_id)
            if question is None or answer.question_id in answered:
                continue
            answered.add(answer.question_id)

            is_correct = answer.selected_answer is not None and answer.selected_answer == question.correct_answer
            points = question.points if is_correct else 0
            if is_correct:
                correct += 1
                earned += points

            processed.append(AttemptAnswer(
                question_id=answer.question_id,
                selected_answer=answer.selected_answer,
                is_correct=is_correct,
                points=points,
                time_spent=answer.time_spent,
            ))

        total = len(quiz.questions)
        if not self.rules.allow_partial_submission and len(answered) < total:
            raise ValidationFailedError("Every question must be answered.")

        percentage = (correct / total) * 100 if total else 0.0
        return ScoreResult(
            answers=processed,
            correct_answers=correct,
            total_questions=total,
            score=earned,
            max_score=sum(q.points for q in quiz.questions),
            percentage=percentage,
            passed=self.rules.is_passing(percentage, quiz.passing_score),
        )

    def stats(self, quiz: Quiz, attempts: Iterable[QuizAttempt]) -> QuizStats:
        """Statistiques sur les tentatives terminées uniquement."""
        completed = [a for a in attempts if a.is_completed]
        if not completed:
            return QuizStats(question_stats=[
                QuestionStats(question_id=q.id, difficulty=q.difficulty) for q in quiz.questions
            ])

        total = len(completed)
        passed = sum(1 for a in completed if a.passed)

        question_stats = []
        for q in quiz.questions:
            given = [ans for a in completed for ans in a.answers if ans.question_id == q.id]
            right = sum(1 for ans in given if ans.is_correct)
            question_stats.append(QuestionStats(
                question_id=q.id,
                correct_answers=right,
                total_answers=len(given),
                average_time_spent=_round2(sum(ans.time_spent for ans in given) / len(given)) if given else 0,
                difficulty=q.difficulty,
                success_rate=_round2(right / len(given) * 100) if given else 0,
            ))

        return QuizStats(
            total_attempts=total,
            average_score=_round2(sum(a.percentage for a in completed) / total),
            pass_rate=_round2(passed / total * 100),
            average_time_spent=_round2(sum(a.time_spent for a in completed) / total),
            unique_students=len({a.user_id for a in completed}),
            question_stats=question_stats,
        )

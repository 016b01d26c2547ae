"""
Règles de notation des quiz configurables
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel

from eduverse.core.config import settings


class QuizRules(BaseModel):
    """
    Règles de quiz paramétrables

    Un quiz peut surcharger le seuil de réussite et le nombre de tentatives ;
    ces valeurs s'appliquent quand il ne le fait pas.
    """

    # Seuils de réussite (pourcentage de bonnes réponses)
    default_passing_score: float = settings.QUIZ_DEFAULT_PASSING_SCORE

    # Tentatives (None = illimité)
    default_max_attempts: Optional[int] = None

    # Questions
    min_options: int = 2
    max_options: int = 10

    # Une tentative peut être soumise sans répondre à toutes les questions
    allow_partial_submission: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizRules":
        return cls(**data)

    @classmethod
    def get_default_rules(cls) -> "QuizRules":
        """Obtenir les règles par défaut"""
        return cls()

    def passing_score_for(self, passing_score: Optional[float]) -> float:
        return self.default_passing_score if passing_score is None else passing_score

    def is_passing(self, percentage: float, passing_score: Optional[float] = None) -> bool:
        """Vérifier si un pourcentage est une réussite"""
        return percentage >= self.passing_score_for(passing_score)

    def max_attempts_for(self, max_attempts: Optional[int]) -> Optional[int]:
        return self.default_max_attempts if max_attempts is None else max_attempts

    def attempts_exhausted(self, used: int, max_attempts: Optional[int] = None) -> bool:
        """True when no further attempt may be started."""
        limit = self.max_attempts_for(max_attempts)
        if limit is None:
            return False
        return used >= limit

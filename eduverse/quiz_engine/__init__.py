"""
Moteur de quiz

Ce module contient la logique de notation :
- Validation des questions
- Calcul du score d'une tentative
- Statistiques par quiz et par question
"""
from eduverse.quiz_engine.engine import QuizEngine
from eduverse.quiz_engine.rules import QuizRules

__all__ = ["QuizEngine", "QuizRules"]

"""Scoring helpers for quizzes and exercises."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .models import Exercise, Quiz

# (minimum percentage, title, message), checked top to bottom
RESULT_TIERS = (
    (100, 'Perfect!', 'Outstanding work! You answered everything correctly.'),
    (80, 'Great Job!', 'Excellent understanding of the material.'),
    (50, 'Good Effort!', 'You are on the right track. Review the missed items.'),
    (0, 'Keep Practicing!', 'Study the material again and give it another try.'),
)


def normalize_answer(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip().lower()


def percentage(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(score * 100 / total)


def result_tier(score: int, total: int) -> Dict[str, Any]:
    pct = percentage(score, total)
    for minimum, title, message in RESULT_TIERS:
        if pct >= minimum:
            return {'title': title, 'message': message, 'percentage': pct}
    return {'title': RESULT_TIERS[-1][1], 'message': RESULT_TIERS[-1][2], 'percentage': pct}


def score_quiz(quizzes: Sequence[Quiz], answers: Sequence[Optional[str]]) -> int:
    return sum(
        1 for quiz, answer in zip(quizzes, answers)
        if answer is not None and answer == quiz.correct_answer_option
    )


def is_exercise_answered(exercise: Exercise, answer: Any) -> bool:
    if exercise.is_matching:
        if not isinstance(answer, dict):
            return False
        concepts = exercise.concepts or list((exercise.answer or {}).keys())
        return all(str(answer.get(concept, '')).strip() for concept in concepts)
    return bool(normalize_answer(answer))


def grade_exercise(exercise: Exercise, answer: Any) -> bool:
    """Strings compare case-insensitively after trimming; matching compares every concept."""
    if exercise.is_matching:
        expected = exercise.answer if isinstance(exercise.answer, dict) else {}
        if not expected or not isinstance(answer, dict):
            return False
        return all(
            normalize_answer(answer.get(concept)) == normalize_answer(definition)
            for concept, definition in expected.items()
        )
    return normalize_answer(answer) == normalize_answer(exercise.answer)


def score_exercises(exercises: Sequence[Exercise], answers: Sequence[Any]) -> List[bool]:
    return [grade_exercise(exercise, answer) for exercise, answer in zip(exercises, answers)]

"""View-model types of a study session.

These are plain dataclasses: the authoritative copies live in the backend,
the web client only holds what the current session needs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

RATINGS = ('again', 'hard', 'good', 'easy')
CORRECT_RATINGS = ('good', 'easy')
DIFFICULT_RATING = 'hard'

EXERCISE_TYPES = ('fill_blank', 'true_false', 'short_answer', 'matching')


class Tab(str, Enum):
    FLASHCARDS = 'flashcards'
    QUIZ = 'quiz'
    EXERCISES = 'exercises'
    REVIEW = 'review'


class Phase(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    ACTIVE = 'active'
    COMPLETE = 'complete'


# Tabs that own a piece of study content (review only re-uses flashcards)
ACTIVITY_TABS = (Tab.FLASHCARDS, Tab.QUIZ, Tab.EXERCISES)


@dataclass
class Flashcard:
    question: str
    answer: str
    id: Optional[int] = None
    difficulty: str = 'medium'
    subject: str = ''
    type: str = 'Q&A'

    @property
    def has_remote_id(self) -> bool:
        """Only integer ids come from the backend; anything else is local."""
        return isinstance(self.id, int) and not isinstance(self.id, bool) and self.id > 0


@dataclass
class Quiz:
    question: str
    options: List[str]
    correct_answer_option: str
    difficulty: str = 'medium'
    answer: str = ''
    type: str = 'multiple_choice'
    id: Optional[int] = None


@dataclass
class Exercise:
    type: str
    instruction: str
    answer: Union[str, Dict[str, str]]
    exercise_text: Optional[str] = None
    difficulty: str = 'medium'
    concepts: Optional[List[str]] = None
    definitions: Optional[List[str]] = None
    id: Optional[int] = None

    @property
    def is_matching(self) -> bool:
        return self.type == 'matching'


@dataclass
class SessionStats:
    correct: int = 0
    difficult: int = 0
    time_spent: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'correct': self.correct, 'difficult': self.difficult, 'timeSpent': self.time_spent}


@dataclass
class StudySession:
    """Local record of a server-side study session, kept for resume-on-reload."""

    session_id: str
    deck_or_search_id: str
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    cards_studied: int = 0
    total_study_time: int = 0
    status: str = 'active'

    def to_storage(self, kind: 'SessionKind') -> Dict[str, Any]:
        """Shape written to the store (same field names as the SPA)."""
        data = {
            'session_id': self.session_id,
            'start_time': self.started_at,
            'cards_studied': self.cards_studied,
            'total_study_time': self.total_study_time,
            'status': self.status,
        }
        data[kind.id_field] = self.deck_or_search_id
        return data

    @classmethod
    def from_storage(cls, data: Dict[str, Any], kind: 'SessionKind') -> Optional['StudySession']:
        if not data or not data.get('session_id'):
            return None
        return cls(
            session_id=str(data['session_id']),
            deck_or_search_id=str(data.get(kind.id_field, '')),
            started_at=data.get('start_time') or data.get('started_at') or datetime.now(timezone.utc).isoformat(),
            cards_studied=int(data.get('cards_studied') or 0),
            total_study_time=int(data.get('total_study_time') or 0),
            status=data.get('status') or 'active',
        )


@dataclass(frozen=True)
class DeckSession:
    """Regular deck (or uploaded document) study."""

    deck_id: Optional[str] = None
    deck_name: Optional[str] = None
    document_id: Optional[str] = None

    tag = 'deck'
    id_field = 'deck_id'

    @property
    def identifier(self) -> str:
        if self.deck_id:
            return f"deck:{self.deck_id}"
        if self.document_id:
            return f"document:{self.document_id}"
        return f"deck:{self.deck_name or 'generated'}"

    @property
    def remote_id(self) -> Optional[str]:
        return self.deck_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'deck_id': self.deck_id,
            'deck_name': self.deck_name,
            'document_id': self.document_id,
        }


@dataclass(frozen=True)
class SearchSession:
    """Study of flashcards produced by a search-flashcards job."""

    search_id: Optional[str] = None
    topic: Optional[str] = None

    tag = 'search'
    id_field = 'search_id'

    @property
    def identifier(self) -> str:
        return f"search:{self.search_id or self.topic or 'unsaved'}"

    @property
    def remote_id(self) -> Optional[str]:
        return self.search_id

    def to_dict(self) -> Dict[str, Any]:
        return {'tag': self.tag, 'search_id': self.search_id, 'topic': self.topic}


SessionKind = Union[DeckSession, SearchSession]


def session_kind_from_dict(data: Optional[Dict[str, Any]]) -> SessionKind:
    if data and data.get('tag') == SearchSession.tag:
        return SearchSession(search_id=data.get('search_id'), topic=data.get('topic'))
    data = data or {}
    return DeckSession(
        deck_id=data.get('deck_id'),
        deck_name=data.get('deck_name'),
        document_id=data.get('document_id'),
    )


@dataclass
class StudyContent:
    """The three independent content arrays of a session."""

    flashcards: List[Flashcard] = field(default_factory=list)
    quizzes: List[Quiz] = field(default_factory=list)
    exercises: List[Exercise] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.flashcards or self.quizzes or self.exercises)

    def counts(self) -> Dict[str, int]:
        return {
            'flashcards': len(self.flashcards),
            'quizzes': len(self.quizzes),
            'exercises': len(self.exercises),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flashcards': [asdict(card) for card in self.flashcards],
            'quizzes': [asdict(quiz) for quiz in self.quizzes],
            'exercises': [asdict(exercise) for exercise in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'StudyContent':
        data = data or {}
        return cls(
            flashcards=[Flashcard(**card) for card in data.get('flashcards') or []],
            quizzes=[Quiz(**quiz) for quiz in data.get('quizzes') or []],
            exercises=[Exercise(**exercise) for exercise in data.get('exercises') or []],
        )

"""
Study session controller.

Owns one study session across the four tabs (flashcards, quiz, exercises,
review) and keeps score and time bookkeeping consistent between them.

The controller is framework-free. It never talks to the backend: the
service layer performs remote calls and hands their results (for example the
server's ``session_stats`` aggregate) to the controller. A snapshot is saved
with :meth:`to_dict` after every request and restored with
:meth:`from_dict` on the next one.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from ...core.error_handlers import AuthenticationRequired, MaterialsNotFound, ValidationError
from ...core.signals import card_rated, materials_loaded, safe_send, session_completed, session_reset
from . import grading
from .models import (
    ACTIVITY_TABS,
    CORRECT_RATINGS,
    DIFFICULT_RATING,
    RATINGS,
    DeckSession,
    Flashcard,
    Phase,
    SearchSession,
    SessionKind,
    SessionStats,
    StudyContent,
    StudySession,
    Tab,
    session_kind_from_dict,
)
from .timer import ActivityTimer, PauseReason

logger = logging.getLogger(__name__)


def _fit(values: List[Any], size: int) -> List[Any]:
    """Pad with ``None`` or truncate so ``values`` has exactly ``size`` items."""
    values = list(values[:size])
    values.extend([None] * (size - len(values)))
    return values


class StudySessionController:

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.content = StudyContent()
        self.kind: SessionKind = DeckSession()
        self.deck_identifier: Optional[str] = None
        self.phase = Phase.IDLE
        self.materials_not_found = False
        self._reset_session_state()

    # ------------------------------------------------------------------
    # session-scoped state
    # ------------------------------------------------------------------

    def _reset_session_state(self) -> None:
        """Put every counter, flag and timer of the session back to its initial value."""
        self.active_tab = Tab.FLASHCARDS
        self.current_card = 0
        self.is_flipped = False
        self.session_ratings: List[Optional[str]] = [None] * len(self.content.flashcards)
        self.session_stats = SessionStats()
        self.flashcards_complete = False

        self.quiz_step = 0
        self.quiz_answers: List[Optional[str]] = [None] * len(self.content.quizzes)
        self.quiz_complete = False
        self.quiz_score = 0

        self.exercise_step = 0
        self.exercise_answers: List[Any] = [None] * len(self.content.exercises)
        self.exercises_complete = False
        self.exercise_results: List[bool] = []

        self.reviewed_indices: Set[int] = set()
        self.remote_difficult_ids: Set[int] = set()
        self.bookmarks: Set[int] = set()
        self.study_again_from: Optional[Dict[str, Any]] = None
        self.suppress_view_reset = False

        self.remote_session: Optional[StudySession] = None
        self.study_timer = ActivityTimer(clock=self.clock)
        self.overall_timer = ActivityTimer(clock=self.clock)
        self.activity_times: Dict[str, int] = {tab.value: 0 for tab in Tab}
        self.completion_announced = False
        self.card_timer_mark = 0

    def _apply_content(self, content: StudyContent) -> None:
        self.content = content
        self.session_ratings = _fit(self.session_ratings, len(content.flashcards))
        self.quiz_answers = _fit(self.quiz_answers, len(content.quizzes))
        self.exercise_answers = _fit(self.exercise_answers, len(content.exercises))
        if content.flashcards:
            self.current_card = min(self.current_card, len(content.flashcards) - 1)
        else:
            self.current_card = 0
        self.quiz_step = min(self.quiz_step, max(len(content.quizzes) - 1, 0))
        self.exercise_step = min(self.exercise_step, max(len(content.exercises) - 1, 0))
        self.bookmarks = {index for index in self.bookmarks if index < len(content.flashcards)}
        self.reviewed_indices = {index for index in self.reviewed_indices if index < len(content.flashcards)}

    def begin_loading(self) -> None:
        if self.phase is Phase.IDLE:
            self.phase = Phase.LOADING

    def load_content(self, content: StudyContent, kind: SessionKind, deck_identifier: str) -> None:
        """
        Apply freshly loaded materials.

        Loading a different deck identifier wipes every session-scoped value
        first so nothing leaks from the previous deck.
        """
        changed = deck_identifier != self.deck_identifier
        if changed:
            previous = self.deck_identifier
            self.content = StudyContent()
            self._reset_session_state()
            self.deck_identifier = deck_identifier
            self.phase = Phase.LOADING
            if previous is not None:
                logger.info("Deck changed from %s to %s, session state reset", previous, deck_identifier)
                safe_send(session_reset, self, logger, reason='deck_change', deck_identifier=deck_identifier)

        self.kind = kind
        self._apply_content(content)

        if content.is_empty:
            self.materials_not_found = True
            self.phase = Phase.IDLE
            self.study_timer.reset()
            self.overall_timer.reset()
            raise MaterialsNotFound()

        self.materials_not_found = False
        if self.active_tab is not Tab.REVIEW and not self._tab_has_content(self.active_tab):
            self.active_tab = self._first_tab_with_content()

        if self.phase in (Phase.IDLE, Phase.LOADING):
            self.phase = Phase.ACTIVE
            self.study_timer.start()
            self.overall_timer.start()
        self._refresh_phase()
        safe_send(materials_loaded, self, logger, deck_identifier=deck_identifier, counts=content.counts())

    def _tab_has_content(self, tab: Tab) -> bool:
        if tab in (Tab.FLASHCARDS, Tab.REVIEW):
            return bool(self.content.flashcards)
        if tab is Tab.QUIZ:
            return bool(self.content.quizzes)
        return bool(self.content.exercises)

    def _first_tab_with_content(self) -> Tab:
        for tab in ACTIVITY_TABS:
            if self._tab_has_content(tab):
                return tab
        return Tab.FLASHCARDS

    def _require_flashcards(self) -> None:
        if not self.content.flashcards:
            raise ValidationError('This session has no flashcards')

    def _check_card_index(self, index: int) -> None:
        self._require_flashcards()
        if not 0 <= index < len(self.content.flashcards):
            raise ValidationError(f'Card {index} does not exist')

    # ------------------------------------------------------------------
    # completion
    # ------------------------------------------------------------------

    @property
    def is_overall_complete(self) -> bool:
        """True once every activity that has content is complete."""
        flags = []
        if self.content.flashcards:
            flags.append(self.flashcards_complete)
        if self.content.quizzes:
            flags.append(self.quiz_complete)
        if self.content.exercises:
            flags.append(self.exercises_complete)
        return bool(flags) and all(flags)

    @property
    def is_search_session(self) -> bool:
        return isinstance(self.kind, SearchSession)

    def _complete_activity(self) -> None:
        self.study_timer.pause(PauseReason.COMPLETED)
        self.overall_timer.pause(PauseReason.COMPLETED)
        self._refresh_phase()

    def _refresh_phase(self) -> None:
        if self.phase not in (Phase.ACTIVE, Phase.COMPLETE):
            return
        if self.is_overall_complete:
            self.phase = Phase.COMPLETE
            if not self.completion_announced:
                self.completion_announced = True
                safe_send(
                    session_completed, self, logger,
                    stats=self.stats.to_dict(), activity_times=dict(self.activity_times),
                )
        else:
            self.phase = Phase.ACTIVE
            self.completion_announced = False

    def _resume_after_completion(self) -> None:
        """Restart timers that were only paused because an activity finished."""
        if self.is_overall_complete:
            return
        for timer in (self.overall_timer, self.study_timer):
            if timer.paused_for(PauseReason.COMPLETED):
                timer.resume()

    @property
    def stats(self) -> SessionStats:
        self.session_stats.time_spent = self.overall_timer.elapsed
        return self.session_stats

    # ------------------------------------------------------------------
    # flashcards
    # ------------------------------------------------------------------

    @property
    def current_flashcard(self) -> Optional[Flashcard]:
        if not self.content.flashcards or self.flashcards_complete:
            return None
        return self.content.flashcards[self.current_card]

    def flip(self) -> bool:
        self._require_flashcards()
        self.is_flipped = not self.is_flipped
        return self.is_flipped

    def previous_card(self) -> int:
        self._require_flashcards()
        if self.current_card > 0:
            self.current_card -= 1
            self.is_flipped = False
        return self.current_card

    def seconds_on_card(self) -> int:
        """Seconds of the current activity spent since the previous rating."""
        return max(0, self.study_timer.elapsed - self.card_timer_mark)

    def _apply_server_stats(self, server_stats: Optional[Dict[str, Any]]) -> bool:
        if not isinstance(server_stats, dict):
            return False
        correct = server_stats.get('correct')
        difficult = server_stats.get('difficult')
        if not isinstance(correct, int) or not isinstance(difficult, int):
            return False
        self.session_stats.correct = correct
        self.session_stats.difficult = difficult
        return True

    def _record_rating(self, index: int, rating: str, server_stats: Optional[Dict[str, Any]]) -> bool:
        self.session_ratings[index] = rating
        card = self.content.flashcards[index]

        if rating == DIFFICULT_RATING:
            self.reviewed_indices.discard(index)
            if card.has_remote_id:
                self.remote_difficult_ids.add(card.id)
        elif rating in CORRECT_RATINGS and card.has_remote_id:
            self.remote_difficult_ids.discard(card.id)

        from_server = self._apply_server_stats(server_stats)
        if not from_server:
            if rating in CORRECT_RATINGS:
                self.session_stats.correct += 1
            elif rating == DIFFICULT_RATING:
                self.session_stats.difficult += 1
        return from_server

    def check_can_rate(self, rating: str) -> None:
        if rating not in RATINGS:
            raise ValidationError(f'Unknown rating: {rating}', errors={'rating': list(RATINGS)})
        self._require_flashcards()
        if self.flashcards_complete:
            raise ValidationError('All flashcards have already been rated')

    def rate_card(
        self,
        rating: str,
        server_stats: Optional[Dict[str, Any]] = None,
        *,
        recorded_remotely: bool = False,
        study_time: int = 0,
    ) -> Dict[str, Any]:
        """
        Rate the current card and move on.

        ``server_stats`` is the aggregate returned by the record-review call;
        when it is missing the counters are updated locally (``good``/``easy``
        count as correct, ``hard`` as difficult, ``again`` as neither).
        """
        self.check_can_rate(rating)

        index = self.current_card
        card = self.content.flashcards[index]
        from_server = self._record_rating(index, rating, server_stats)
        if recorded_remotely and self.remote_session is not None:
            self.remote_session.cards_studied += 1
            self.remote_session.total_study_time += study_time
        self.card_timer_mark = self.study_timer.elapsed
        self.is_flipped = False

        if self.study_again_from is not None and self.study_again_from.get('index') == index:
            self._return_from_study_again()
        elif index < len(self.content.flashcards) - 1:
            self.current_card = index + 1
        else:
            self.flashcards_complete = True
            self._complete_activity()

        safe_send(card_rated, self, logger, index=index, rating=rating, card_id=card.id, remote=from_server)
        return {
            'index': index,
            'rating': rating,
            'stats_source': 'server' if from_server else 'local',
            'flashcards_complete': self.flashcards_complete,
            'session_complete': self.is_overall_complete,
        }

    def toggle_bookmark(self, index: int, authenticated: bool) -> bool:
        if not authenticated:
            raise AuthenticationRequired('Please sign in to bookmark flashcards')
        self._check_card_index(index)
        if index in self.bookmarks:
            self.bookmarks.discard(index)
            return False
        self.bookmarks.add(index)
        return True

    # ------------------------------------------------------------------
    # tabs and timers
    # ------------------------------------------------------------------

    def _close_activity(self) -> Optional[Dict[str, Any]]:
        seconds = self.study_timer.elapsed
        self.activity_times[self.active_tab.value] += seconds
        if seconds <= 0:
            return None
        return {'activity_type': self.active_tab.value, 'duration_seconds': seconds}

    def _reset_flashcard_view(self) -> None:
        self.current_card = 0
        self.is_flipped = False
        self.flashcards_complete = False
        self._refresh_phase()

    def switch_tab(self, tab: Any) -> Optional[Dict[str, Any]]:
        """
        Move to another tab.

        Ratings and counters are left untouched. Returns the activity that
        just ended (type and duration) so it can be recorded remotely.
        """
        try:
            tab = Tab(tab)
        except ValueError:
            raise ValidationError(f'Unknown tab: {tab}', errors={'tab': [t.value for t in Tab]})
        if tab is self.active_tab:
            return None

        ended = self._close_activity()
        self.active_tab = tab

        if tab is Tab.FLASHCARDS and self.flashcards_complete:
            if self.suppress_view_reset:
                self.suppress_view_reset = False
            else:
                self._reset_flashcard_view()

        self._resume_after_completion()
        self.study_timer.reset()
        self.card_timer_mark = 0
        if self.overall_timer.is_running:
            self.study_timer.start()
        elif self.overall_timer.is_paused:
            self.study_timer.start()
            self.study_timer.pause(self.overall_timer.pause_reason)
        return ended

    def pause(self) -> None:
        self.study_timer.pause(PauseReason.MANUAL)
        self.overall_timer.pause(PauseReason.MANUAL)

    def resume(self) -> None:
        """Resume a manual pause or stop; activity completion pauses are left alone."""
        if self.phase is not Phase.ACTIVE:
            return
        for timer in (self.study_timer, self.overall_timer):
            if timer.paused_for(PauseReason.MANUAL) or not (timer.is_running or timer.is_paused):
                timer.start()

    def stop(self) -> None:
        self.study_timer.stop()
        self.overall_timer.stop()

    def reset_timers(self) -> None:
        running = self.phase is Phase.ACTIVE
        for timer in (self.study_timer, self.overall_timer):
            timer.reset()
            if running:
                timer.start()
        self.activity_times = {tab.value: 0 for tab in Tab}

    # ------------------------------------------------------------------
    # quiz
    # ------------------------------------------------------------------

    def _require_quizzes(self) -> None:
        if not self.content.quizzes:
            raise ValidationError('This session has no quiz questions')

    def answer_quiz(self, option: str) -> None:
        self._require_quizzes()
        if self.quiz_complete:
            raise ValidationError('The quiz has already been submitted')
        if self.quiz_answers[self.quiz_step] is not None:
            raise ValidationError('This question has already been answered')
        quiz = self.content.quizzes[self.quiz_step]
        if option not in quiz.options:
            raise ValidationError('Choose one of the listed options', errors={'option': quiz.options})
        self.quiz_answers[self.quiz_step] = option

    def next_quiz(self) -> int:
        self._require_quizzes()
        if self.quiz_answers[self.quiz_step] is None:
            raise ValidationError('Answer the question before moving on')
        if self.quiz_step >= len(self.content.quizzes) - 1:
            raise ValidationError('This is the last question, submit the quiz instead')
        self.quiz_step += 1
        return self.quiz_step

    def previous_quiz(self) -> int:
        self._require_quizzes()
        if self.quiz_step > 0:
            self.quiz_step -= 1
        return self.quiz_step

    def submit_quiz(self) -> Dict[str, Any]:
        self._require_quizzes()
        if self.quiz_complete:
            raise ValidationError('The quiz has already been submitted')
        if any(answer is None for answer in self.quiz_answers):
            raise ValidationError('Answer every question before submitting')
        self.quiz_score = grading.score_quiz(self.content.quizzes, self.quiz_answers)
        self.quiz_complete = True
        self._complete_activity()
        return self.quiz_result()

    def quiz_result(self) -> Optional[Dict[str, Any]]:
        if not self.quiz_complete:
            return None
        total = len(self.content.quizzes)
        result = grading.result_tier(self.quiz_score, total)
        result.update({'score': self.quiz_score, 'total': total})
        return result

    def retry_quiz(self) -> None:
        self._require_quizzes()
        self.quiz_step = 0
        self.quiz_answers = [None] * len(self.content.quizzes)
        self.quiz_complete = False
        self.quiz_score = 0
        self._refresh_phase()
        self._resume_after_completion()

    # ------------------------------------------------------------------
    # exercises
    # ------------------------------------------------------------------

    def _require_exercises(self) -> None:
        if not self.content.exercises:
            raise ValidationError('This session has no exercises')

    def answer_exercise(self, value: Any) -> Any:
        self._require_exercises()
        if self.exercises_complete:
            raise ValidationError('The exercises have already been submitted')
        exercise = self.content.exercises[self.exercise_step]
        if exercise.is_matching:
            if not isinstance(value, dict):
                raise ValidationError('Matching answers map each concept to a definition')
            allowed = set(exercise.concepts or [])
            unknown = [concept for concept in value if concept not in allowed]
            if unknown:
                raise ValidationError('Unknown concepts in answer', errors={'concepts': unknown})
            merged = dict(self.exercise_answers[self.exercise_step] or {})
            merged.update({concept: str(definition) for concept, definition in value.items()})
            self.exercise_answers[self.exercise_step] = merged
        else:
            if isinstance(value, (dict, list)):
                raise ValidationError('This exercise expects a text answer')
            self.exercise_answers[self.exercise_step] = '' if value is None else str(value)
        return self.exercise_answers[self.exercise_step]

    def next_exercise(self) -> int:
        self._require_exercises()
        exercise = self.content.exercises[self.exercise_step]
        if not grading.is_exercise_answered(exercise, self.exercise_answers[self.exercise_step]):
            raise ValidationError('Answer the exercise before moving on')
        if self.exercise_step >= len(self.content.exercises) - 1:
            raise ValidationError('This is the last exercise, submit your answers instead')
        self.exercise_step += 1
        return self.exercise_step

    def previous_exercise(self) -> int:
        self._require_exercises()
        if self.exercise_step > 0:
            self.exercise_step -= 1
        return self.exercise_step

    def submit_exercises(self) -> Dict[str, Any]:
        self._require_exercises()
        if self.exercises_complete:
            raise ValidationError('The exercises have already been submitted')
        unanswered = [
            index for index, (exercise, answer) in enumerate(zip(self.content.exercises, self.exercise_answers))
            if not grading.is_exercise_answered(exercise, answer)
        ]
        if unanswered:
            raise ValidationError('Answer every exercise before submitting', errors={'unanswered': unanswered})
        self.exercise_results = grading.score_exercises(self.content.exercises, self.exercise_answers)
        self.exercises_complete = True
        self._complete_activity()
        return self.exercise_result()

    def exercise_result(self) -> Optional[Dict[str, Any]]:
        if not self.exercises_complete:
            return None
        score = sum(1 for correct in self.exercise_results if correct)
        total = len(self.content.exercises)
        result = grading.result_tier(score, total)
        result.update({'score': score, 'total': total, 'results': list(self.exercise_results)})
        return result

    def retry_exercises(self) -> None:
        self._require_exercises()
        self.exercise_step = 0
        self.exercise_answers = [None] * len(self.content.exercises)
        self.exercises_complete = False
        self.exercise_results = []
        self._refresh_phase()
        self._resume_after_completion()

    # ------------------------------------------------------------------
    # review tab
    # ------------------------------------------------------------------

    def _is_difficult(self, index: int, card: Flashcard) -> bool:
        if self.is_search_session and card.has_remote_id:
            return card.id in self.remote_difficult_ids
        return self.session_ratings[index] == DIFFICULT_RATING

    def difficult_cards(self) -> List[Dict[str, Any]]:
        """Cards still marked difficult, with their index in the deck."""
        return [
            {'index': index, 'card': asdict(card)}
            for index, card in enumerate(self.content.flashcards)
            if index not in self.reviewed_indices and self._is_difficult(index, card)
        ]

    def difficult_card(self, index: int) -> Flashcard:
        self._check_card_index(index)
        card = self.content.flashcards[index]
        if index in self.reviewed_indices or not self._is_difficult(index, card):
            raise ValidationError(f'Card {index} is not in the difficult list')
        return card

    def mark_reviewed(self, index: int, server_stats: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Demote a difficult card with a ``good`` rating, without moving the current card."""
        card = self.difficult_card(index)
        from_server = self._record_rating(index, 'good', server_stats)
        self.reviewed_indices.add(index)
        safe_send(card_rated, self, logger, index=index, rating='good', card_id=card.id, remote=from_server)
        return {'index': index, 'remaining': len(self.difficult_cards())}

    def study_again(self, index: int) -> int:
        """Jump to a difficult card; rating it brings the session back to where it was."""
        self.difficult_card(index)
        self.study_again_from = {
            'index': index,
            'current_card': self.current_card,
            'flashcards_complete': self.flashcards_complete,
        }
        self.suppress_view_reset = True
        self.switch_tab(Tab.FLASHCARDS)
        self.suppress_view_reset = False
        self.flashcards_complete = False
        self.current_card = index
        self.is_flipped = False
        self._refresh_phase()
        self._resume_after_completion()
        return index

    def _return_from_study_again(self) -> None:
        prior = self.study_again_from or {}
        self.study_again_from = None
        self.current_card = prior.get('current_card', 0)
        if prior.get('flashcards_complete'):
            self.flashcards_complete = True
            self._complete_activity()

    # ------------------------------------------------------------------
    # restart / export / snapshot
    # ------------------------------------------------------------------

    def restart(self) -> None:
        """Clear ratings, counters, progress and the remote session record."""
        self._reset_session_state()
        self.materials_not_found = False
        if self.content.is_empty:
            self.phase = Phase.IDLE
        else:
            self.active_tab = self._first_tab_with_content()
            self.phase = Phase.ACTIVE
            self.study_timer.start()
            self.overall_timer.start()
        safe_send(session_reset, self, logger, reason='restart', deck_identifier=self.deck_identifier)

    def export_progress(self) -> Dict[str, Any]:
        return {
            'deck_identifier': self.deck_identifier,
            'session_kind': self.kind.to_dict(),
            'stats': self.stats.to_dict(),
            'ratings': list(self.session_ratings),
            'flashcards': [asdict(card) for card in self.content.flashcards],
            'bookmarks': sorted(self.bookmarks),
            'activity_times': dict(self.activity_times),
            'quiz_result': self.quiz_result(),
            'exercise_result': self.exercise_result(),
            'exported_at': datetime.now(timezone.utc).isoformat(),
        }

    def state(self) -> Dict[str, Any]:
        """Public view of the session for the browser."""
        return {
            'phase': self.phase.value,
            'active_tab': self.active_tab.value,
            'deck_identifier': self.deck_identifier,
            'session_kind': self.kind.to_dict(),
            'materials_not_found': self.materials_not_found,
            'content': self.content.to_dict(),
            'counts': self.content.counts(),
            'flashcards': {
                'current_card': self.current_card,
                'is_flipped': self.is_flipped,
                'ratings': list(self.session_ratings),
                'complete': self.flashcards_complete,
                'bookmarks': sorted(self.bookmarks),
                'studying_again': self.study_again_from is not None,
            },
            'quiz': {
                'step': self.quiz_step,
                'answers': list(self.quiz_answers),
                'complete': self.quiz_complete,
                'result': self.quiz_result(),
            },
            'exercises': {
                'step': self.exercise_step,
                'answers': list(self.exercise_answers),
                'complete': self.exercises_complete,
                'result': self.exercise_result(),
            },
            'review': {'difficult_count': len(self.difficult_cards())},
            'stats': self.stats.to_dict(),
            'is_overall_complete': self.is_overall_complete,
            'timers': {
                'study': {'state': self.study_timer.state.value, 'elapsed': self.study_timer.elapsed},
                'overall': {'state': self.overall_timer.state.value, 'elapsed': self.overall_timer.elapsed},
            },
            'activity_times': dict(self.activity_times),
            'remote_session_id': self.remote_session.session_id if self.remote_session else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deck_identifier': self.deck_identifier,
            'kind': self.kind.to_dict(),
            'phase': self.phase.value,
            'materials_not_found': self.materials_not_found,
            'content': self.content.to_dict(),
            'active_tab': self.active_tab.value,
            'current_card': self.current_card,
            'is_flipped': self.is_flipped,
            'session_ratings': list(self.session_ratings),
            'session_stats': {'correct': self.session_stats.correct, 'difficult': self.session_stats.difficult},
            'flashcards_complete': self.flashcards_complete,
            'quiz_step': self.quiz_step,
            'quiz_answers': list(self.quiz_answers),
            'quiz_complete': self.quiz_complete,
            'quiz_score': self.quiz_score,
            'exercise_step': self.exercise_step,
            'exercise_answers': list(self.exercise_answers),
            'exercises_complete': self.exercises_complete,
            'exercise_results': list(self.exercise_results),
            'reviewed_indices': sorted(self.reviewed_indices),
            'remote_difficult_ids': sorted(self.remote_difficult_ids),
            'bookmarks': sorted(self.bookmarks),
            'study_again_from': self.study_again_from,
            'suppress_view_reset': self.suppress_view_reset,
            'remote_session': self.remote_session.to_storage(self.kind) if self.remote_session else None,
            'study_timer': self.study_timer.to_dict(),
            'overall_timer': self.overall_timer.to_dict(),
            'activity_times': dict(self.activity_times),
            'completion_announced': self.completion_announced,
            'card_timer_mark': self.card_timer_mark,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], clock: Callable[[], float] = time.time) -> 'StudySessionController':
        controller = cls(clock=clock)
        if not data:
            return controller

        controller.content = StudyContent.from_dict(data.get('content'))
        controller._reset_session_state()
        controller.kind = session_kind_from_dict(data.get('kind'))
        controller.deck_identifier = data.get('deck_identifier')
        controller.phase = Phase(data.get('phase') or Phase.IDLE.value)
        controller.materials_not_found = bool(data.get('materials_not_found'))
        controller.active_tab = Tab(data.get('active_tab') or Tab.FLASHCARDS.value)
        controller.current_card = int(data.get('current_card') or 0)
        controller.is_flipped = bool(data.get('is_flipped'))
        controller.session_ratings = _fit(data.get('session_ratings') or [], len(controller.content.flashcards))
        stats = data.get('session_stats') or {}
        controller.session_stats = SessionStats(
            correct=int(stats.get('correct') or 0), difficult=int(stats.get('difficult') or 0)
        )
        controller.flashcards_complete = bool(data.get('flashcards_complete'))
        controller.quiz_step = int(data.get('quiz_step') or 0)
        controller.quiz_answers = _fit(data.get('quiz_answers') or [], len(controller.content.quizzes))
        controller.quiz_complete = bool(data.get('quiz_complete'))
        controller.quiz_score = int(data.get('quiz_score') or 0)
        controller.exercise_step = int(data.get('exercise_step') or 0)
        controller.exercise_answers = _fit(data.get('exercise_answers') or [], len(controller.content.exercises))
        controller.exercises_complete = bool(data.get('exercises_complete'))
        controller.exercise_results = list(data.get('exercise_results') or [])
        controller.reviewed_indices = set(data.get('reviewed_indices') or [])
        controller.remote_difficult_ids = set(data.get('remote_difficult_ids') or [])
        controller.bookmarks = set(data.get('bookmarks') or [])
        controller.study_again_from = data.get('study_again_from')
        controller.suppress_view_reset = bool(data.get('suppress_view_reset'))
        if data.get('remote_session'):
            controller.remote_session = StudySession.from_storage(data['remote_session'], controller.kind)
        controller.study_timer = ActivityTimer.from_dict(data.get('study_timer'), clock=clock)
        controller.overall_timer = ActivityTimer.from_dict(data.get('overall_timer'), clock=clock)
        controller.activity_times.update(data.get('activity_times') or {})
        controller.completion_announced = bool(data.get('completion_announced'))
        controller.card_timer_mark = int(data.get('card_timer_mark') or 0)
        return controller

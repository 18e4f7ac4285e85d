"""
Study service: glue between the session controller, the backend and the store.

Each request builds a :class:`StudyService`, which restores the controller
from ``memo-spark-study-state``, performs the operation (making the remote
calls the controller itself never makes) and saves the snapshot again.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from flask import current_app

from ...core.error_handlers import BackendError, MaterialsNotFound, NotFoundError, ValidationError
from ...services import get_backend_client
from ...services.backend_client import BackendClient
from ...services.endpoints import DECKS, SEARCH_FLASHCARDS, STUDY
from ..session_store import SessionStore, StorageKeys, get_session_store
from .controller import StudySessionController
from .models import DeckSession, SearchSession, SessionKind, StudyContent, StudySession, Tab
from .schemas import load_content

TIMING_ACTIVITY_TYPES = {
    Tab.FLASHCARDS.value: 'flashcard',
    Tab.QUIZ.value: 'quiz',
    Tab.EXERCISES.value: 'exercise',
}


def session_key_for(kind: SessionKind) -> str:
    """Store key of the remote session record for a session kind."""
    if isinstance(kind, SearchSession):
        return StorageKeys.CURRENT_SEARCH_STUDY_SESSION
    return StorageKeys.CURRENT_STUDY_SESSION


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StudyService:

    def __init__(
        self,
        store: SessionStore,
        client: BackendClient,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.client = client
        self.clock = clock
        self.controller = StudySessionController.from_dict(
            store.get(StorageKeys.STUDY_STATE), clock=clock
        )

    @classmethod
    def for_request(cls) -> 'StudyService':
        return cls(get_session_store(), get_backend_client())

    @property
    def is_authenticated(self) -> bool:
        return self.client.is_authenticated

    def save(self) -> None:
        self.store.set(StorageKeys.STUDY_STATE, self.controller.to_dict())
        session = self.controller.remote_session
        if session is not None:
            self.store.set(session_key_for(self.controller.kind), session.to_storage(self.controller.kind))

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------

    def load(
        self,
        deck: Optional[str] = None,
        source: Optional[str] = None,
        search_id: Optional[str] = None,
        force: bool = False,
    ) -> StudySessionController:
        """Load a study source: a search result, a deck, or uploaded content."""
        if source == 'search_flashcards':
            self.load_search_flashcards(search_id)
        elif deck:
            self.fetch_materials(deck, force=force)
        else:
            self.load_generated_content()
        self.start_remote_session()
        return self.controller

    def _apply(self, content: StudyContent, kind: SessionKind) -> None:
        identifier = kind.identifier
        if identifier != self.controller.deck_identifier:
            self.store.clear_study_session()
        try:
            self.controller.load_content(content, kind, identifier)
        finally:
            # persist materials_not_found as well
            self.save()

    def _resolve_deck(self, deck: str) -> Tuple[str, Optional[str]]:
        """Return ``(deck_id, deck_name)``, resolving a name through the deck list."""
        deck = str(deck).strip()
        if deck.isdigit():
            return deck, None

        payload = self.client.get(DECKS['LIST'])
        decks = payload.get('data') if isinstance(payload, dict) else payload
        for item in decks or []:
            if str(item.get('name', '')).strip().lower() == deck.lower():
                return str(item['id']), item.get('name')
        raise NotFoundError(f"Deck '{deck}' was not found", resource='deck')

    def fetch_materials(self, deck: str, force: bool = False) -> StudySessionController:
        """
        Fetch and apply the materials of a deck given by id or name.

        Without ``force`` a deck that is already loaded is not fetched again.
        """
        deck_id, deck_name = self._resolve_deck(deck)
        identifier = DeckSession(deck_id=deck_id).identifier
        controller = self.controller
        if not force and controller.deck_identifier == identifier and not controller.content.is_empty:
            current_app.logger.debug(f"Deck {deck_id} already loaded, skipping fetch")
            return controller

        controller.begin_loading()
        payload = self.client.get(STUDY['DECK_MATERIALS'](deck_id))
        deck_info = payload.get('deck') or {}
        deck_name = deck_info.get('name') or deck_name
        content = load_content(payload)

        if deck_name:
            self.store.set(StorageKeys.CURRENT_DECK_NAME, deck_name)
        self._apply(content, DeckSession(deck_id=deck_id, deck_name=deck_name))
        current_app.logger.info(
            f"Loaded deck {deck_id}: {len(content.flashcards)} flashcards, "
            f"{len(content.quizzes)} quizzes, {len(content.exercises)} exercises"
        )
        return controller

    def load_generated_content(self) -> StudySessionController:
        """Study content staged by the upload poller."""
        staged = self.store.get(StorageKeys.GENERATED_CONTENT)
        if not staged:
            self.controller.materials_not_found = True
            self.save()
            raise MaterialsNotFound('No generated content is waiting to be studied')
        content = load_content(staged)
        deck_name = self.store.get(StorageKeys.CURRENT_DECK_NAME)
        deck_id = staged.get('deck_id')
        document_id = staged.get('document_id')
        kind = DeckSession(
            deck_id=str(deck_id) if deck_id else None,
            deck_name=deck_name,
            document_id=str(document_id) if document_id else None,
        )
        self._apply(content, kind)
        return self.controller

    def load_search_flashcards(self, search_id: Optional[str] = None) -> StudySessionController:
        """Study a search result, staged by the search poller or fetched by id."""
        staged = self.store.get(StorageKeys.STUDY_FLASHCARDS) or {}
        if search_id and str(staged.get('search_id')) != str(search_id):
            staged = stage_search_details(self.client, self.store, search_id)
        if not staged.get('flashcards'):
            self.controller.materials_not_found = True
            self.save()
            raise MaterialsNotFound('No search flashcards are waiting to be studied')

        content = load_content({'flashcards': staged['flashcards']})
        staged_id = staged.get('search_id')
        kind = SearchSession(search_id=str(staged_id) if staged_id else None, topic=staged.get('topic'))
        self._apply(content, kind)
        return self.controller

    # ------------------------------------------------------------------
    # remote session
    # ------------------------------------------------------------------

    def start_remote_session(self) -> Optional[StudySession]:
        """Resume the stored session for this deck or search, or start a new one."""
        controller = self.controller
        kind = controller.kind
        if not self.is_authenticated or not kind.remote_id or controller.content.is_empty:
            return None
        if controller.remote_session is not None:
            return controller.remote_session

        stored = StudySession.from_storage(self.store.get(session_key_for(kind)), kind)
        if stored and stored.deck_or_search_id == str(kind.remote_id) and stored.status == 'active':
            controller.remote_session = stored
            self.save()
            return stored

        if isinstance(kind, SearchSession):
            endpoint, body = SEARCH_FLASHCARDS['STUDY_START_SESSION'], {'search_id': kind.search_id}
        else:
            endpoint, body = STUDY['START_SESSION'], {'deck_id': kind.deck_id}
        try:
            payload = self.client.post(endpoint, json=body)
        except BackendError as exc:
            current_app.logger.warning(f"Could not start a remote study session: {exc.message}")
            return None

        session = self._session_from_response(payload, kind)
        if session is None:
            current_app.logger.warning(f"Unexpected start-session response: {payload!r}")
            return None
        controller.remote_session = session
        self.save()
        return session

    @staticmethod
    def _session_from_response(payload: Any, kind: SessionKind) -> Optional[StudySession]:
        if not isinstance(payload, dict):
            return None
        data = payload.get('session') or payload.get('data') or payload
        if not isinstance(data, dict):
            return None
        session_id = data.get('session_id') or data.get('id')
        if not session_id:
            return None
        return StudySession(
            session_id=str(session_id),
            deck_or_search_id=str(data.get(kind.id_field) or kind.remote_id),
            started_at=data.get('start_time') or data.get('started_at') or _now_iso(),
            cards_studied=int(data.get('cards_studied') or 0),
            total_study_time=int(data.get('total_study_time') or 0),
            status=data.get('status') or 'active',
        )

    def _can_record(self, card) -> bool:
        return (
            self.is_authenticated
            and card is not None
            and card.has_remote_id
            and self.controller.remote_session is not None
        )

    def _record_review(self, card, rating: str, study_time: int) -> Optional[Dict[str, Any]]:
        """Send one review to the kind's endpoint; returns the server aggregate or None."""
        controller = self.controller
        session_id = controller.remote_session.session_id
        if isinstance(controller.kind, SearchSession):
            endpoint = SEARCH_FLASHCARDS['RECORD_REVIEW']
            body = {
                'flashcard_id': card.id,
                'search_id': controller.kind.search_id,
                'rating': rating,
                'study_time': study_time,
                'session_id': session_id,
            }
        else:
            endpoint = STUDY['RECORD_REVIEW']
            body = {
                'study_material_id': card.id,
                'rating': rating,
                'study_time': study_time,
                'session_id': session_id,
            }
        payload = self.client.post(endpoint, json=body)
        if not isinstance(payload, dict):
            return {}
        if isinstance(payload.get('difficult_card_ids'), list):
            controller.remote_difficult_ids = _remote_card_ids(payload['difficult_card_ids'])
        return payload.get('session_stats') or {}

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def rate(self, rating: str) -> Dict[str, Any]:
        controller = self.controller
        controller.check_can_rate(rating)
        was_complete = controller.is_overall_complete
        card = controller.current_flashcard
        study_time = controller.seconds_on_card()

        server_stats = None
        recorded = False
        if self._can_record(card):
            try:
                server_stats = self._record_review(card, rating, study_time)
                recorded = True
            except BackendError as exc:
                current_app.logger.warning(
                    f"Recording review of card {card.id} failed, keeping local counts: {exc.message}"
                )

        result = controller.rate_card(
            rating, server_stats, recorded_remotely=recorded, study_time=study_time
        )
        self._after_mutation(was_complete)
        return result

    def switch_tab(self, tab: str) -> None:
        ended = self.controller.switch_tab(tab)
        if ended:
            self._record_activity(ended)
        self.save()

    def mark_reviewed(self, index: int) -> Dict[str, Any]:
        controller = self.controller
        card = controller.difficult_card(index)
        server_stats = None
        if self._can_record(card):
            try:
                if isinstance(controller.kind, SearchSession):
                    self.client.post(SEARCH_FLASHCARDS['DIFFICULT_MARK_REVIEWED'], json={
                        'flashcard_id': card.id,
                        'search_id': controller.kind.search_id,
                        'session_id': controller.remote_session.session_id,
                    })
                server_stats = self._record_review(card, 'good', 0)
            except BackendError as exc:
                current_app.logger.warning(f"Marking card {card.id} reviewed failed remotely: {exc.message}")
        result = controller.mark_reviewed(index, server_stats)
        self.save()
        return result

    def submit_quiz(self) -> Dict[str, Any]:
        was_complete = self.controller.is_overall_complete
        result = self.controller.submit_quiz()
        self._after_mutation(was_complete)
        return result

    def submit_exercises(self) -> Dict[str, Any]:
        was_complete = self.controller.is_overall_complete
        result = self.controller.submit_exercises()
        self._after_mutation(was_complete)
        return result

    def restart(self) -> None:
        self.controller.restart()
        self.store.remove(session_key_for(self.controller.kind))
        self.start_remote_session()
        self.save()

    def toggle_bookmark(self, index: int) -> bool:
        bookmarked = self.controller.toggle_bookmark(index, self.is_authenticated)
        self.save()
        return bookmarked

    def _after_mutation(self, was_complete: bool) -> None:
        if not was_complete and self.controller.is_overall_complete:
            self._finish_remote_session()
        self.save()

    def _record_activity(self, activity: Dict[str, Any]) -> None:
        """Best-effort timing record of a finished activity."""
        controller = self.controller
        activity_type = TIMING_ACTIVITY_TYPES.get(activity.get('activity_type'))
        if not activity_type or not self.is_authenticated or controller.remote_session is None:
            return
        details = {'quiz_step': controller.quiz_step} if activity_type == 'quiz' else {}
        if activity_type == 'exercise':
            details = {'exercise_step': controller.exercise_step}
        try:
            self.client.post(STUDY['TIMING_RECORD'], json={
                'session_id': controller.remote_session.session_id,
                'activity_type': activity_type,
                'duration_seconds': int(activity.get('duration_seconds') or 0),
                'activity_details': details,
                'recorded_at': _now_iso(),
            })
        except BackendError as exc:
            current_app.logger.warning(f"Recording {activity_type} timing failed: {exc.message}")

    def _finish_remote_session(self) -> None:
        controller = self.controller
        session = controller.remote_session
        if session is None:
            return
        session.status = 'completed'
        if not isinstance(controller.kind, SearchSession) or not self.is_authenticated:
            return
        stats = controller.stats
        try:
            self.client.post(SEARCH_FLASHCARDS['STUDY_COMPLETE_SESSION'], json={
                'session_id': session.session_id,
                'search_id': controller.kind.search_id,
                'correct': stats.correct,
                'difficult': stats.difficult,
                'total_time': stats.time_spent,
            })
        except BackendError as exc:
            current_app.logger.warning(f"Completing search study session failed: {exc.message}")


def _remote_card_ids(values) -> set:
    """Backend card ids as positive ints; anything else is dropped."""
    ids = set()
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            card_id = int(value)
        except (TypeError, ValueError):
            card_id = 0
        if card_id > 0:
            ids.add(card_id)
        else:
            current_app.logger.warning(f"Ignoring malformed difficult card id from backend: {value!r}")
    return ids


def stage_search_flashcards(
    store: SessionStore,
    flashcards,
    topic: Optional[str],
    search_id: Optional[Any],
) -> Dict[str, Any]:
    """Write ``memo-spark-study-flashcards`` and the search session info."""
    store.clear_search_session()
    staged = {
        'flashcards': [
            {
                'id': card.get('id'),
                'question': card.get('question'),
                'answer': card.get('answer'),
                'difficulty': card.get('difficulty') or 'medium',
                'subject': topic or '',
                'type': card.get('type') or 'Q&A',
            }
            for card in flashcards or []
        ],
        'source': 'search_flashcards',
        'topic': topic,
        'search_id': search_id,
        'timestamp': _now_iso(),
    }
    store.set(StorageKeys.STUDY_FLASHCARDS, staged)
    store.set(StorageKeys.SEARCH_SESSION_INFO, {
        'search_id': search_id,
        'topic': topic,
        'timestamp': staged['timestamp'],
    })
    return staged


def stage_search_details(client: BackendClient, store: SessionStore, search_id: Any) -> Dict[str, Any]:
    """Fetch a finished search (with durable card ids) and stage it for study."""
    payload = client.get(SEARCH_FLASHCARDS['SEARCH_DETAILS'](search_id))
    data = payload.get('data') if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise NotFoundError(f'Search {search_id} was not found', resource='search')
    if not data.get('flashcards'):
        raise MaterialsNotFound('This search has no flashcards')
    return stage_search_flashcards(store, data['flashcards'], data.get('topic'), data.get('id') or search_id)


def parse_index(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError('index must be an integer')

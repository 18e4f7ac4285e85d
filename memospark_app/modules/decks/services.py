"""Deck management over the decks and study-materials endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from ...services.backend_client import BackendClient
from ...services.endpoints import DECKS, STUDY, STUDY_MATERIALS


class DeckService:

    def __init__(self, client: BackendClient):
        self.client = client

    def list_decks(self) -> List[Dict[str, Any]]:
        payload = self.client.get(DECKS['LIST'])
        return payload.get('data') or []

    def get_deck(self, deck_id: Any) -> Dict[str, Any]:
        return self.client.get(DECKS['DETAILS'](deck_id)).get('data') or {}

    def update_deck(self, deck_id: Any, name: str) -> Dict[str, Any]:
        return self.client.put(DECKS['DETAILS'](deck_id), json={'name': name}).get('data') or {}

    def deck_cards(self, deck_id: Any) -> Dict[str, Any]:
        """
        Flatten the deck materials into one card list for editing.

        Every study material holds a single card, so each card carries the
        material id it is edited through (``real_material_id``) and index 0.
        """
        payload = self.client.get(STUDY['DECK_MATERIALS'](deck_id))
        cards = []
        groups = []
        for group, card_type in (('flashcards', 'flashcard'), ('quizzes', 'quiz'), ('exercises', 'exercise')):
            items = payload.get(group) or []
            if items:
                groups.append({'id': group, 'type': card_type, 'count': len(items)})
            for position, item in enumerate(items):
                card = dict(item)
                if card_type == 'exercise':
                    card['exercise_type'] = item.get('type')
                    card['question'] = item.get('exercise_text') or item.get('question')
                card.update({
                    'type': card_type,
                    'group': group,
                    'position': position,
                    'real_material_id': str(item['id']) if item.get('id') is not None else None,
                    'card_index': 0,
                })
                cards.append(card)
        return {
            'deck': payload.get('deck') or {'id': deck_id},
            'groups': groups,
            'cards': cards,
            'materials': payload.get('materials') or [],
        }

    def material_cards(self, material_id: Any) -> List[Dict[str, Any]]:
        return self.client.get(STUDY_MATERIALS['FLASHCARDS'](material_id)).get('data') or []

    def create_card(self, material_id: Any, card: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.post(STUDY_MATERIALS['FLASHCARDS'](material_id), json=card).get('data') or {}

    def update_card(self, material_id: Any, index: int, card: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.put(STUDY_MATERIALS['FLASHCARD'](material_id, index), json=card).get('data') or {}

    def delete_card(self, material_id: Any, index: int) -> None:
        self.client.delete(STUDY_MATERIALS['FLASHCARD'](material_id, index))

"""Deck management endpoints."""

from __future__ import annotations

from flask import current_app, jsonify
from flask_login import login_required

from ...core.error_handlers import ValidationError, success_response
from ...services import get_backend_client
from ..session_store import StorageKeys, get_session_store
from . import decks_bp
from .forms import CardForm, DeckForm
from .services import DeckService


def _service() -> DeckService:
    return DeckService(get_backend_client())


@decks_bp.route('', methods=['GET'])
@login_required
def list_decks():
    return jsonify(success_response(_service().list_decks()))


@decks_bp.route('/<int:deck_id>', methods=['GET'])
@login_required
def deck_details(deck_id):
    return jsonify(success_response(_service().get_deck(deck_id)))


@decks_bp.route('/<int:deck_id>', methods=['PUT'])
@login_required
def update_deck(deck_id):
    form = DeckForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid deck details', errors=form.errors)
    name = form.name.data.strip()
    deck = _service().update_deck(deck_id, name)

    store = get_session_store()
    study_state = store.get(StorageKeys.STUDY_STATE) or {}
    if (study_state.get('kind') or {}).get('deck_id') == str(deck_id):
        store.set(StorageKeys.CURRENT_DECK_NAME, name)
    current_app.logger.info(f"Deck {deck_id} renamed to {name}")
    return jsonify(success_response(deck, 'Deck updated successfully'))


@decks_bp.route('/<int:deck_id>/cards', methods=['GET'])
@login_required
def deck_cards(deck_id):
    return jsonify(success_response(_service().deck_cards(deck_id)))


@decks_bp.route('/materials/<int:material_id>/cards', methods=['GET'])
@login_required
def material_cards(material_id):
    return jsonify(success_response(_service().material_cards(material_id)))


@decks_bp.route('/materials/<int:material_id>/cards', methods=['POST'])
@login_required
def create_card(material_id):
    form = CardForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid card', errors=form.errors)
    card = _service().create_card(material_id, form.to_payload())
    return jsonify(success_response(card, 'Flashcard created successfully')), 201


@decks_bp.route('/materials/<int:material_id>/cards/<int:index>', methods=['PUT'])
@login_required
def update_card(material_id, index):
    form = CardForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid card', errors=form.errors)
    card = _service().update_card(material_id, index, form.to_payload())
    return jsonify(success_response(card, 'Flashcard updated successfully'))


@decks_bp.route('/materials/<int:material_id>/cards/<int:index>', methods=['DELETE'])
@login_required
def delete_card(material_id, index):
    _service().delete_card(material_id, index)
    return jsonify(success_response(message='Flashcard deleted successfully'))

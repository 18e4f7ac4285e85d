"""Deck management: deck details and editing of generated cards."""

from flask import Blueprint

decks_bp = Blueprint('decks', __name__)

from . import routes  # noqa: E402  # isort:skip

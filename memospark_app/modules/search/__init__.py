"""Search-flashcards: generate flashcards for a topic and study them."""

from flask import Blueprint

search_bp = Blueprint('search', __name__)

from . import routes  # noqa: E402  # isort:skip

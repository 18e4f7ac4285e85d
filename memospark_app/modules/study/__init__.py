"""Study session: flashcards, quiz, exercises and the review tab."""

from flask import Blueprint

study_bp = Blueprint('study', __name__)

from . import routes  # noqa: E402  # isort:skip

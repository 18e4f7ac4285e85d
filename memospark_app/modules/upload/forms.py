"""Forms used by the upload module."""

from __future__ import annotations

from flask import current_app
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import SelectField, SelectMultipleField, StringField
from wtforms.validators import DataRequired, Length, Optional, ValidationError

LANGUAGE_CHOICES = [('en', 'English'), ('vi', 'Vietnamese')]
CARD_TYPE_CHOICES = [('flashcard', 'Flashcards'), ('quiz', 'Quizzes'), ('exercise', 'Exercises')]
DIFFICULTY_CHOICES = [('beginner', 'Beginner'), ('intermediate', 'Intermediate'), ('advanced', 'Advanced')]


class DocumentUploadForm(FlaskForm):
    """Upload a document and choose what to generate from it."""

    file = FileField('Document', validators=[FileRequired('Choose a file to upload.')])
    deck_name = StringField('Deck name', validators=[Optional(), Length(max=255)])
    language = SelectField('Language', choices=LANGUAGE_CHOICES, default='en', validators=[DataRequired()])
    card_types = SelectMultipleField('Card types', choices=CARD_TYPE_CHOICES, default=['flashcard'])
    difficulty = SelectField('Difficulty', choices=DIFFICULTY_CHOICES, default='beginner', validators=[DataRequired()])

    def validate_file(self, field: FileField) -> None:
        filename = getattr(field.data, 'filename', '') or ''
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        allowed = current_app.config.get('ALLOWED_UPLOAD_EXTENSIONS', set())
        if extension not in allowed:
            raise ValidationError(f"Unsupported file type. Allowed: {', '.join(sorted(allowed))}")


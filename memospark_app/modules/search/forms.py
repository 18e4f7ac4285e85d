"""Forms used by the search-flashcards module."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

DIFFICULTY_CHOICES = [('beginner', 'Beginner'), ('intermediate', 'Intermediate'), ('advanced', 'Advanced')]


class SearchFlashcardsForm(FlaskForm):
    """Request AI-generated flashcards about a topic."""

    topic = StringField('Topic', validators=[DataRequired('Enter a topic.'), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=1000)])
    difficulty = SelectField('Difficulty', choices=DIFFICULTY_CHOICES, default='intermediate')
    count = IntegerField('Number of flashcards', default=10, validators=[
        Optional(), NumberRange(min=1, max=50, message='Choose between 1 and 50 flashcards.'),
    ])

    def to_request(self) -> dict:
        body = {
            'topic': self.topic.data.strip(),
            'difficulty': self.difficulty.data,
            'count': self.count.data or 10,
        }
        if self.description.data and self.description.data.strip():
            body['description'] = self.description.data.strip()
        return body

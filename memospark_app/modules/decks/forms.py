"""Forms used by the deck management module."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

CARD_DIFFICULTY_CHOICES = [('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard')]
CARD_TYPE_CHOICES = [('flashcard', 'Flashcard'), ('quiz', 'Quiz'), ('exercise', 'Exercise')]


class DeckForm(FlaskForm):
    name = StringField('Deck name', validators=[DataRequired('Enter a deck name.'), Length(max=255)])


class CardForm(FlaskForm):
    """Create or edit one generated card."""

    type = SelectField('Type', choices=CARD_TYPE_CHOICES, default='flashcard')
    question = TextAreaField('Question', validators=[Optional(), Length(max=2000)])
    answer = TextAreaField('Answer', validators=[DataRequired('Enter an answer.'), Length(max=2000)])
    difficulty = SelectField('Difficulty', choices=CARD_DIFFICULTY_CHOICES, default='medium')
    exercise_text = TextAreaField('Exercise text', validators=[Optional(), Length(max=2000)])

    def to_payload(self) -> dict:
        """Exercises keep their question text under ``exercise_text``."""
        payload = {
            'type': self.type.data,
            'answer': self.answer.data,
            'difficulty': self.difficulty.data,
        }
        if self.type.data == 'exercise':
            payload['exercise_text'] = self.exercise_text.data or self.question.data
        elif self.question.data:
            payload['question'] = self.question.data
        return payload

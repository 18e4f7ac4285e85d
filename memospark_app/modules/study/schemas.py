"""Canonical wire format of generated study content.

Every producer (deck materials, processed documents, search results) is read
through :class:`GeneratedContentSchema`; there is exactly one accepted shape::

    {
        "version": 1,
        "flashcards": [{"id", "question", "answer", "difficulty", ...}],
        "quizzes": [{"question", "options", "correct_answer_option", ...}],
        "exercises": [{"type", "instruction", "answer", ...}]
    }
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError as SchemaValidationError,
    fields,
    post_load,
    validate,
    validates_schema,
)

from ...core.error_handlers import ValidationError
from .models import EXERCISE_TYPES, Exercise, Flashcard, Quiz, StudyContent

CONTENT_VERSION = 1


class FlashcardSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.Int(allow_none=True, load_default=None)
    question = fields.Str(required=True, validate=validate.Length(min=1))
    answer = fields.Str(required=True)
    difficulty = fields.Str(load_default='medium')
    subject = fields.Str(load_default='', allow_none=True)
    type = fields.Str(load_default='Q&A', allow_none=True)

    @post_load
    def make_flashcard(self, data, **kwargs):
        data['subject'] = data.get('subject') or ''
        data['type'] = data.get('type') or 'Q&A'
        return Flashcard(**data)


class QuizSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.Int(allow_none=True, load_default=None)
    question = fields.Str(required=True, validate=validate.Length(min=1))
    options = fields.List(fields.Str(), required=True, validate=validate.Length(min=2))
    correct_answer_option = fields.Str(required=True)
    difficulty = fields.Str(load_default='medium')
    answer = fields.Str(load_default='')
    type = fields.Str(load_default='multiple_choice')

    @validates_schema
    def validate_correct_option(self, data, **kwargs):
        if data['correct_answer_option'] not in data['options']:
            raise SchemaValidationError(
                'correct_answer_option must be one of the options', 'correct_answer_option'
            )

    @post_load
    def make_quiz(self, data, **kwargs):
        return Quiz(**data)


class ExerciseSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.Int(allow_none=True, load_default=None)
    type = fields.Str(required=True, validate=validate.OneOf(EXERCISE_TYPES))
    instruction = fields.Str(required=True)
    exercise_text = fields.Str(allow_none=True, load_default=None)
    answer = fields.Raw(required=True)
    difficulty = fields.Str(load_default='medium')
    concepts = fields.List(fields.Str(), allow_none=True, load_default=None)
    definitions = fields.List(fields.Str(), allow_none=True, load_default=None)

    @validates_schema
    def validate_answer_shape(self, data, **kwargs):
        answer = data.get('answer')
        if data.get('type') == 'matching':
            if not isinstance(answer, dict) or not answer:
                raise SchemaValidationError('matching answers must map concepts to definitions', 'answer')
        elif not isinstance(answer, (str, bool, int, float)):
            raise SchemaValidationError('answer must be a string', 'answer')

    @post_load
    def make_exercise(self, data, **kwargs):
        answer = data['answer']
        if isinstance(answer, bool):
            data['answer'] = 'true' if answer else 'false'
        elif not isinstance(answer, dict):
            data['answer'] = str(answer)
        if data['type'] == 'matching' and not data.get('concepts'):
            data['concepts'] = list(data['answer'].keys())
        return Exercise(**data)


class GeneratedContentSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    version = fields.Int(load_default=CONTENT_VERSION, validate=validate.Equal(CONTENT_VERSION))
    flashcards = fields.List(fields.Nested(FlashcardSchema), load_default=list)
    quizzes = fields.List(fields.Nested(QuizSchema), load_default=list)
    exercises = fields.List(fields.Nested(ExerciseSchema), load_default=list)

    @post_load
    def make_content(self, data, **kwargs):
        return StudyContent(
            flashcards=data['flashcards'],
            quizzes=data['quizzes'],
            exercises=data['exercises'],
        )


def load_content(payload: Optional[Dict[str, Any]]) -> StudyContent:
    """Validate a content DTO, raising the app's ``ValidationError``."""
    try:
        return GeneratedContentSchema().load(payload or {})
    except SchemaValidationError as exc:
        raise ValidationError('Study content is not in the expected format', errors=exc.messages)


def dump_content(content: StudyContent) -> Dict[str, Any]:
    data = content.to_dict()
    data['version'] = CONTENT_VERSION
    return data


def content_from_status(payload: Dict[str, Any]) -> Optional[StudyContent]:
    """Read ``data.generated_content`` of a document status response, if present."""
    data = payload.get('data') if isinstance(payload, dict) else None
    if not isinstance(data, dict) or not data.get('generated_content'):
        return None
    return load_content(data['generated_content'])

"""Forms used by the goals module."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import BooleanField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, ValidationError

CATEGORY_CHOICES = [
    ('study', 'Study'),
    ('engagement', 'Engagement'),
    ('achievement', 'Achievement'),
    ('time', 'Time'),
]

# JSON bodies carry real booleans; WTForms only knows the string spellings.
JSON_FALSE_VALUES = (False, 'false', 'False', '', '0', 0)


class GoalTypeForm(FlaskForm):
    """Create or edit a goal type (admin)."""

    name = StringField('Name', validators=[DataRequired('Enter a name.'), Length(max=120)])
    description = TextAreaField('Description', validators=[DataRequired('Enter a description.'), Length(max=500)])
    unit = StringField('Unit', validators=[DataRequired('Enter a unit.'), Length(max=50)])
    category = SelectField('Category', choices=CATEGORY_CHOICES, default='study')
    # bounds may legitimately be 0, which InputRequired treats as missing
    default_value = IntegerField('Default value', default=0, validators=[NumberRange(min=0)])
    min_value = IntegerField('Minimum', default=0, validators=[NumberRange(min=0)])
    max_value = IntegerField('Maximum', default=1000, validators=[NumberRange(min=0)])
    is_active = BooleanField('Active', default=True, false_values=JSON_FALSE_VALUES)

    def validate_max_value(self, field: IntegerField) -> None:  # type: ignore[override]
        if self.min_value.data is not None and field.data is not None and field.data < self.min_value.data:
            raise ValidationError('Maximum must be greater than or equal to the minimum.')

    def validate_default_value(self, field: IntegerField) -> None:  # type: ignore[override]
        low, high = self.min_value.data, self.max_value.data
        if field.data is None or low is None or high is None:
            return
        if not low <= field.data <= high:
            raise ValidationError('Default value must lie between the minimum and the maximum.')

    def to_payload(self) -> dict:
        return {
            'name': self.name.data.strip(),
            'description': self.description.data.strip(),
            'unit': self.unit.data.strip(),
            'category': self.category.data,
            'default_value': self.default_value.data,
            'min_value': self.min_value.data,
            'max_value': self.max_value.data,
            'is_active': bool(self.is_active.data),
        }


class SetGoalForm(FlaskForm):
    """A student picks a goal type and a target."""

    goal_type_id = StringField('Goal type', validators=[DataRequired('Select a goal type.')])
    target_value = IntegerField('Target', validators=[
        InputRequired('Enter a target value.'), NumberRange(min=1, message='Enter a valid target value.'),
    ])


class UserGoalForm(SetGoalForm):
    """An administrator assigns a goal to a user."""

    user_id = StringField('User', validators=[DataRequired('Select a user.')])


class TargetValueForm(FlaskForm):
    target_value = IntegerField('Target', validators=[
        InputRequired('Enter a target value.'), NumberRange(min=1, message='Enter a valid target value.'),
    ])


class CustomGoalForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired('Enter a name.'), Length(max=120)])
    description = TextAreaField('Description', validators=[DataRequired('Enter a description.'), Length(max=500)])
    unit = StringField('Unit', validators=[DataRequired('Enter a unit.'), Length(max=50)])
    category = SelectField('Category', choices=CATEGORY_CHOICES, default='study')
    target_value = IntegerField('Target', validators=[
        InputRequired('Enter a target value.'), NumberRange(min=1, message='The target must be greater than zero.'),
    ])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=500)])

    def to_payload(self) -> dict:
        payload = {
            'name': self.name.data.strip(),
            'description': self.description.data.strip(),
            'unit': self.unit.data.strip(),
            'category': self.category.data,
            'target_value': self.target_value.data,
        }
        if self.notes.data:
            payload['notes'] = self.notes.data.strip()
        return payload

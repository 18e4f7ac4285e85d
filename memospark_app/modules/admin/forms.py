"""Forms used by the admin module."""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional

USER_TYPE_CHOICES = [('student', 'Student'), ('admin', 'Admin')]


class UserEditForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired('Enter a name.'), Length(max=255)])
    email = StringField('Email', validators=[DataRequired('Enter an email.'), Email(), Length(max=255)])
    user_type = SelectField('Role', choices=USER_TYPE_CHOICES, default='student')
    points = IntegerField('Points', validators=[Optional(), NumberRange(min=0)])

    def to_payload(self) -> dict:
        payload = {
            'name': self.name.data.strip(),
            'email': self.email.data.strip(),
            'user_type': self.user_type.data,
        }
        if self.points.data is not None:
            payload['points'] = self.points.data
        return payload

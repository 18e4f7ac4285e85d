"""Forms for signing in."""

from flask_wtf import FlaskForm
from wtforms import BooleanField, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length


class LoginForm(FlaskForm):
    """
    Sign-in form; credentials are checked by the backend.
    """
    email = StringField('Email', validators=[DataRequired(message="Please enter your email."), Email(), Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired(message="Please enter your password.")])
    remember_me = BooleanField('Remember me')

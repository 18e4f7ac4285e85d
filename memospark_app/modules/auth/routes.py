"""Sign-in, sign-out and identity routes."""

from __future__ import annotations

from flask import current_app, jsonify, session
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ...core.error_handlers import (
    AuthenticationRequired,
    BackendError,
    ValidationError,
    success_response,
)
from ...extensions import login_manager
from ...services import get_backend_client
from ...services.endpoints import AUTH
from ..session_store import get_session_store
from . import auth_bp
from .forms import LoginForm
from .models import SESSION_USER_KEY, BackendUser


@login_manager.unauthorized_handler
def unauthorized():
    raise AuthenticationRequired()


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    return jsonify(success_response({'csrf_token': generate_csrf()}))


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid login details', errors=form.errors)

    client = get_backend_client(access_token='')
    try:
        payload = client.post(AUTH['LOGIN'], json={
            'email': form.email.data,
            'password': form.password.data,
        })
    except BackendError as exc:
        current_app.logger.info(f"Login rejected for {form.email.data}: {exc.message}")
        raise AuthenticationRequired(exc.message or 'Invalid email or password')

    try:
        user = BackendUser.from_login_response(payload)
    except ValueError as exc:
        current_app.logger.error(f"Unexpected login response: {exc}")
        raise BackendError('The backend returned an unexpected login response')

    session[SESSION_USER_KEY] = user.to_session()
    login_user(user, remember=form.remember_me.data)
    current_app.logger.info(f"User signed in: {user.email} ({user.id})")
    return jsonify(success_response(user.to_public_dict(), 'Signed in successfully'))


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    client = get_backend_client()
    try:
        client.post(AUTH['LOGOUT'])
    except BackendError as exc:
        current_app.logger.warning(f"Backend logout failed, signing out locally: {exc.message}")

    store = get_session_store()
    store.clear_guest_content()
    store.clear_user_caches()
    logout_user()
    session.pop(SESSION_USER_KEY, None)
    return jsonify(success_response(message='Signed out'))


@auth_bp.route('/me', methods=['GET'])
def me():
    if not current_user.is_authenticated:
        return jsonify(success_response({'authenticated': False}))
    data = current_user.to_public_dict()
    data['authenticated'] = True
    return jsonify(success_response(data))

"""Admin user-management endpoints."""

from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import current_user

from ...core.error_handlers import ValidationError, success_response
from ...services import get_backend_client
from ..auth.decorators import admin_required
from . import admin_bp
from .forms import UserEditForm
from .services import AdminUserService


def _service() -> AdminUserService:
    return AdminUserService(get_backend_client(), per_page=current_app.config.get('ADMIN_USERS_PER_PAGE', 15))


@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    page = max(1, request.args.get('page', 1, type=int) or 1)
    return jsonify(success_response(_service().list_users(page, request.args.get('search'))))


@admin_bp.route('/users/<int:user_id>', methods=['GET'])
@admin_required
def user_detail(user_id):
    return jsonify(success_response(_service().get_user(user_id)))


@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    form = UserEditForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid user details', errors=form.errors)
    user = _service().update_user(user_id, form.to_payload())
    current_app.logger.info(f"Admin {current_user.id} updated user {user_id}")
    return jsonify(success_response(user, 'User updated successfully'))


@admin_bp.route('/users/<int:user_id>/activate', methods=['POST'])
@admin_required
def activate_user(user_id):
    user = _service().activate(user_id)
    current_app.logger.info(f"Admin {current_user.id} activated user {user_id}")
    return jsonify(success_response(user, 'User activated'))


@admin_bp.route('/users/<int:user_id>/deactivate', methods=['POST'])
@admin_required
def deactivate_user(user_id):
    if str(user_id) == str(current_user.id):
        raise ValidationError('You cannot deactivate your own account')
    user = _service().deactivate(user_id)
    current_app.logger.info(f"Admin {current_user.id} deactivated user {user_id}")
    return jsonify(success_response(user, 'User deactivated'))

"""Dashboard endpoints."""

from __future__ import annotations

from flask import jsonify
from flask_login import current_user, login_required

from ...core.error_handlers import success_response
from ...services import get_backend_client
from ..session_store import get_session_store
from . import dashboard_bp
from .services import DashboardService


@dashboard_bp.route('', methods=['GET'], defaults={'section': 'main'})
@dashboard_bp.route('/<section>', methods=['GET'])
@login_required
def dashboard(section):
    service = DashboardService(get_backend_client(), get_session_store(), current_user.id)
    return jsonify(success_response(service.fetch(section)))

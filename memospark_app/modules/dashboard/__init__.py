"""Blueprint registration for the dashboard module."""

from flask import Blueprint

dashboard_bp = Blueprint('dashboard', __name__)

from . import routes  # noqa: E402  # isort:skip

"""Blueprint registration for the admin user-management module."""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from . import routes  # noqa: E402  # isort:skip

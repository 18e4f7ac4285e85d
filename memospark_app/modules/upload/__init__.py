"""Document upload and processing-status polling."""

from flask import Blueprint

upload_bp = Blueprint('upload', __name__)

from . import routes  # noqa: E402  # isort:skip

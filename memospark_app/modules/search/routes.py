"""Search-flashcards endpoints (signed-in users only)."""

from __future__ import annotations

from flask import g, jsonify, request
from flask_login import login_required

from ...core.error_handlers import ValidationError, success_response
from ...services import get_backend_client
from . import search_bp
from .forms import SearchFlashcardsForm
from .services import SearchFlashcardsService, SearchJobService


def _int_arg(name: str, default: int, minimum: int = 1, maximum: int = 100) -> int:
    value = request.args.get(name, default, type=int)
    return max(minimum, min(maximum, value if value is not None else default))


@search_bp.route('/generate', methods=['POST'])
@login_required
def generate():
    form = SearchFlashcardsForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid search request', errors=form.errors)
    job = SearchJobService.for_request(g.client_id).start(form.to_request())
    return jsonify(success_response(job.to_dict(), 'Flashcard generation started')), 202


@search_bp.route('/job/<int:job_id>/status', methods=['GET'])
@login_required
def job_status(job_id):
    job = SearchJobService.for_request(g.client_id).check_status(job_id)
    return jsonify(success_response(job.to_dict()))


@search_bp.route('/job/<int:job_id>/cancel', methods=['POST'])
@login_required
def cancel_job(job_id):
    job = SearchJobService.for_request(g.client_id).cancel(job_id)
    return jsonify(success_response(job.to_dict(), 'Generation cancelled'))


@search_bp.route('/job', methods=['GET'])
@login_required
def current_job():
    job = SearchJobService.for_request(g.client_id).current_job()
    if job is None:
        return jsonify(success_response({'active': False}))
    data = job.to_dict()
    data['active'] = not job.is_finished
    return jsonify(success_response(data))


@search_bp.route('/topics', methods=['GET'])
@login_required
def topics():
    return jsonify(success_response(SearchFlashcardsService(get_backend_client()).topics()))


@search_bp.route('/history', methods=['GET'])
@login_required
def history():
    service = SearchFlashcardsService(get_backend_client())
    data = service.history(
        page=_int_arg('page', 1, maximum=10000),
        per_page=_int_arg('per_page', 10, maximum=50),
        status=request.args.get('status'),
        topic=request.args.get('topic'),
    )
    return jsonify(success_response(data))


@search_bp.route('/recent', methods=['GET'])
@login_required
def recent():
    service = SearchFlashcardsService(get_backend_client())
    data = service.recent(limit=_int_arg('limit', 5, maximum=50), days=_int_arg('days', 30, maximum=365))
    return jsonify(success_response(data))


@search_bp.route('/stats', methods=['GET'])
@login_required
def stats():
    service = SearchFlashcardsService(get_backend_client())
    return jsonify(success_response(service.stats(days=_int_arg('days', 30, maximum=365))))


@search_bp.route('/health', methods=['GET'])
@login_required
def health():
    return jsonify(success_response(SearchFlashcardsService(get_backend_client()).health()))


@search_bp.route('/<int:search_id>', methods=['GET'])
@login_required
def details(search_id):
    return jsonify(success_response(SearchFlashcardsService(get_backend_client()).details(search_id)))


@search_bp.route('/<int:search_id>/study', methods=['POST'])
@login_required
def study_search(search_id):
    """Stage a previous search; the browser then loads ``/study/load`` with ``source=search_flashcards``."""
    staged = SearchJobService.for_request(g.client_id).stage_for_study(search_id)
    return jsonify(success_response(staged, 'Search ready to study'))

"""Upload endpoints."""

from __future__ import annotations

from flask import g, jsonify

from ...core.error_handlers import ValidationError, success_response
from . import upload_bp
from .forms import DocumentUploadForm
from .services import UploadService


@upload_bp.route('', methods=['POST'])
def upload_document():
    form = DocumentUploadForm()
    if not form.validate_on_submit():
        raise ValidationError('Upload could not be accepted', errors=form.errors)

    service = UploadService.for_request(g.client_id)
    job = service.upload(
        form.file.data,
        deck_name=(form.deck_name.data or '').strip() or None,
        language=form.language.data,
        card_types=form.card_types.data,
        difficulty=form.difficulty.data,
    )
    return jsonify(success_response(job.to_dict(), 'Document uploaded, processing started')), 202


@upload_bp.route('/<int:job_id>/status', methods=['GET'])
def check_status(job_id):
    """Manual "Check Status": one poll step."""
    job = UploadService.for_request(g.client_id).check_status(job_id)
    return jsonify(success_response(job.to_dict()))


@upload_bp.route('/<int:job_id>/cancel', methods=['POST'])
def cancel(job_id):
    job = UploadService.for_request(g.client_id).cancel(job_id)
    return jsonify(success_response(job.to_dict(), 'Processing cancelled'))


@upload_bp.route('/job', methods=['GET'])
def current_job():
    job = UploadService.for_request(g.client_id).current_job()
    if job is None:
        return jsonify(success_response({'active': False}))
    data = job.to_dict()
    data['active'] = not job.is_finished
    return jsonify(success_response(data))

"""
Error handlers for MemoSpark

Provides:
- Custom exception classes
- Consistent error response format
- Flask error handlers
"""

from flask import jsonify, request, current_app
from flask_wtf.csrf import CSRFError
from typing import Optional, Dict, Any


class MemoSparkError(Exception):
    """Base exception class for MemoSpark."""

    def __init__(
        self,
        message: str,
        code: str = 'UNKNOWN_ERROR',
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON response."""
        return {
            'success': False,
            'message': self.message,
            'code': self.code,
            'details': self.details
        }


class NotFoundError(MemoSparkError):
    """Resource not found."""

    def __init__(self, message: str = 'Resource not found', resource: str = None):
        super().__init__(
            message=message,
            code='NOT_FOUND',
            status_code=404,
            details={'resource': resource} if resource else None
        )


class ValidationError(MemoSparkError):
    """Input validation failed."""

    def __init__(self, message: str = 'Validation failed', errors: Dict = None):
        super().__init__(
            message=message,
            code='VALIDATION_ERROR',
            status_code=400,
            details={'errors': errors} if errors else None
        )


class AuthenticationRequired(MemoSparkError):
    """The action needs a signed-in user (guests are refused)."""

    def __init__(self, message: str = 'Please sign in to use this feature'):
        super().__init__(
            message=message,
            code='AUTH_REQUIRED',
            status_code=401
        )


class AuthorizationError(MemoSparkError):
    """Access denied."""

    def __init__(self, message: str = 'Access denied'):
        super().__init__(
            message=message,
            code='UNAUTHORIZED',
            status_code=403
        )


class BackendError(MemoSparkError):
    """The MemoSpark backend answered with a non-2xx status."""

    def __init__(self, message: str, backend_status: Optional[int] = None, payload: Any = None):
        super().__init__(
            message=message,
            code='BACKEND_ERROR',
            status_code=502,
            details={'backend_status': backend_status} if backend_status else None
        )
        self.backend_status = backend_status
        self.payload = payload


class BackendUnavailable(BackendError):
    """The backend could not be reached at all."""

    def __init__(self, message: str = 'MemoSpark backend is unreachable'):
        super().__init__(message)
        self.code = 'BACKEND_UNAVAILABLE'
        self.status_code = 503


class PollTimeoutError(MemoSparkError):
    """A processing job did not reach a terminal status in time."""

    def __init__(self, message: str = 'Processing is taking longer than expected. Please try again later.'):
        super().__init__(
            message=message,
            code='POLL_TIMEOUT',
            status_code=504
        )


class MaterialsNotFound(NotFoundError):
    """A deck or upload produced no flashcards, quizzes or exercises."""

    def __init__(self, message: str = 'No study materials were found for this deck'):
        super().__init__(message=message, resource='materials')
        self.code = 'MATERIALS_NOT_FOUND'


def error_response(
    message: str,
    code: str = 'ERROR',
    status_code: int = 400,
    details: Dict = None
) -> tuple:
    """Create a standardized error response."""
    response = {
        'success': False,
        'message': message,
        'code': code
    }
    if details:
        response['details'] = details

    return jsonify(response), status_code


def success_response(data: Any = None, message: str = None) -> dict:
    """Create a standardized success response."""
    response = {'success': True}
    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message
    return response


def register_error_handlers(app):
    """Register error handlers with Flask app."""

    @app.errorhandler(MemoSparkError)
    def handle_memospark_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"{error.code}: {error.message}")
        else:
            current_app.logger.info(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return error_response(error.description or 'CSRF token missing or invalid', 'CSRF_ERROR', 400)

    @app.errorhandler(404)
    def handle_not_found(error):
        return error_response(f'Endpoint not found: {request.path}', 'NOT_FOUND', 404)

    @app.errorhandler(500)
    def handle_internal_error(error):
        current_app.logger.exception('Internal server error')
        return error_response('Internal server error', 'SERVER_ERROR', 500)

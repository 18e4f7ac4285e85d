"""HTTP client for the external MemoSpark backend.

Every outbound call goes through :class:`BackendClient`, which attaches the
signed-in user's Bearer token and turns non-2xx answers into
:class:`BackendError` with the backend's own error text.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app, has_request_context
from flask_login import current_user

from ..core.error_handlers import BackendError, BackendUnavailable

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin JSON client over ``requests.Session``."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = 10,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.timeout = timeout
        self.http = http or requests.Session()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def url_for(self, path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if json_body:
            headers['Content-Type'] = 'application/json'
        if self.access_token:
            headers['Authorization'] = f'Bearer {self.access_token}'
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        url = self.url_for(path)
        # multipart bodies set their own Content-Type boundary
        headers = self.headers(json_body=files is None)
        try:
            response = self.http.request(
                method,
                url,
                json=json,
                params=params,
                files=files,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Backend request %s %s failed: %s", method, url, exc)
            raise BackendUnavailable(f'MemoSpark backend is unreachable: {exc}') from exc

        if not response.ok:
            raise self._error_from_response(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(
                f'Backend returned a non-JSON response ({response.status_code})',
                backend_status=response.status_code,
            ) from exc

    def _error_from_response(self, response: requests.Response) -> BackendError:
        content_type = response.headers.get('content-type', '')
        payload: Any = {}
        if 'application/json' in content_type:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
        else:
            logger.error(
                "Non-JSON error response status %s: %s",
                response.status_code,
                response.text[:500],
            )
            return BackendError(
                f'Server returned HTML error page ({response.status_code})',
                backend_status=response.status_code,
            )

        message = None
        if isinstance(payload, dict):
            message = payload.get('error') or payload.get('message')
        return BackendError(
            message or f'API error: {response.status_code}',
            backend_status=response.status_code,
            payload=payload,
        )

    def get(self, path: str, **kwargs) -> Any:
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request('POST', path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request('PUT', path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request('DELETE', path, **kwargs)


def _current_access_token() -> Optional[str]:
    if not has_request_context():
        return None
    if current_user and current_user.is_authenticated:
        return getattr(current_user, 'access_token', None)
    return None


def build_backend_client(access_token: Optional[str] = None) -> BackendClient:
    """Create a client from the app configuration."""
    return BackendClient(
        current_app.config['MEMOSPARK_API_BASE_URL'],
        access_token=access_token,
        timeout=current_app.config.get('MEMOSPARK_API_TIMEOUT', 10),
    )


def get_backend_client(access_token: Optional[str] = None) -> BackendClient:
    """
    Return a client for the current user.

    Tests install a replacement factory under
    ``app.extensions['memospark_backend_factory']``.
    """
    token = access_token if access_token is not None else _current_access_token()
    factory = current_app.extensions.get('memospark_backend_factory', build_backend_client)
    return factory(token)

"""Access checks shared by the admin screens."""

from functools import wraps

from flask_login import current_user

from ...core.error_handlers import AuthenticationRequired, AuthorizationError


def admin_required(view):
    """Allow only signed-in users whose backend role is ``admin``."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationRequired()
        if not getattr(current_user, 'is_admin', False):
            raise AuthorizationError('Administrator access is required.')
        return view(*args, **kwargs)

    return wrapped

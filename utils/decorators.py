from __future__ import annotations

from functools import wraps

from flask import g, session, url_for

from models.user import UserRole
from services.common import require_object_id
from services.exceptions import AdminRequired, AuthenticationRequired
from services.users import get_active_user


def login_required():
    """Resolve the signed-in user from the session cookie into ``g.current_user``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_active_user(session.get("user_id"))
            if user is None:
                raise AuthenticationRequired(
                    "Authentication required. Sign in with Google to continue.",
                    extra={"loginUrl": url_for("auth.google_login")},
                )
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the user's role is one of required_roles.
    Anonymous callers get 401, signed-in callers without the role get 403.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @login_required()
        def wrapper(*args, **kwargs):
            role = g.current_user.role
            if role not in req:
                raise AdminRequired(extra={"userRole": role})
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_required():
    return roles_required([UserRole.ADMIN.value])


def validate_object_id(*params: str):
    """Reject malformed ids in the named URL parameters before any lookup."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            for param in params:
                require_object_id(kwargs.get(param), param)
            return fn(*args, **kwargs)

        return wrapper

    return decorator

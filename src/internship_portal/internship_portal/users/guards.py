from __future__ import annotations

from functools import wraps

from flask import g

from ..common.responses import fail
from ..core.enums import Role


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        auth_session = g.get("auth_session")
        if auth_session is None or not auth_session.is_authenticated:
            return fail("Please sign in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def role_required(role: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            auth_session = g.get("auth_session")
            if auth_session is None or not auth_session.is_authenticated:
                return fail("Please sign in to continue", 401)
            if auth_session.profile.role != role:
                return fail("You do not have permission to do that", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = role_required(Role.ADMIN)
student_required = role_required(Role.STUDENT)

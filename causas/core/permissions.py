from __future__ import annotations

from functools import wraps

from flask_login import current_user

from causas.core.errors import PermissionDenied, Unauthenticated


def require_login(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthenticated("No autenticado.")
        return fn(*args, **kwargs)

    return wrapper


def require_role(role: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthenticated("No autenticado.")
            if (current_user.role.value or "").lower() != role.lower():
                raise PermissionDenied(f"Solo {role}.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator

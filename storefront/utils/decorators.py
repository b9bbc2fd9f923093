# ------- storefront/utils/decorators.py -------
from functools import wraps

from flask import g

from ..extensions import db
from ..model import User
from .principal import Authenticated, current_principal
from .api import err


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        principal = current_principal()
        if not isinstance(principal, Authenticated):
            return err("Unauthorized", 401)
        g.principal = principal
        return fn(*args, **kwargs)
    return wrapper


def role_required(*roles, message: str | None = None):
    """Both the token's role claim and the role stored on the user must be in `roles`."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if not isinstance(principal, Authenticated):
                return err("Unauthorized", 401)
            if principal.role not in roles:
                return err(message or "Forbidden", 403)
            user = db.session.get(User, principal.user_id)
            if user is None or user.role not in roles:
                return err(message or "Forbidden", 403)
            g.principal = principal
            return fn(*args, **kwargs)
        return wrapper
    return decorator


admin_required = role_required("admin", message="Admin access required")

# roster_api/common/auth.py
from __future__ import annotations

from functools import wraps

from flask import current_app
from flask_jwt_extended import jwt_required, get_jwt, verify_jwt_in_request
from werkzeug.security import check_password_hash

from roster_api.common.http import fail

ADMIN_ROLE = "admin"


def check_admin_password(password: str) -> bool:
    """Compare against the werkzeug-format hash in ADMIN_PASSWORD_HASH."""
    hashed = current_app.config.get("ADMIN_PASSWORD_HASH") or ""
    if not hashed or not password:
        return False
    return check_password_hash(hashed, password)


def _has_admin_claim() -> bool:
    claims = get_jwt() or {}
    return ADMIN_ROLE in set(claims.get("roles") or [])


def requires_admin(fn):
    """JWT required and the token must carry the admin role."""
    @wraps(fn)
    @jwt_required()
    def inner(*args, **kwargs):
        if not _has_admin_claim():
            return fail("Forbidden", status=403)
        return fn(*args, **kwargs)
    return inner


def is_admin_request() -> bool:
    """True when the request carries a valid admin token; anonymous is fine."""
    verify_jwt_in_request(optional=True)
    return _has_admin_claim()

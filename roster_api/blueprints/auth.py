# roster_api/blueprints/auth.py
from flask import Blueprint, request, current_app
from flask_jwt_extended import create_access_token

from roster_api.common.auth import ADMIN_ROLE, check_admin_password
from roster_api.common.http import ok, fail

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.post("/login")
def login():
    data = request.get_json(silent=True, force=True)
    if not isinstance(data, dict):
        data = {}
    if not check_admin_password(data.get("password") or ""):
        current_app.logger.info("[auth] rejected admin login")
        return fail("Invalid credentials", status=401)

    access = create_access_token(identity=ADMIN_ROLE, additional_claims={"roles": [ADMIN_ROLE]})
    return ok({"access": access, "roles": [ADMIN_ROLE]})

from __future__ import annotations

from flask import g, jsonify

from regiostore.services.errors import Forbidden, OrderLifecycleError


def error_response(code: str, message: str, status: int):
    payload = {
        "ok": False,
        "error": code,
        "message": message,
    }
    rid = (getattr(g, "request_id", "") or "").strip()
    if rid:
        payload["trace_id"] = rid
    return jsonify(payload), int(status)


def lifecycle_error_response(exc: OrderLifecycleError):
    return error_response(exc.code, exc.message, exc.status_code)


def unauthorized():
    return error_response("UNAUTHORIZED", "Unauthorized", 401)


def auth_failure(expected_role: str):
    """401 when no usable token was sent, 403 when it belongs to another role."""
    role = getattr(g, "auth_role", None)
    if role and role != expected_role:
        return lifecycle_error_response(Forbidden(f"This endpoint is only available to {expected_role} accounts"))
    return unauthorized()

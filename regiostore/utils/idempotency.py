from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from flask import has_request_context, request

from regiostore.extensions import db
from regiostore.models import IdempotencyKey


def _canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def _request_method() -> str:
    if has_request_context():
        return str(request.method or "").strip().upper() or "POST"
    return "POST"


def _hash_request(*, method: str, scope: str, payload: Any) -> str:
    raw = f"{method.strip().upper()}|{scope.strip()}|{_canonical_json(payload)}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def get_idempotency_key() -> str | None:
    if not has_request_context():
        return None
    k = request.headers.get("Idempotency-Key") or request.headers.get("X-Idempotency-Key")
    if not k:
        return None
    return k.strip()[:128] or None


def _reuse_conflict_response() -> tuple[str, dict, int]:
    return (
        "conflict",
        {
            "ok": False,
            "error": "IDEMPOTENCY_KEY_REUSE",
            "message": "This Idempotency-Key was already used with a different request payload.",
        },
        409,
    )


def _in_progress_response() -> tuple[str, dict, int]:
    return (
        "conflict",
        {
            "ok": False,
            "error": "IDEMPOTENCY_KEY_IN_PROGRESS",
            "message": "A request with this Idempotency-Key has not completed.",
        },
        409,
    )


def lookup_response(buyer_id: int | None, scope: str, payload: Any, *, idempotency_key: str | None = None):
    """Resolve an Idempotency-Key for ``scope``.

    Returns ``None`` when the caller sent no key, ``("hit", body, code)`` to
    replay a stored response, ``("conflict", body, 409)`` when the key cannot
    be honoured, or ``("miss", row, 0)`` with a freshly reserved row that the
    caller must complete with :func:`store_response`.
    """
    k = (idempotency_key or get_idempotency_key() or "").strip()[:128]
    if not k:
        return None

    scope_key = (scope or "").strip()
    req_hash = _hash_request(method=_request_method(), scope=scope_key, payload=payload)
    row = IdempotencyKey.query.filter_by(scope=scope_key, key=k).first()
    if row:
        if (row.request_hash or "").strip() != req_hash:
            return _reuse_conflict_response()
        if not row.response_body_json:
            return _in_progress_response()
        return ("hit", json.loads(row.response_body_json), int(row.response_code or 200))

    row = IdempotencyKey(
        key=k,
        scope=scope_key,
        buyer_id=int(buyer_id) if buyer_id is not None else None,
        request_hash=req_hash,
        response_body_json=None,
        response_code=200,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    db.session.add(row)
    db.session.commit()
    return ("miss", row, 0)


def store_response(row: IdempotencyKey, response_json: Any, status_code: int) -> None:
    row.response_body_json = json.dumps(response_json, separators=(",", ":"), default=str)
    row.response_code = int(status_code or 200)
    row.updated_at = datetime.utcnow()
    db.session.add(row)
    db.session.commit()


def release_key(row: IdempotencyKey) -> None:
    """Drop a reserved key whose request failed before producing a response."""
    db.session.delete(row)
    db.session.commit()

from __future__ import annotations

from flask import request

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def page_args(default_limit: int = DEFAULT_LIMIT) -> tuple[int, int]:
    try:
        limit = int(request.args.get("limit") or default_limit)
    except ValueError:
        limit = default_limit
    try:
        offset = int(request.args.get("offset") or 0)
    except ValueError:
        offset = 0
    if limit < 1:
        limit = 1
    if limit > MAX_LIMIT:
        limit = MAX_LIMIT
    if offset < 0:
        offset = 0
    return limit, offset


def page_meta(total: int, limit: int, offset: int, returned: int) -> dict:
    return {
        "total": int(total),
        "limit": int(limit),
        "offset": int(offset),
        "has_more": int(offset) + int(returned) < int(total),
    }

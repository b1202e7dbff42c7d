from __future__ import annotations

from flask import Blueprint, g, jsonify

from regiostore.services.errors import OrderLifecycleError
from regiostore.services.order_lifecycle_service import item_timeline, load_item
from regiostore.utils.api_errors import lifecycle_error_response, unauthorized
from regiostore.utils.jwt_utils import ROLE_BUYER, ROLE_SELLER

timeline_bp = Blueprint("timeline_bp", __name__, url_prefix="/api")


@timeline_bp.get("/orders/<int:order_id>/items/<int:item_id>/timeline")
def timeline(order_id: int, item_id: int):
    role = getattr(g, "auth_role", None)
    subject_id = getattr(g, "auth_subject_id", None)
    if subject_id is None or role not in (ROLE_BUYER, ROLE_SELLER):
        return unauthorized()

    scope = {"buyer_id": int(subject_id)} if role == ROLE_BUYER else {"seller_id": int(subject_id)}
    try:
        order, item = load_item(order_id, item_id, **scope)
    except OrderLifecycleError as e:
        return lifecycle_error_response(e)

    rows = item_timeline(order, item)
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200

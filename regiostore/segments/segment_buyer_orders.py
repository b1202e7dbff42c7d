from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from regiostore.extensions import db
from regiostore.models import Buyer, Order, OrderItem, Product
from regiostore.services.checkout_service import place_order
from regiostore.services.errors import NotFound, OrderLifecycleError
from regiostore.services.order_lifecycle_service import (
    buyer_actions,
    cancel_item,
    load_item,
    parse_version,
    rate_item,
    request_refund,
)
from regiostore.utils.api_errors import auth_failure, lifecycle_error_response
from regiostore.utils.idempotency import lookup_response, release_key, store_response
from regiostore.utils.jwt_utils import ROLE_BUYER
from regiostore.utils.pagination import page_args, page_meta

buyer_orders_bp = Blueprint("buyer_orders_bp", __name__, url_prefix="/api/user")

CHECKOUT_SCOPE = "/api/user/orders"


def _current_buyer() -> Buyer | None:
    if getattr(g, "auth_role", None) != ROLE_BUYER:
        return None
    bid = getattr(g, "auth_subject_id", None)
    if bid is None:
        return None
    return db.session.get(Buyer, int(bid))


def _actor(buyer: Buyer) -> dict:
    return {"type": "buyer", "id": int(buyer.id)}


def _buyer_view(order: Order) -> dict:
    body = order.to_dict()
    for row, item in zip(body["items"], order.items):
        row["actions"] = buyer_actions(item)
    return body


def _item_view(order: Order, item: OrderItem) -> dict:
    product = db.session.get(Product, int(item.product_id))
    row = item.to_dict()
    row["store_name"] = item.store_name or "Unknown Store"
    row["category"] = (product.category if product else "") or "Unknown Type"
    row["actions"] = buyer_actions(item)
    return {
        "id": int(order.id),
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "total_amount": float(order.total_amount or 0.0),
        "payment_status": order.payment_status or "",
        "payment_method": order.payment_method or "",
        "shipping_address": order.shipping_address(),
        "version": int(order.version or 1),
        "item": row,
    }


@buyer_orders_bp.post("/orders")
def create_order():
    buyer = _current_buyer()
    if not buyer:
        return auth_failure(ROLE_BUYER)

    payload = request.get_json(silent=True) or {}
    reservation = lookup_response(int(buyer.id), f"{CHECKOUT_SCOPE}:{int(buyer.id)}", payload)
    if reservation is not None and reservation[0] != "miss":
        _kind, body, code = reservation
        return jsonify(body), code
    key_row = reservation[1] if reservation is not None else None

    try:
        order = place_order(int(buyer.id), payload)
    except OrderLifecycleError as e:
        current_app.logger.info("checkout_rejected buyer_id=%s code=%s", int(buyer.id), e.code)
        resp, status = lifecycle_error_response(e)
        if key_row is not None:
            store_response(key_row, resp.get_json(), status)
        return resp, status
    except Exception:
        if key_row is not None:
            release_key(key_row)
        raise

    body = {"ok": True, "message": "Order placed", "order": _buyer_view(order)}
    if key_row is not None:
        store_response(key_row, body, 201)
    return jsonify(body), 201


@buyer_orders_bp.get("/orders")
def my_orders():
    buyer = _current_buyer()
    if not buyer:
        return auth_failure(ROLE_BUYER)

    limit, offset = page_args()
    q = Order.query.filter_by(buyer_id=int(buyer.id))
    total = q.count()
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset).all()
    body = {"ok": True, "orders": [_buyer_view(o) for o in rows]}
    body.update(page_meta(total, limit, offset, len(rows)))
    return jsonify(body), 200


@buyer_orders_bp.get("/orders/items/<int:item_id>")
def order_item(item_id: int):
    buyer = _current_buyer()
    if not buyer:
        return auth_failure(ROLE_BUYER)

    item = db.session.get(OrderItem, int(item_id))
    if item is None:
        return lifecycle_error_response(NotFound("Order item not found"))
    try:
        order, item = load_item(int(item.order_id), int(item.id), buyer_id=int(buyer.id))
    except OrderLifecycleError as e:
        return lifecycle_error_response(e)
    return jsonify({"ok": True, "order": _item_view(order, item)}), 200


def _mutate(order_id: int, item_id: int, operation, value, message: str):
    buyer = _current_buyer()
    if not buyer:
        return auth_failure(ROLE_BUYER)

    payload = request.get_json(silent=True) or {}
    try:
        expected_version = parse_version(payload.get("version"))
        order, item = load_item(order_id, item_id, buyer_id=int(buyer.id))
        order = operation(
            order,
            item,
            value(payload),
            actor=_actor(buyer),
            expected_version=expected_version,
        )
    except OrderLifecycleError as e:
        current_app.logger.info(
            "buyer_action_rejected action=%s order_id=%s item_id=%s buyer_id=%s code=%s",
            operation.__name__,
            order_id,
            item_id,
            int(buyer.id),
            e.code,
        )
        return lifecycle_error_response(e)
    return jsonify({"ok": True, "message": message, "order": _buyer_view(order)}), 200


@buyer_orders_bp.post("/orders/<int:order_id>/items/<int:item_id>/cancel")
def cancel(order_id: int, item_id: int):
    return _mutate(order_id, item_id, cancel_item, lambda p: p.get("reason"), "Order cancelled successfully")


@buyer_orders_bp.post("/orders/<int:order_id>/items/<int:item_id>/refund")
def refund(order_id: int, item_id: int):
    return _mutate(order_id, item_id, request_refund, lambda p: p.get("reason"), "Refund request submitted successfully")


@buyer_orders_bp.post("/orders/<int:order_id>/items/<int:item_id>/rate")
def rate(order_id: int, item_id: int):
    return _mutate(order_id, item_id, rate_item, lambda p: p.get("rating"), "Rating updated successfully")

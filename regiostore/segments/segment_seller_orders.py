from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from regiostore.extensions import db
from regiostore.models import Order, OrderItem, Seller
from regiostore.services.errors import OrderLifecycleError, ValidationFailed
from regiostore.services.order_lifecycle_service import (
    OrderItemStatus,
    PaymentStatus,
    RefundStatus,
    advance_status,
    load_item,
    parse_version,
    resolve_refund,
    seller_actions,
)
from regiostore.utils.api_errors import auth_failure, lifecycle_error_response
from regiostore.utils.jwt_utils import ROLE_SELLER
from regiostore.utils.pagination import page_args, page_meta

seller_orders_bp = Blueprint("seller_orders_bp", __name__, url_prefix="/api/seller")

REFUNDED_FILTER = "refunded"


def _current_seller() -> Seller | None:
    if getattr(g, "auth_role", None) != ROLE_SELLER:
        return None
    sid = getattr(g, "auth_subject_id", None)
    if sid is None:
        return None
    return db.session.get(Seller, int(sid))


def _actor(seller: Seller) -> dict:
    return {"type": "seller", "id": int(seller.id)}


def _seller_view(order: Order, seller: Seller) -> dict:
    mine = [i for i in order.items if int(i.seller_id) == int(seller.id)]
    body = order.to_dict(items=mine)
    for row, item in zip(body["items"], mine):
        row["actions"] = seller_actions(item)
    return body


def _row(order: Order, item: OrderItem) -> dict:
    return {
        "order_id": int(order.id),
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "item_id": int(item.id),
        "product_name": item.product_name or "",
        "variety_title": item.variety_title or "",
        "option_label": item.option_label or "",
        "price": float(item.price or 0.0),
        "mrp": float(item.mrp or 0.0),
        "image": item.image or "",
        "status": item.status or OrderItemStatus.PLACED,
        "refund_status": item.refund_status or RefundStatus.NOT_APPLICABLE,
        "refund_reason": item.refund_reason or "",
        "refund_rejection_reason": item.refund_rejection_reason or "",
        "payment_method": order.payment_method or "",
        "payment_status": order.payment_status or PaymentStatus.PENDING,
        "version": int(item.version or 1),
        "actions": seller_actions(item),
    }


@seller_orders_bp.get("/orders")
def list_orders():
    seller = _current_seller()
    if not seller:
        return auth_failure(ROLE_SELLER)

    q = (
        db.session.query(OrderItem, Order)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(OrderItem.seller_id == int(seller.id))
    )
    raw_filter = (request.args.get("status") or "").strip()
    try:
        if raw_filter.lower() == REFUNDED_FILTER:
            q = q.filter(OrderItem.refund_status != RefundStatus.NOT_APPLICABLE)
        elif raw_filter:
            q = q.filter(OrderItem.status == OrderItemStatus.parse(raw_filter))
    except ValidationFailed as e:
        return lifecycle_error_response(e)

    limit, offset = page_args()
    total = q.count()
    rows = q.order_by(Order.created_at.desc(), OrderItem.id.desc()).limit(limit).offset(offset).all()
    body = {"ok": True, "orders": [_row(order, item) for item, order in rows]}
    body.update(page_meta(total, limit, offset, len(rows)))
    return jsonify(body), 200


@seller_orders_bp.get("/orders/<int:order_id>/items/<int:item_id>")
def order_detail(order_id: int, item_id: int):
    seller = _current_seller()
    if not seller:
        return auth_failure(ROLE_SELLER)
    try:
        order, item = load_item(order_id, item_id, seller_id=int(seller.id))
    except OrderLifecycleError as e:
        return lifecycle_error_response(e)

    body = order.to_dict(items=[item])
    body["items"][0]["actions"] = seller_actions(item)
    return jsonify({"ok": True, "order": body}), 200


@seller_orders_bp.route("/orders/<int:order_id>/items/<int:item_id>/status", methods=["POST", "PATCH"])
def update_status(order_id: int, item_id: int):
    seller = _current_seller()
    if not seller:
        return auth_failure(ROLE_SELLER)

    payload = request.get_json(silent=True) or {}
    try:
        expected_version = parse_version(payload.get("version"))
        order, item = load_item(order_id, item_id, seller_id=int(seller.id))
        payment_before = order.payment_status
        order = advance_status(
            order,
            item,
            payload.get("status"),
            actor=_actor(seller),
            expected_version=expected_version,
        )
    except OrderLifecycleError as e:
        current_app.logger.info(
            "seller_status_rejected order_id=%s item_id=%s seller_id=%s code=%s",
            order_id,
            item_id,
            int(seller.id),
            e.code,
        )
        return lifecycle_error_response(e)

    message = f"Order status updated to {item.status}"
    if payment_before != order.payment_status and order.payment_status == PaymentStatus.PAID:
        message += " and payment status updated to Paid"
    return jsonify({"ok": True, "message": message, "order": _seller_view(order, seller)}), 200


@seller_orders_bp.patch("/orders/<int:order_id>/items/<int:item_id>/refund")
def handle_refund(order_id: int, item_id: int):
    seller = _current_seller()
    if not seller:
        return auth_failure(ROLE_SELLER)

    payload = request.get_json(silent=True) or {}
    action = payload.get("action")
    rejection_reason = payload.get("rejectionReason", payload.get("rejection_reason"))
    try:
        expected_version = parse_version(payload.get("version"))
        order, item = load_item(order_id, item_id, seller_id=int(seller.id))
        order = resolve_refund(
            order,
            item,
            action,
            rejection_reason,
            actor=_actor(seller),
            expected_version=expected_version,
        )
    except OrderLifecycleError as e:
        current_app.logger.info(
            "seller_refund_rejected order_id=%s item_id=%s seller_id=%s code=%s",
            order_id,
            item_id,
            int(seller.id),
            e.code,
        )
        return lifecycle_error_response(e)

    verb = "approved" if item.refund_status == RefundStatus.APPROVED else "rejected"
    return jsonify({"ok": True, "message": f"Refund {verb} successfully", "order": _seller_view(order, seller)}), 200

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm.exc import StaleDataError

from regiostore.extensions import db
from regiostore.models import Order, OrderItem, OrderItemTransition, Product
from regiostore.services.errors import (
    IllegalTransition,
    NotFound,
    ValidationFailed,
    VersionConflict,
)

logger = logging.getLogger(__name__)

REASON_MAX_LEN = 500


class OrderItemStatus:
    PLACED = "Placed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    ALL = (PLACED, SHIPPED, DELIVERED, CANCELLED)

    # Seller-driven fulfilment; cancellation belongs to the buyer.
    SELLER_NEXT = {
        PLACED: {SHIPPED},
        SHIPPED: {DELIVERED},
        DELIVERED: set(),
        CANCELLED: set(),
    }

    @classmethod
    def parse(cls, raw) -> str:
        return _parse_choice(raw, cls.ALL, "status")


class RefundStatus:
    NOT_APPLICABLE = "Not Applicable"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    ALL = (NOT_APPLICABLE, PENDING, APPROVED, REJECTED)


class RefundAction:
    APPROVE = "approve"
    REJECT = "reject"

    ALL = (APPROVE, REJECT)

    @classmethod
    def parse(cls, raw) -> str:
        value = (raw or "").strip().lower() if isinstance(raw, str) else ""
        if value not in cls.ALL:
            raise ValidationFailed("Invalid action. Must be either approve or reject")
        return value


class PaymentMethod:
    CARD = "Card"
    UPI = "UPI"
    COD = "COD"

    ALL = (CARD, UPI, COD)

    @classmethod
    def parse(cls, raw) -> str:
        return _parse_choice(raw, cls.ALL, "paymentMethod")


class PaymentStatus:
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"

    ALL = (PENDING, PAID, FAILED)


def _parse_choice(raw, choices: tuple[str, ...], field: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationFailed(f"{field} is required")
    wanted = raw.strip().lower()
    for choice in choices:
        if choice.lower() == wanted:
            return choice
    raise ValidationFailed(f"Invalid {field}: {raw.strip()[:40]}")


def _parse_actor(actor) -> tuple[str, int | None]:
    if isinstance(actor, dict):
        actor_type = str(actor.get("type") or "system")
        actor_id_raw = actor.get("id")
        try:
            actor_id = int(actor_id_raw) if actor_id_raw is not None else None
        except (TypeError, ValueError):
            actor_id = None
        return actor_type, actor_id
    return "system", None


def _require_reason(raw, message: str) -> str:
    reason = raw.strip() if isinstance(raw, str) else ""
    if not reason:
        raise ValidationFailed(message)
    return reason[:REASON_MAX_LEN]


def parse_version(raw) -> int | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValidationFailed("version must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed("version must be an integer")


def parse_rating(raw) -> int:
    if isinstance(raw, bool):
        raise ValidationFailed("Rating must be between 1 and 5")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if not isinstance(raw, int) or raw < 1 or raw > 5:
        raise ValidationFailed("Rating must be between 1 and 5")
    return raw


def seller_actions(item: OrderItem) -> list[str]:
    """Actions a seller may take on ``item`` in its current state."""
    actions = []
    status = item.status or OrderItemStatus.PLACED
    if status == OrderItemStatus.PLACED:
        actions.append("ship")
    elif status == OrderItemStatus.SHIPPED:
        actions.append("deliver")
    if (item.refund_status or RefundStatus.NOT_APPLICABLE) == RefundStatus.PENDING:
        actions.extend(["approve_refund", "reject_refund"])
    return actions


def buyer_actions(item: OrderItem) -> list[str]:
    """Actions a buyer may take on ``item`` in its current state."""
    actions = []
    status = item.status or OrderItemStatus.PLACED
    if status == OrderItemStatus.PLACED:
        actions.append("cancel")
    if status == OrderItemStatus.DELIVERED:
        if (item.refund_status or RefundStatus.NOT_APPLICABLE) == RefundStatus.NOT_APPLICABLE:
            actions.append("request_refund")
        if int(item.rating or 0) == 0:
            actions.append("rate")
    return actions


def load_item(order_id: int, item_id: int, *, seller_id: int | None = None, buyer_id: int | None = None) -> tuple[Order, OrderItem]:
    """Fetch an order and one of its items, scoped to the calling party.

    Items outside the caller's reach are reported as missing rather than
    forbidden so ids cannot be enumerated.
    """
    order = db.session.get(Order, int(order_id))
    if order is None:
        raise NotFound("Order or item not found")
    if buyer_id is not None and int(order.buyer_id) != int(buyer_id):
        raise NotFound("Order or item not found")
    item = next((i for i in order.items if int(i.id) == int(item_id)), None)
    if item is None:
        raise NotFound("Order or item not found")
    if seller_id is not None and int(item.seller_id) != int(seller_id):
        raise NotFound("Order or item not found")
    return order, item


def _check_version(item: OrderItem, expected_version: int | None) -> None:
    if expected_version is None:
        return
    if int(item.version or 1) != int(expected_version):
        raise VersionConflict(
            f"Item changed since version {int(expected_version)} (now {int(item.version or 1)})"
        )


def _record(order: Order, item: OrderItem, field: str, from_value: str, to_value: str, actor, reason: str = "") -> None:
    actor_type, actor_id = _parse_actor(actor)
    db.session.add(
        OrderItemTransition(
            order_id=int(order.id),
            item_id=int(item.id),
            field=field,
            from_value=(from_value or "")[:32],
            to_value=(to_value or "")[:32],
            actor_type=actor_type[:32],
            actor_id=actor_id,
            reason=(reason or "")[:REASON_MAX_LEN] or None,
            created_at=datetime.utcnow(),
        )
    )
    logger.info(
        "order_item_transition order_id=%s item_id=%s field=%s %s->%s actor=%s:%s",
        int(order.id),
        int(item.id),
        field,
        from_value,
        to_value,
        actor_type,
        actor_id,
    )


def _commit(order: Order, item: OrderItem) -> None:
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        logger.warning("order_item_version_conflict order_id=%s item_id=%s", int(order.id), int(item.id))
        raise VersionConflict("Item was modified by another request; reload and retry")


def advance_status(order: Order, item: OrderItem, target, *, actor=None, expected_version: int | None = None) -> Order:
    target_status = OrderItemStatus.parse(target)
    _check_version(item, expected_version)

    current = item.status or OrderItemStatus.PLACED
    if target_status not in OrderItemStatus.SELLER_NEXT.get(current, set()):
        raise IllegalTransition(f"Cannot change status from {current} to {target_status}")

    item.status = target_status
    _record(order, item, "status", current, target_status, actor)

    if target_status == OrderItemStatus.DELIVERED and order.payment_method == PaymentMethod.COD:
        previous_payment = order.payment_status or PaymentStatus.PENDING
        if previous_payment != PaymentStatus.PAID:
            order.payment_status = PaymentStatus.PAID
            logger.info(
                "cod_payment_settled order_id=%s item_id=%s %s->%s",
                int(order.id),
                int(item.id),
                previous_payment,
                PaymentStatus.PAID,
            )

    _commit(order, item)
    return order


def cancel_item(order: Order, item: OrderItem, reason, *, actor=None, expected_version: int | None = None) -> Order:
    text = _require_reason(reason, "Cancellation reason is required")
    _check_version(item, expected_version)

    current = item.status or OrderItemStatus.PLACED
    if current != OrderItemStatus.PLACED:
        raise IllegalTransition("Only placed orders can be cancelled")

    item.status = OrderItemStatus.CANCELLED
    item.cancellation_reason = text
    _record(order, item, "status", current, OrderItemStatus.CANCELLED, actor, text)
    _commit(order, item)
    return order


def request_refund(order: Order, item: OrderItem, reason, *, actor=None, expected_version: int | None = None) -> Order:
    text = _require_reason(reason, "Refund reason is required")
    _check_version(item, expected_version)

    if (item.status or OrderItemStatus.PLACED) != OrderItemStatus.DELIVERED:
        raise IllegalTransition("Only delivered orders can be refunded")
    current = item.refund_status or RefundStatus.NOT_APPLICABLE
    if current != RefundStatus.NOT_APPLICABLE:
        raise IllegalTransition(f"Refund already requested for this item ({current})")

    item.refund_status = RefundStatus.PENDING
    item.refund_reason = text
    _record(order, item, "refund_status", current, RefundStatus.PENDING, actor, text)
    _commit(order, item)
    return order


def resolve_refund(
    order: Order,
    item: OrderItem,
    action,
    rejection_reason=None,
    *,
    actor=None,
    expected_version: int | None = None,
) -> Order:
    chosen = RefundAction.parse(action)
    reason = ""
    if chosen == RefundAction.REJECT:
        reason = _require_reason(rejection_reason, "Rejection reason is required")
    _check_version(item, expected_version)

    current = item.refund_status or RefundStatus.NOT_APPLICABLE
    if current != RefundStatus.PENDING:
        raise IllegalTransition("No pending refund request for this item")

    if chosen == RefundAction.APPROVE:
        item.refund_status = RefundStatus.APPROVED
    else:
        item.refund_status = RefundStatus.REJECTED
        item.refund_rejection_reason = reason
    _record(order, item, "refund_status", current, item.refund_status, actor, reason)
    _commit(order, item)
    return order


def _add_product_rating(product_id: int, value: int) -> None:
    """Fold one rating into the product's running average inside the UPDATE itself."""
    (
        Product.query
        .filter(Product.id == int(product_id))
        .update(
            {
                Product.rating: (Product.rating * Product.rating_count + int(value)) / (Product.rating_count + 1),
                Product.rating_count: Product.rating_count + 1,
            },
            synchronize_session=False,
        )
    )


def rate_item(order: Order, item: OrderItem, rating, *, actor=None, expected_version: int | None = None) -> Order:
    value = parse_rating(rating)
    _check_version(item, expected_version)

    if (item.status or OrderItemStatus.PLACED) != OrderItemStatus.DELIVERED:
        raise IllegalTransition("Can only rate delivered items")
    if int(item.rating or 0) > 0:
        raise IllegalTransition("Item has already been rated")

    # Runs before the item is dirtied so the query's autoflush writes nothing.
    _add_product_rating(int(item.product_id), value)
    item.rating = value
    _record(order, item, "rating", "0", str(value), actor)
    _commit(order, item)
    return order


def item_timeline(order: Order, item: OrderItem) -> list[OrderItemTransition]:
    return (
        OrderItemTransition.query
        .filter_by(order_id=int(order.id), item_id=int(item.id))
        .order_by(OrderItemTransition.id.asc())
        .all()
    )

from __future__ import annotations

import logging
from datetime import datetime

from regiostore.extensions import db
from regiostore.models import Order, OrderItem, Product, ProductOption, Seller
from regiostore.services.errors import NotFound, OutOfStock, ValidationFailed
from regiostore.services.order_lifecycle_service import (
    OrderItemStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = (
    ("label", "label"),
    ("lane", "lane"),
    ("city", "city"),
    ("state", "state"),
    ("pinCode", "pin_code"),
)

MAX_ITEMS_PER_ORDER = 50


def _as_id(raw, field: str) -> int:
    if isinstance(raw, bool):
        raise ValidationFailed(f"{field} must be an id")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be an id")
    if value <= 0:
        raise ValidationFailed(f"{field} must be an id")
    return value


def parse_shipping_address(raw) -> dict:
    if not isinstance(raw, dict):
        raise ValidationFailed("shippingAddress is required")
    out = {}
    for wire_name, column in ADDRESS_FIELDS:
        value = raw.get(wire_name)
        if value is None and wire_name != column:
            value = raw.get(column)
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            raise ValidationFailed(f"shippingAddress.{wire_name} is required")
        out[column] = value
    return out


def parse_line_items(raw) -> list[dict]:
    if not isinstance(raw, list) or not raw:
        raise ValidationFailed("items must be a non-empty list")
    if len(raw) > MAX_ITEMS_PER_ORDER:
        raise ValidationFailed(f"At most {MAX_ITEMS_PER_ORDER} items per order")
    lines = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationFailed("Each item must be an object")
        lines.append(
            {
                "product_id": _as_id(entry.get("productId", entry.get("product_id")), "productId"),
                "variety_id": _as_id(entry.get("varietyId", entry.get("variety_id")), "varietyId"),
                "option_id": _as_id(entry.get("optionId", entry.get("option_id")), "optionId"),
            }
        )
    return lines


def _resolve_line(line: dict):
    product = db.session.get(Product, line["product_id"])
    if product is None or not bool(product.is_active):
        raise NotFound(f"Product not found: {line['product_id']}")
    variety = next((v for v in product.varieties if int(v.id) == line["variety_id"]), None)
    if variety is None:
        raise NotFound(f"Variety not found for product: {line['product_id']}")
    option = next((o for o in variety.options if int(o.id) == line["option_id"]), None)
    if option is None:
        raise NotFound(f"Option not found for variety: {line['variety_id']}")
    return product, variety, option


def _take_stock(option_id: int) -> bool:
    updated = (
        ProductOption.query
        .filter(ProductOption.id == int(option_id), ProductOption.quantity >= 1)
        .update({ProductOption.quantity: ProductOption.quantity - 1}, synchronize_session=False)
    )
    return int(updated or 0) == 1


def place_order(buyer_id: int, payload: dict) -> Order:
    """Create an order from a checkout payload in a single transaction.

    Product data is snapshotted onto each item and one unit of stock is taken
    per item. Nothing is written if any line fails to resolve.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid payload")
    lines = parse_line_items(payload.get("items"))
    address = parse_shipping_address(payload.get("shippingAddress", payload.get("shipping_address")))
    method = PaymentMethod.parse(payload.get("paymentMethod", payload.get("payment_method")))

    order = Order(
        buyer_id=int(buyer_id),
        shipping_label=address["label"],
        shipping_lane=address["lane"],
        shipping_city=address["city"],
        shipping_state=address["state"],
        shipping_pin_code=address["pin_code"],
        payment_method=method,
        payment_status=PaymentStatus.PENDING if method == PaymentMethod.COD else PaymentStatus.PAID,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )

    total = 0.0
    store_names: dict[int, str] = {}
    try:
        for line in lines:
            product, variety, option = _resolve_line(line)
            if not _take_stock(int(option.id)):
                raise OutOfStock(f"Product out of stock: {int(product.id)}")
            seller_id = int(product.seller_id)
            if seller_id not in store_names:
                seller = db.session.get(Seller, seller_id)
                store_names[seller_id] = (seller.store_name if seller else "") or ""
            order.items.append(
                OrderItem(
                    product_id=int(product.id),
                    seller_id=seller_id,
                    variety_id=int(variety.id),
                    option_id=int(option.id),
                    product_name=product.product_name or "",
                    variety_title=variety.title or "",
                    option_label=option.label or "",
                    price=float(option.price or 0.0),
                    mrp=float(option.mrp or 0.0),
                    image=variety.image_url or None,
                    store_name=store_names[seller_id],
                    status=OrderItemStatus.PLACED,
                    refund_status=RefundStatus.NOT_APPLICABLE,
                    rating=0,
                )
            )
            total += float(option.price or 0.0)

        order.total_amount = round(total, 2)
        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "order_placed order_id=%s buyer_id=%s items=%s total=%.2f payment_method=%s",
        int(order.id),
        int(buyer_id),
        len(lines),
        float(order.total_amount or 0.0),
        method,
    )
    return order

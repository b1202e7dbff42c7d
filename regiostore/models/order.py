from datetime import datetime

from regiostore.extensions import db


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("buyers.id"), nullable=False, index=True)

    # Shipping address snapshot taken at checkout.
    shipping_label = db.Column(db.String(64), nullable=False)
    shipping_lane = db.Column(db.String(255), nullable=False)
    shipping_city = db.Column(db.String(64), nullable=False)
    shipping_state = db.Column(db.String(64), nullable=False)
    shipping_pin_code = db.Column(db.String(12), nullable=False)

    payment_method = db.Column(db.String(8), nullable=False)  # Card | UPI | COD
    payment_status = db.Column(db.String(16), nullable=False, default="Pending")  # Pending | Paid | Failed

    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __mapper_args__ = {"version_id_col": version}

    def shipping_address(self) -> dict:
        return {
            "label": self.shipping_label or "",
            "lane": self.shipping_lane or "",
            "city": self.shipping_city or "",
            "state": self.shipping_state or "",
            "pin_code": self.shipping_pin_code or "",
        }

    def to_dict(self, *, items=None):
        rows = self.items if items is None else items
        return {
            "id": int(self.id),
            "buyer_id": int(self.buyer_id),
            "shipping_address": self.shipping_address(),
            "payment_method": self.payment_method or "",
            "payment_status": self.payment_status or "Pending",
            "total_amount": float(self.total_amount or 0.0),
            "version": int(self.version or 1),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "items": [i.to_dict() for i in rows],
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False, index=True)
    variety_id = db.Column(db.Integer, nullable=False)
    option_id = db.Column(db.Integer, nullable=False)

    # Display snapshot; catalog edits after checkout do not touch these.
    product_name = db.Column(db.String(160), nullable=False, default="")
    variety_title = db.Column(db.String(120), nullable=False, default="")
    option_label = db.Column(db.String(64), nullable=False, default="")
    price = db.Column(db.Float, nullable=False, default=0.0)
    mrp = db.Column(db.Float, nullable=False, default=0.0)
    image = db.Column(db.String(1024), nullable=True)
    store_name = db.Column(db.String(160), nullable=False, default="")

    status = db.Column(db.String(16), nullable=False, default="Placed", index=True)  # Placed | Shipped | Delivered | Cancelled
    cancellation_reason = db.Column(db.String(500), nullable=True)

    refund_status = db.Column(db.String(16), nullable=False, default="Not Applicable")  # Not Applicable | Pending | Approved | Rejected
    refund_reason = db.Column(db.String(500), nullable=True)
    refund_rejection_reason = db.Column(db.String(500), nullable=True)

    rating = db.Column(db.Integer, nullable=False, default=0)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        return {
            "id": int(self.id),
            "order_id": int(self.order_id),
            "product_id": int(self.product_id),
            "seller_id": int(self.seller_id),
            "variety_id": int(self.variety_id),
            "option_id": int(self.option_id),
            "product_name": self.product_name or "",
            "variety_title": self.variety_title or "",
            "option_label": self.option_label or "",
            "price": float(self.price or 0.0),
            "mrp": float(self.mrp or 0.0),
            "image": self.image or "",
            "store_name": self.store_name or "",
            "status": self.status or "Placed",
            "cancellation_reason": self.cancellation_reason or "",
            "refund_status": self.refund_status or "Not Applicable",
            "refund_reason": self.refund_reason or "",
            "refund_rejection_reason": self.refund_rejection_reason or "",
            "rating": int(self.rating or 0),
            "version": int(self.version or 1),
        }

from datetime import datetime

from regiostore.extensions import db


class OrderItemTransition(db.Model):
    __tablename__ = "order_item_transitions"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, nullable=False, index=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    field = db.Column(db.String(32), nullable=False)  # status | refund_status | rating
    from_value = db.Column(db.String(32), nullable=False, default="")
    to_value = db.Column(db.String(32), nullable=False)
    actor_type = db.Column(db.String(32), nullable=False, default="system")
    actor_id = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "order_id": int(self.order_id),
            "item_id": int(self.item_id),
            "field": self.field or "",
            "from": self.from_value or "",
            "to": self.to_value or "",
            "actor_type": self.actor_type or "",
            "actor_id": int(self.actor_id) if self.actor_id is not None else None,
            "reason": self.reason or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

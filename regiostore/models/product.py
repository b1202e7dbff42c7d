from datetime import datetime

import sqlalchemy as sa

from regiostore.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False, index=True)

    product_name = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=False, default="Clothing")  # Clothing | Accessories | Foods | HandiCrafts

    # Running average of item ratings.
    rating = db.Column(db.Float, nullable=False, default=0.0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=sa.text("true"))

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    varieties = db.relationship(
        "ProductVariety",
        backref="product",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ProductVariety.id",
    )

    def to_dict(self):
        return {
            "id": int(self.id),
            "seller_id": int(self.seller_id),
            "product_name": self.product_name or "",
            "description": self.description or "",
            "category": self.category or "",
            "rating": round(float(self.rating or 0.0), 2),
            "rating_count": int(self.rating_count or 0),
            "is_active": bool(self.is_active),
            "varieties": [v.to_dict() for v in self.varieties],
        }


class ProductVariety(db.Model):
    __tablename__ = "product_varieties"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    title = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)

    options = db.relationship(
        "ProductOption",
        backref="variety",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ProductOption.id",
    )

    def to_dict(self):
        return {
            "id": int(self.id),
            "title": self.title or "",
            "image_url": self.image_url or "",
            "options": [o.to_dict() for o in self.options],
        }


class ProductOption(db.Model):
    __tablename__ = "product_options"

    id = db.Column(db.Integer, primary_key=True)
    variety_id = db.Column(db.Integer, db.ForeignKey("product_varieties.id"), nullable=False, index=True)

    label = db.Column(db.String(64), nullable=False)  # S, M, L, 500g ...
    price = db.Column(db.Float, nullable=False, default=0.0)
    mrp = db.Column(db.Float, nullable=False, default=0.0)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": int(self.id),
            "label": self.label or "",
            "price": float(self.price or 0.0),
            "mrp": float(self.mrp or 0.0),
            "quantity": int(self.quantity or 0),
        }

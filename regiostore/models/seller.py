from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from regiostore.extensions import db


class Seller(db.Model):
    __tablename__ = "sellers"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    fullname = db.Column(db.String(120), nullable=False, default="")
    phone = db.Column(db.String(32), unique=True, index=True, nullable=False)

    store_name = db.Column(db.String(160), nullable=False)
    store_address = db.Column(db.String(255), nullable=True)
    pincode = db.Column(db.String(12), nullable=False)
    state = db.Column(db.String(64), nullable=False)
    city = db.Column(db.String(64), nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password_hash(self.password_hash, raw_password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "fullname": self.fullname or "",
            "phone": self.phone,
            "store_name": self.store_name or "",
            "store_address": self.store_address or "",
            "pincode": self.pincode or "",
            "state": self.state or "",
            "city": self.city or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

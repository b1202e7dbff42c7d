from datetime import datetime

from regiostore.extensions import db


class Buyer(db.Model):
    __tablename__ = "buyers"

    id = db.Column(db.Integer, primary_key=True)

    # Subject id issued by the external identity provider.
    uid = db.Column(db.String(128), unique=True, index=True, nullable=False)

    name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "uid": self.uid,
            "name": self.name or "",
            "email": self.email,
            "phone": self.phone or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

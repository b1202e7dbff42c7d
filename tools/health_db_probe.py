import sys

from sqlalchemy import func, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

from regiostore import create_app
from regiostore.extensions import db
from regiostore.models import OrderItem


def _safe_uri(uri: str) -> str:
    if not uri:
        return "unknown"
    try:
        return make_url(uri).render_as_string(hide_password=True)
    except Exception:
        return "unknown"


def main() -> int:
    app = create_app()
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
        print("SQLALCHEMY_DATABASE_URI:", _safe_uri(uri))
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            print("SELECT 1: success")
        except SQLAlchemyError as e:
            print("SELECT 1: fail")
            msg = str(e)
            if msg:
                msg = (msg[:300] + "...") if len(msg) > 300 else msg
                print("error:", msg)
            return 1

        try:
            rows = (
                db.session.query(OrderItem.status, OrderItem.refund_status, func.count(OrderItem.id))
                .group_by(OrderItem.status, OrderItem.refund_status)
                .order_by(OrderItem.status)
                .all()
            )
        except SQLAlchemyError as e:
            print("order_items: unavailable", str(e)[:120])
            return 1
        for status, refund_status, count in rows:
            print(f"order_items status={status} refund_status={refund_status} count={int(count)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

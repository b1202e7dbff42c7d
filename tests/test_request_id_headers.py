from __future__ import annotations

import os
import time
import unittest
import uuid

from regiostore import create_app
from regiostore.extensions import db
from regiostore.models import Buyer, Seller
from regiostore.utils.jwt_utils import ROLE_BUYER, ROLE_SELLER, create_access_token


class OrderRoutesRequestIdTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
            suffix = time.time_ns()
            seller = Seller(
                email=f"seller-{suffix}@regiostore.test",
                fullname="Trace Seller",
                phone=f"6{suffix % 10**9:09d}",
                store_name="Mysore Silks",
                pincode="570001",
                state="Karnataka",
                city="Mysuru",
            )
            seller.set_password("Passw0rd!")
            buyer = Buyer(uid=f"uid-{suffix}", name="Trace Buyer", email=f"buyer-{suffix}@regiostore.test")
            db.session.add_all([seller, buyer])
            db.session.commit()
            cls.seller_id = int(seller.id)
            cls.buyer_id = int(buyer.id)
        cls.client = cls.app.test_client()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_uri is None:
            os.environ.pop("SQLALCHEMY_DATABASE_URI", None)
        else:
            os.environ["SQLALCHEMY_DATABASE_URI"] = cls._prev_db_uri

    def _auth(self, subject_id: int, role: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(subject_id, role)}"}

    def _assert_traced_error(self, res, status: int, code: str) -> str:
        self.assertEqual(res.status_code, status)
        rid = (res.headers.get("X-Request-Id") or "").strip()
        self.assertTrue(rid)
        body = res.get_json(force=True)
        self.assertFalse(body["ok"])
        self.assertEqual(body["error"], code)
        self.assertEqual(body.get("trace_id"), rid)
        return rid

    def test_buyer_order_list_gets_a_generated_request_id(self):
        res = self.client.get("/api/user/orders", headers=self._auth(self.buyer_id, ROLE_BUYER))
        self.assertEqual(res.status_code, 200)
        self.assertNotIn("trace_id", res.get_json())
        uuid.UUID((res.headers.get("X-Request-Id") or "").strip())

    def test_incoming_request_id_is_echoed_on_order_routes(self):
        res = self.client.get(
            "/api/seller/orders",
            headers={**self._auth(self.seller_id, ROLE_SELLER), "X-Request-Id": "checkout-trace-42"},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers.get("X-Request-Id"), "checkout-trace-42")

        res = self.client.post(
            "/api/user/orders/999999/items/1/cancel",
            json={"reason": "Wrong size"},
            headers={**self._auth(self.buyer_id, ROLE_BUYER), "X-Request-Id": "cancel-trace-7"},
        )
        rid = self._assert_traced_error(res, 404, "NOT_FOUND")
        self.assertEqual(rid, "cancel-trace-7")

    def test_status_change_without_token_carries_trace_id(self):
        res = self.client.patch("/api/seller/orders/1/items/1/status", json={"status": "Shipped"})
        rid = self._assert_traced_error(res, 401, "UNAUTHORIZED")
        uuid.UUID(rid)

    def test_wrong_role_carries_trace_id(self):
        res = self.client.get("/api/seller/orders", headers=self._auth(self.buyer_id, ROLE_BUYER))
        self._assert_traced_error(res, 403, "FORBIDDEN")

    def test_bad_status_filter_carries_trace_id(self):
        res = self.client.get("/api/seller/orders?status=misplaced", headers=self._auth(self.seller_id, ROLE_SELLER))
        self._assert_traced_error(res, 400, "VALIDATION_FAILED")

    def test_timeline_without_token_carries_trace_id(self):
        res = self.client.get("/api/orders/1/items/1/timeline")
        self._assert_traced_error(res, 401, "UNAUTHORIZED")

    def test_unknown_api_route_carries_trace_id(self):
        res = self.client.get("/api/user/orders/items/not-a-number", headers={"X-Request-Id": "route-trace-1"})
        rid = self._assert_traced_error(res, 404, "Not Found")
        self.assertEqual(rid, "route-trace-1")


if __name__ == "__main__":
    unittest.main()

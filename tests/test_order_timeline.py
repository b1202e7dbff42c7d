from __future__ import annotations

import os
import time
import unittest

from regiostore import create_app
from regiostore.extensions import db
from regiostore.models import Buyer, Product, ProductOption, ProductVariety, Seller
from regiostore.services.checkout_service import place_order
from regiostore.utils.jwt_utils import ROLE_BUYER, ROLE_SELLER, create_access_token


class OrderTimelineTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.client = cls.app.test_client()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_uri is None:
            os.environ.pop("SQLALCHEMY_DATABASE_URI", None)
        else:
            os.environ["SQLALCHEMY_DATABASE_URI"] = cls._prev_db_uri

    def _seed(self) -> dict:
        suffix = time.time_ns()
        with self.app.app_context():
            seller = Seller(
                email=f"seller-{suffix}@regiostore.test",
                fullname="Timeline Seller",
                phone=f"6{suffix % 10**9:09d}",
                store_name="Channapatna Toys",
                pincode="562160",
                state="Karnataka",
                city="Channapatna",
            )
            seller.set_password("Passw0rd!")
            buyer = Buyer(uid=f"uid-{suffix}", name="Timeline Buyer", email=f"buyer-{suffix}@regiostore.test")
            db.session.add_all([seller, buyer])
            db.session.flush()
            product = Product(seller_id=int(seller.id), product_name="Lacquer Horse", category="HandiCrafts")
            variety = ProductVariety(title="Natural")
            variety.options.append(ProductOption(label="Small", price=240.0, mrp=300.0, quantity=3))
            product.varieties.append(variety)
            db.session.add(product)
            db.session.commit()

            order = place_order(
                int(buyer.id),
                {
                    "items": [{"productId": int(product.id), "varietyId": int(variety.id), "optionId": int(variety.options[0].id)}],
                    "shippingAddress": {"label": "Home", "lane": "2 Toy Street", "city": "Mysuru", "state": "Karnataka", "pinCode": "570001"},
                    "paymentMethod": "UPI",
                },
            )
            return {
                "order_id": int(order.id),
                "item_id": int(order.items[0].id),
                "seller_id": int(seller.id),
                "buyer_id": int(buyer.id),
            }

    def _url(self, ids: dict) -> str:
        return f"/api/orders/{ids['order_id']}/items/{ids['item_id']}/timeline"

    def test_timeline_lists_changes_for_both_parties(self):
        ids = self._seed()
        seller_headers = {"Authorization": f"Bearer {create_access_token(ids['seller_id'], ROLE_SELLER)}"}
        buyer_headers = {"Authorization": f"Bearer {create_access_token(ids['buyer_id'], ROLE_BUYER)}"}
        base = f"/api/seller/orders/{ids['order_id']}/items/{ids['item_id']}/status"
        for target in ("Shipped", "Delivered"):
            res = self.client.patch(base, json={"status": target}, headers=seller_headers)
            self.assertEqual(res.status_code, 200)

        for headers in (seller_headers, buyer_headers):
            res = self.client.get(self._url(ids), headers=headers)
            self.assertEqual(res.status_code, 200)
            rows = res.get_json()["items"]
            self.assertEqual([(r["from"], r["to"]) for r in rows], [("Placed", "Shipped"), ("Shipped", "Delivered")])
            self.assertEqual({r["actor_type"] for r in rows}, {"seller"})
            self.assertEqual({r["actor_id"] for r in rows}, {ids["seller_id"]})

    def test_timeline_is_scoped(self):
        ids = self._seed()
        stranger = self._seed()
        res = self.client.get(self._url(ids))
        self.assertEqual(res.status_code, 401)

        res = self.client.get(
            self._url(ids),
            headers={"Authorization": f"Bearer {create_access_token(stranger['buyer_id'], ROLE_BUYER)}"},
        )
        self.assertEqual(res.status_code, 404)

        res = self.client.get(
            self._url(ids),
            headers={"Authorization": f"Bearer {create_access_token(stranger['seller_id'], ROLE_SELLER)}"},
        )
        self.assertEqual(res.status_code, 404)

        res = self.client.get(
            self._url(ids),
            headers={"Authorization": f"Bearer {create_access_token(ids['buyer_id'], ROLE_BUYER)}"},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["items"], [])


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import os
import shutil
import tempfile
import time
import unittest

from regiostore import create_app
from regiostore.extensions import db
from regiostore.models import Buyer, Product, ProductOption, ProductVariety, Seller
from regiostore.services.checkout_service import place_order
from regiostore.services.order_lifecycle_service import advance_status, load_item, rate_item


class ProductRatingAverageTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Separate connections per session need a file-backed database.
        cls._tmpdir = tempfile.mkdtemp(prefix="regiostore-ratings-")
        cls._prev_db_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(cls._tmpdir, 'ratings.db')}"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            db.engine.dispose()
        shutil.rmtree(cls._tmpdir, ignore_errors=True)
        if cls._prev_db_uri is None:
            os.environ.pop("SQLALCHEMY_DATABASE_URI", None)
        else:
            os.environ["SQLALCHEMY_DATABASE_URI"] = cls._prev_db_uri

    def _delivered_items(self, count: int) -> tuple[int, list[tuple[int, int]]]:
        """One product bought and delivered ``count`` times by different buyers."""
        with self.app.app_context():
            suffix = time.time_ns()
            seller = Seller(
                email=f"seller-{suffix}@regiostore.test",
                fullname="Rating Seller",
                phone=f"9{suffix % 10**9:09d}",
                store_name="Kashmir Looms",
                pincode="190001",
                state="Jammu and Kashmir",
                city="Srinagar",
            )
            seller.set_password("Passw0rd!")
            db.session.add(seller)
            db.session.flush()
            product = Product(seller_id=int(seller.id), product_name="Pashmina Shawl", category="Clothing")
            variety = ProductVariety(title="Ivory")
            variety.options.append(ProductOption(label="Standard", price=4200.0, mrp=5000.0, quantity=count))
            product.varieties.append(variety)
            db.session.add(product)
            db.session.commit()
            line = {"productId": int(product.id), "varietyId": int(variety.id), "optionId": int(variety.options[0].id)}

            items = []
            for n in range(count):
                buyer = Buyer(uid=f"uid-{suffix}-{n}", name="Rating Buyer", email=f"buyer-{suffix}-{n}@regiostore.test")
                db.session.add(buyer)
                db.session.commit()
                order = place_order(
                    int(buyer.id),
                    {
                        "items": [line],
                        "shippingAddress": {"label": "Home", "lane": "3 Dal Gate", "city": "Srinagar", "state": "Jammu and Kashmir", "pinCode": "190001"},
                        "paymentMethod": "Card",
                    },
                )
                oid, iid = int(order.id), int(order.items[0].id)
                for target in ("Shipped", "Delivered"):
                    o, i = load_item(oid, iid)
                    advance_status(o, i, target)
                items.append((oid, iid))
            return int(product.id), items

    def _product(self, product_id: int) -> Product:
        with self.app.app_context():
            product = db.session.get(Product, product_id)
            db.session.expunge(product)
            return product

    def test_first_rating_becomes_the_average(self):
        pid, items = self._delivered_items(1)
        with self.app.app_context():
            order, item = load_item(*items[0])
            rate_item(order, item, 5)
        product = self._product(pid)
        self.assertAlmostEqual(product.rating, 5.0)
        self.assertEqual(product.rating_count, 1)

    def test_running_average_over_several_ratings(self):
        pid, items = self._delivered_items(4)
        with self.app.app_context():
            for (oid, iid), value in zip(items, (5, 4, 3, 4)):
                order, item = load_item(oid, iid)
                rate_item(order, item, value)
        product = self._product(pid)
        self.assertAlmostEqual(product.rating, 4.0)
        self.assertEqual(product.rating_count, 4)
        self.assertEqual(product.to_dict()["rating"], 4.0)

    def test_rating_committed_by_another_session_is_kept(self):
        pid, items = self._delivered_items(2)
        with self.app.app_context():
            order, item = load_item(*items[0])
            stale = db.session.get(Product, pid)
            self.assertEqual(int(stale.rating_count), 0)

            # A second app context gets its own session and connection.
            with self.app.app_context():
                other_order, other_item = load_item(*items[1])
                rate_item(other_order, other_item, 5)

            rate_item(order, item, 3)

        product = self._product(pid)
        self.assertEqual(product.rating_count, 2)
        self.assertAlmostEqual(product.rating, 4.0)


if __name__ == "__main__":
    unittest.main()

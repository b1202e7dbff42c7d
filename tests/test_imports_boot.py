from __future__ import annotations

import importlib
import unittest


class ImportsBootTestCase(unittest.TestCase):
    def test_import_create_app(self):
        module = importlib.import_module("regiostore")
        create_app = getattr(module, "create_app", None)
        self.assertTrue(callable(create_app))

    def test_import_main_app(self):
        module = importlib.import_module("main")
        app = getattr(module, "app", None)
        self.assertIsNotNone(app)

    def test_import_order_segments(self):
        for name in (
            "regiostore.segments.segment_seller_auth",
            "regiostore.segments.segment_seller_orders",
            "regiostore.segments.segment_buyer_orders",
            "regiostore.segments.segment_order_timeline",
        ):
            self.assertIsNotNone(importlib.import_module(name))

    def test_import_orders_client(self):
        module = importlib.import_module("regiostore.client")
        self.assertTrue(callable(getattr(module, "BuyerOrdersClient", None)))


if __name__ == "__main__":
    unittest.main()

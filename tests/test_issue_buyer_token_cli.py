from __future__ import annotations

import os
import time
import unittest
from unittest.mock import patch

from regiostore import create_app
from regiostore.extensions import db
from regiostore.utils.jwt_utils import ROLE_BUYER, decode_token


class IssueBuyerTokenCliTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.runner = cls.app.test_cli_runner()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_uri is None:
            os.environ.pop("SQLALCHEMY_DATABASE_URI", None)
        else:
            os.environ["SQLALCHEMY_DATABASE_URI"] = cls._prev_db_uri

    def test_creates_buyer_once_and_prints_token(self):
        email = f"cli-{time.time_ns()}@regiostore.test"
        first = self.runner.invoke(args=["issue-buyer-token", "--email", email, "--name", "Asha"])
        self.assertEqual(first.exit_code, 0, first.output)
        lines = first.output.strip().splitlines()
        self.assertTrue(lines[0].startswith("buyer_created id="))
        claims = decode_token(lines[-1])
        self.assertEqual(claims["role"], ROLE_BUYER)

        second = self.runner.invoke(args=["issue-buyer-token", "--email", email.upper()])
        self.assertEqual(second.exit_code, 0, second.output)
        lines_again = second.output.strip().splitlines()
        self.assertEqual(len(lines_again), 1)
        self.assertEqual(decode_token(lines_again[0])["sub"], claims["sub"])

    def test_refused_in_production(self):
        with patch.dict(os.environ, {"REGIOSTORE_ENV": "production"}):
            res = self.runner.invoke(args=["issue-buyer-token", "--email", "prod@regiostore.test"])
        self.assertNotEqual(res.exit_code, 0)
        self.assertIn("identity provider", res.output)


if __name__ == "__main__":
    unittest.main()

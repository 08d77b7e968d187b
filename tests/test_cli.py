import unittest

import manage_cli
from app.models import Admin, CaseType
from tests.base import ApiTestCase


class ManageCliTestCase(ApiTestCase):
    def test_create_admin_then_reset_password(self):
        self.assertEqual(manage_cli.create_admin("ops@example.com", "first-pass"), 0)
        self.assertEqual(manage_cli.create_admin("ops@example.com", "second-pass"), 0)
        self.assertEqual(self.db.query(Admin).filter(Admin.email == "ops@example.com").count(), 1)

        resp = self.client.post("/api/auth/login", json={"email": "ops@example.com", "password": "second-pass"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "admin")

    def test_create_admin_rejections(self):
        self.register_lawyer(email="lawyer@example.com")
        self.assertEqual(manage_cli.create_admin("lawyer@example.com", "secret123"), 1)
        self.assertEqual(manage_cli.create_admin("ops@example.com", "123"), 1)

    def test_seed_types_is_idempotent(self):
        count = self.db.query(CaseType).count()
        self.assertEqual(manage_cli.seed_types(), 0)
        self.assertEqual(manage_cli.seed_types(force=True), 0)
        self.assertEqual(self.db.query(CaseType).count(), count)


if __name__ == "__main__":
    unittest.main()

import unittest
from datetime import datetime, timedelta

from app.models import PasswordResetCode
from tests.base import ApiTestCase


class AuthTestCase(ApiTestCase):
    def test_register_returns_token_and_profile(self):
        lawyer, headers = self.register_lawyer(email="karim@example.com")
        self.assertEqual(lawyer["email"], "karim@example.com")
        self.assertNotIn("password_hash", lawyer)

        resp = self.client.get("/api/avocats/me", headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], lawyer["id"])

    def test_register_duplicate_email(self):
        self.register_lawyer(email="dup@example.com")
        resp = self.client.post("/api/auth/register", json={
            "nom": "B",
            "prenom": "C",
            "email": "dup@example.com",
            "password": "secret123",
            "telephone": "0600000001",
            "adresse": "Fes",
            "ville": "Fes",
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Email already registered")

    def test_login(self):
        self.register_lawyer(email="login@example.com", password="secret123")

        resp = self.client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "avocat")
        self.assertTrue(resp.json()["access_token"])

        resp = self.client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-pass"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Invalid credentials")

    def test_missing_token_is_rejected(self):
        resp = self.client.get("/api/clients/")
        self.assertEqual(resp.status_code, 401)

    def test_role_checks(self):
        _, lawyer_headers = self.register_lawyer()
        admin_headers = self.admin_headers()

        self.assertEqual(self.client.get("/api/clients/", headers=admin_headers).status_code, 403)
        self.assertEqual(self.client.get("/api/admin/stats", headers=lawyer_headers).status_code, 403)
        self.assertEqual(self.client.get("/api/admin/stats", headers=admin_headers).status_code, 200)

    def test_validation_errors_are_400(self):
        resp = self.client.post("/api/auth/register", json={"nom": "Only"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("email", resp.json()["detail"])


class PasswordResetTestCase(ApiTestCase):
    def test_forgot_password_unknown_email(self):
        resp = self.client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.mailer.sent, [])

    def test_reset_flow(self):
        self.register_lawyer(email="reset@example.com", password="oldpass1")

        resp = self.client.post("/api/auth/forgot-password", json={"email": "reset@example.com"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(self.mailer.sent), 1)
        self.assertEqual(self.mailer.sent[0]["to"], "reset@example.com")

        code = self.db.query(PasswordResetCode).filter(PasswordResetCode.email == "reset@example.com").one().code
        self.assertEqual(len(code), 6)
        self.assertIn(code, self.mailer.sent[0]["html"])

        resp = self.client.post("/api/auth/reset-password", json={
            "email": "reset@example.com", "otp": code, "new_password": "newpass1",
        })
        self.assertEqual(resp.status_code, 200)

        resp = self.client.post("/api/auth/login", json={"email": "reset@example.com", "password": "newpass1"})
        self.assertEqual(resp.status_code, 200)

        # The code is single use.
        resp = self.client.post("/api/auth/reset-password", json={
            "email": "reset@example.com", "otp": code, "new_password": "another1",
        })
        self.assertEqual(resp.status_code, 400)

    def test_expired_code_is_rejected(self):
        self.register_lawyer(email="late@example.com")
        self.client.post("/api/auth/forgot-password", json={"email": "late@example.com"})

        reset = self.db.query(PasswordResetCode).filter(PasswordResetCode.email == "late@example.com").one()
        reset.expires_at = datetime.utcnow() - timedelta(minutes=1)
        self.db.commit()

        resp = self.client.post("/api/auth/reset-password", json={
            "email": "late@example.com", "otp": reset.code, "new_password": "newpass1",
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Invalid or expired code")

    def test_new_request_replaces_previous_code(self):
        self.register_lawyer(email="twice@example.com")
        self.client.post("/api/auth/forgot-password", json={"email": "twice@example.com"})
        self.client.post("/api/auth/forgot-password", json={"email": "twice@example.com"})

        rows = self.db.query(PasswordResetCode).filter(PasswordResetCode.email == "twice@example.com").all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(len(self.mailer.sent), 2)


if __name__ == "__main__":
    unittest.main()

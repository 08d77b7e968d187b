import unittest

from app.config import ACTIVITY_LOG_RETENTION
from app.models import ActivityLog, ContactMessage
from app.services.activity import log_activity
from tests.base import ApiTestCase


def lawyer_form(email, **extra):
    form = {
        "nom": "Bennani",
        "prenom": "Salma",
        "email": email,
        "password": "secret123",
        "telephone": "0622222222",
        "adresse": "Agdal",
        "ville": "Rabat",
    }
    form.update(extra)
    return form


class ActivityLogTestCase(ApiTestCase):
    def test_retention_keeps_most_recent_entries(self):
        for index in range(ACTIVITY_LOG_RETENTION + 3):
            log_activity(self.db, "إنشاء رسالة", f"entry {index}")

        self.assertEqual(self.db.query(ActivityLog).count(), ACTIVITY_LOG_RETENTION)
        kept = [entry.details for entry in self.db.query(ActivityLog).order_by(ActivityLog.created_at.desc())]
        self.assertEqual(kept[0], f"entry {ACTIVITY_LOG_RETENTION + 2}")
        self.assertNotIn("entry 0", kept)

    def test_activity_feed_endpoint(self):
        headers = self.admin_headers()
        for index in range(ACTIVITY_LOG_RETENTION + 2):
            resp = self.client.post("/api/admin/messages", json={
                "name": f"Visitor {index}",
                "email": f"visitor{index}@example.com",
                "message": "Bonjour",
            })
            self.assertEqual(resp.status_code, 201)

        resp = self.client.get("/api/admin/activity-logs", headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), ACTIVITY_LOG_RETENTION)
        self.assertEqual(resp.json()[0]["action"], "إنشاء رسالة")


class AdminLawyerTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()

    def test_lawyer_crud(self):
        resp = self.client.post("/api/admin/avocats", data=lawyer_form("salma@example.com"), headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        lawyer = resp.json()["data"]

        resp = self.client.get("/api/admin/avocats?page=1&limit=5", headers=self.headers)
        self.assertEqual(resp.json()["total"], 1)
        self.assertEqual(resp.json()["pages"], 1)

        resp = self.client.put(
            f"/api/admin/avocats/{lawyer['id']}",
            data={"ville": "Tanger", "nom": ""},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["data"]["ville"], "Tanger")
        self.assertEqual(resp.json()["data"]["nom"], "Bennani")

        resp = self.client.delete(f"/api/admin/avocats/{lawyer['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.get(f"/api/admin/avocats/{lawyer['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

        actions = [entry["action"] for entry in self.client.get("/api/admin/activity-logs", headers=self.headers).json()]
        self.assertEqual(actions, ["حذف محامي", "تحديث محامي", "إنشاء محامي"])

    def test_short_password_and_duplicate_email(self):
        resp = self.client.post(
            "/api/admin/avocats", data=lawyer_form("short@example.com", password="123"), headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

        self.client.post("/api/admin/avocats", data=lawyer_form("taken@example.com"), headers=self.headers)
        resp = self.client.post("/api/admin/avocats", data=lawyer_form("taken@example.com"), headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_logo_upload(self):
        resp = self.client.post(
            "/api/admin/avocats",
            data=lawyer_form("logo@example.com"),
            files={"logo": ("logo.png", b"\x89PNG fake", "image/png")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertIn("/logos/", resp.json()["data"]["logo"])

        resp = self.client.post(
            "/api/admin/avocats",
            data=lawyer_form("badlogo@example.com"),
            files={"logo": ("logo.gif", b"GIF89a", "image/gif")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

    def test_secretary_crud(self):
        lawyer, _ = self.register_lawyer()
        resp = self.client.post("/api/admin/secretaires", json={
            "nom": "Idrissi",
            "prenom": "Nadia",
            "telephone": "0633333333",
            "adresse": "Hay Riad",
            "ville": "Rabat",
            "email": "nadia@example.com",
            "password": "secret123",
            "avocat_id": lawyer["id"],
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        secretary = resp.json()["data"]
        self.assertEqual(secretary["avocat"]["id"], lawyer["id"])

        resp = self.client.get("/api/admin/secretaires-by-avocat", headers=self.headers)
        self.assertEqual(resp.json()[0]["count"], 1)

        resp = self.client.delete(f"/api/admin/secretaires/{secretary['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)


class ContactMessageTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.admin_headers()
        self.client.post("/api/admin/messages", json={
            "name": "Hamza",
            "email": "hamza@example.com",
            "message": "J'ai besoin d'un avocat",
        })
        self.message_id = self.db.query(ContactMessage).one().id

    def test_list_and_reply(self):
        resp = self.client.get("/api/admin/messages?search=hamza", headers=self.headers)
        self.assertEqual(resp.json()["total"], 1)

        resp = self.client.post(f"/api/admin/messages/{self.message_id}/reply", json={
            "subject": "Re: demande",
            "body": "Nous vous contacterons",
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.mailer.sent[0]["to"], "hamza@example.com")
        self.assertIn("Nous vous contacterons", self.mailer.sent[0]["html"])

    def test_delete(self):
        resp = self.client.delete(f"/api/admin/messages/{self.message_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.delete(f"/api/admin/messages/{self.message_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_update_admin_settings(self):
        resp = self.client.put("/api/admin/me", json={"password": "newadmin1"}, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.post("/api/auth/login", json={"email": "admin@example.com", "password": "newadmin1"})
        self.assertEqual(resp.json()["role"], "admin")


if __name__ == "__main__":
    unittest.main()

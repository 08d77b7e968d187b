import shutil
import tempfile
import unittest

from fastapi.testclient import TestClient

from app.auth.utils import get_password_hash, issue_token
from app.database import Base, SessionLocal, engine
from app.models import Admin, UserRole
from app.services.mailer import get_mailer
from app.services.media import MediaStore, get_media_store
from app.services.taxonomy import seed_case_types
from main import app

DEFAULT_CATEGORY = "civil"
DEFAULT_TYPE = "نزاعات العقود"


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send(self, to_email, subject, body_html, body_text=None):
        self.sent.append({"to": to_email, "subject": subject, "html": body_html})


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()
        seed_case_types(self.db)

        self.mailer = FakeMailer()
        self.media_root = tempfile.mkdtemp(prefix="lawfirm-test-media-")
        app.dependency_overrides[get_mailer] = lambda: self.mailer
        app.dependency_overrides[get_media_store] = lambda: MediaStore(root=self.media_root)
        self.client = TestClient(app)
        self._counter = 0

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(bind=engine)
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _next(self):
        self._counter += 1
        return self._counter

    def register_lawyer(self, email=None, password="secret123"):
        email = email or f"avocat{self._next()}@example.com"
        resp = self.client.post("/api/auth/register", json={
            "nom": "Alaoui",
            "prenom": "Karim",
            "email": email,
            "password": password,
            "telephone": "0600000000",
            "adresse": "12 Rue Hassan II",
            "ville": "Rabat",
        })
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        return body["avocat"], {"Authorization": f"Bearer {body['access_token']}"}

    def admin_headers(self, email="admin@example.com"):
        admin = Admin(email=email, password_hash=get_password_hash("adminpass"))
        self.db.add(admin)
        self.db.commit()
        return {"Authorization": f"Bearer {issue_token(admin.id, UserRole.ADMIN.value)}"}

    def create_client(self, headers, nom=None, **extra):
        payload = {
            "nom": nom or f"Client {self._next()}",
            "telephone_1": "0611111111",
            "adresse_1": "Casablanca",
        }
        payload.update(extra)
        resp = self.client.post("/api/clients/", json=payload, headers=headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def case_form(self, client_id, **overrides):
        form = {
            "client_id": client_id,
            "adversaire": "Société Atlas",
            "client_role": "plaignant",
            "category": DEFAULT_CATEGORY,
            "type": DEFAULT_TYPE,
            "fee_type": "lawyer_only",
            "lawyer_fees": "5000",
        }
        form.update(overrides)
        return form

    def create_case(self, headers, client_id, files=None, **overrides):
        resp = self.client.post(
            "/api/affaires/",
            data=self.case_form(client_id, **overrides),
            files=files,
            headers=headers,
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

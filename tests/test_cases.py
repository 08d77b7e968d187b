import unittest

from tests.base import ApiTestCase


class CaseInvariantTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()
        self.client_id = self.create_client(self.headers)["id"]

    def post_case(self, **overrides):
        return self.client.post(
            "/api/affaires/",
            data=self.case_form(self.client_id, **overrides),
            headers=self.headers,
        )

    def test_create_case(self):
        case = self.create_case(self.headers, self.client_id)
        self.assertEqual(case["client_id"], self.client_id)
        self.assertEqual(case["statut"], "en cours")
        self.assertEqual(case["total_paid_amount"], 0)
        self.assertFalse(case["is_archived"])

        client = self.client.get(f"/api/clients/{self.client_id}", headers=self.headers).json()
        self.assertEqual(client["total_affairs"], 1)
        self.assertEqual(client["affaires"][0]["id"], case["id"])

    def test_unknown_category_or_type(self):
        resp = self.post_case(category="maritime")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Invalid category or type")

        resp = self.post_case(type="الطلاق")
        self.assertEqual(resp.status_code, 400)

    def test_defendant_requires_case_number(self):
        resp = self.post_case(client_role="défendeur")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("case_number", resp.json()["detail"])

        resp = self.post_case(client_role="défendeur", case_number="2024/145")
        self.assertEqual(resp.status_code, 201)

    def test_appeal_requires_primary_case_number(self):
        resp = self.post_case(case_level="appeal")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("primary_case_number", resp.json()["detail"])

        resp = self.post_case(case_level="appeal", primary_case_number="2023/77")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["primary_case_number"], "2023/77")

    def test_comprehensive_fee_requires_expenses(self):
        resp = self.post_case(fee_type="comprehensive")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("case_expenses", resp.json()["detail"])

        resp = self.post_case(fee_type="comprehensive", case_expenses="1200")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["case_expenses"], 1200)

    def test_update_revalidates_merged_values(self):
        case = self.create_case(self.headers, self.client_id)
        resp = self.client.put(
            f"/api/affaires/{case['id']}",
            data={"client_role": "défendeur"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

        resp = self.client.put(
            f"/api/affaires/{case['id']}",
            data={"client_role": "défendeur", "case_number": "2024/9"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["case_number"], "2024/9")
        self.assertEqual(resp.json()["adversaire"], "Société Atlas")

    def test_cases_are_scoped_to_owner(self):
        case = self.create_case(self.headers, self.client_id)
        _, other_headers = self.register_lawyer()

        resp = self.client.get(f"/api/affaires/{case['id']}", headers=other_headers)
        self.assertEqual(resp.status_code, 404)

        resp = self.client.get("/api/affaires/not-a-uuid", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_list_search_and_pagination(self):
        self.create_case(self.headers, self.client_id)
        banque = self.create_case(self.headers, self.client_id, adversaire="Banque Populaire")

        resp = self.client.get("/api/affaires/", headers=self.headers)
        self.assertEqual(len(resp.json()), 2)

        resp = self.client.get("/api/affaires/?search=banque&page=1&limit=5", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual((body["total"], body["page"], body["pages"]), (1, 1, 1))
        self.assertEqual(body["data"][0]["id"], banque["id"])
        self.assertEqual(body["data"][0]["statut"], "en cours")
        self.assertEqual(body["data"][0]["total_paid_amount"], 0)

        resp = self.client.get("/api/affaires/?page=-1", headers=self.headers)
        self.assertEqual(resp.status_code, 400)


class CaseLifecycleTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.lawyer, self.headers = self.register_lawyer()
        self.client_id = self.create_client(self.headers)["id"]
        self.case = self.create_case(self.headers, self.client_id)

    def test_archive_and_restore(self):
        resp = self.client.put(
            f"/api/affaires/{self.case['id']}/archive",
            json={"remarks": "Dossier clos"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["is_archived"])
        self.assertEqual(resp.json()["statut"], "archived")

        active = self.client.get("/api/affaires/", headers=self.headers).json()
        self.assertEqual(active, [])
        archived = self.client.get(f"/api/affaires/archives/avocat/{self.lawyer['id']}", headers=self.headers).json()
        self.assertEqual([c["id"] for c in archived], [self.case["id"]])

        resp = self.client.put(f"/api/affaires/restore/{self.case['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["is_archived"])
        self.assertEqual(resp.json()["statut"], "en cours")
        self.assertIsNone(resp.json()["archive_remarks"])

    def test_total_paid_amount(self):
        for amount in (1000, 250.5):
            resp = self.client.post("/api/paiements/", json={
                "client_id": self.client_id,
                "paid_amount": amount,
                "mode_paiement": "espece",
                "affaire_id": self.case["id"],
            }, headers=self.headers)
            self.assertEqual(resp.status_code, 201, resp.text)

        first = self.client.get(f"/api/affaires/{self.case['id']}", headers=self.headers).json()
        second = self.client.get(f"/api/affaires/{self.case['id']}", headers=self.headers).json()
        self.assertEqual(first["total_paid_amount"], 1250.5)
        self.assertEqual(second["total_paid_amount"], 1250.5)

    def test_deleting_client_keeps_cases(self):
        resp = self.client.delete(f"/api/clients/{self.client_id}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)

        resp = self.client.get(f"/api/affaires/{self.case['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        links = self.client.get("/api/affaire-clients/", headers=self.headers).json()
        self.assertEqual(links, [])

    def test_delete_case(self):
        resp = self.client.delete(f"/api/affaires/{self.case['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.get(f"/api/affaires/{self.case['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_stats(self):
        resp = self.client.get("/api/affaires/stats", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["totalCases"], 1)
        self.assertEqual(resp.json()["totalClients"], 1)

    def test_types_map(self):
        resp = self.client.get("/api/affaires/types", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertIn("نزاعات العقود", resp.json()["civil"])


class AttachmentTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()
        self.client_id = self.create_client(self.headers)["id"]

    def test_upload_download_and_delete(self):
        case = self.create_case(
            self.headers,
            self.client_id,
            files=[
                ("attachments", ("contrat.pdf", b"%PDF-1.4 contract", "application/pdf")),
                ("attachments", ("notes.txt", b"plain notes", "text/plain")),
            ],
            attachment_names='["Contrat signé", "Notes"]',
        )
        self.assertEqual(len(case["attachments"]), 2)
        pdf, txt = case["attachments"]
        self.assertEqual(pdf["name"], "Contrat signé")
        self.assertTrue(pdf["public_id"].startswith(f"affaires/{case['id']}/"))

        resp = self.client.get(f"/api/affaires/download/{pdf['public_id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["fileName"], "Contrat signé.pdf")
        file_resp = self.client.get(resp.json()["signedUrl"])
        self.assertEqual(file_resp.status_code, 200)
        self.assertEqual(file_resp.content, b"%PDF-1.4 contract")

        resp = self.client.get(f"/api/affaires/preview/{pdf['public_id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["fileType"], "pdf")

        resp = self.client.get(f"/api/affaires/preview/{txt['public_id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

        resp = self.client.delete(
            f"/api/affaires/{case['id']}/attachments/{pdf['public_id']}",
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([a["public_id"] for a in resp.json()["attachments"]], [txt["public_id"]])

        resp = self.client.get(f"/api/affaires/download/{pdf['public_id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_add_attachments_later(self):
        case = self.create_case(self.headers, self.client_id)
        resp = self.client.put(
            f"/api/affaires/{case['id']}/attachments",
            files=[("attachments", ("photo.png", b"\x89PNG fake", "image/png"))],
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["attachments"][0]["resource_type"], "image")

    def test_rejects_disallowed_extension(self):
        resp = self.client.post(
            "/api/affaires/",
            data=self.case_form(self.client_id),
            files=[("attachments", ("script.exe", b"MZ", "application/octet-stream"))],
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

    def test_signed_link_rejects_garbage_token(self):
        resp = self.client.get("/api/affaires/files/not-a-token")
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()

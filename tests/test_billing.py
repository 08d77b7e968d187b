import unittest

from tests.base import ApiTestCase


class PaymentTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()
        self.client_record = self.create_client(self.headers, nom="Rachid")
        self.case = self.create_case(self.headers, self.client_record["id"])

    def create_payment(self, amount=500, **extra):
        payload = {
            "client_id": self.client_record["id"],
            "paid_amount": amount,
            "mode_paiement": "cheque",
            "affaire_id": self.case["id"],
        }
        payload.update(extra)
        return self.client.post("/api/paiements/", json=payload, headers=self.headers)

    def test_create_mirrors_total(self):
        resp = self.create_payment(750)
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        self.assertEqual(body["montant_total"], 750)
        self.assertEqual(body["statut"], "en attente")
        self.assertEqual(body["client_id"]["nom"], "Rachid")
        self.assertEqual(body["affaire_id"]["id"], self.case["id"])

        resp = self.client.put(f"/api/paiements/{body['id']}", json={"paid_amount": 900}, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["montant_total"], 900)

    def test_foreign_client_is_rejected(self):
        _, other_headers = self.register_lawyer()
        other_client = self.create_client(other_headers)
        resp = self.create_payment(client_id=other_client["id"], affaire_id=None)
        self.assertEqual(resp.status_code, 400)

    def test_list_search_and_pagination(self):
        self.create_payment(100, description="Avance")
        self.create_payment(200, description="Solde")

        resp = self.client.get("/api/paiements/?page=1&limit=1", headers=self.headers)
        self.assertEqual(resp.json()["total"], 2)
        self.assertEqual(resp.json()["pages"], 2)
        self.assertEqual(len(resp.json()["data"]), 1)

        for params in ("page=-1", "page=1&limit=-5", "page=1&limit=0"):
            resp = self.client.get(f"/api/paiements/?{params}", headers=self.headers)
            self.assertEqual(resp.status_code, 400, params)
            resp = self.client.get(f"/api/consultations/?{params}", headers=self.headers)
            self.assertEqual(resp.status_code, 400, params)

    def test_transactions(self):
        payment = self.create_payment(1000).json()
        resp = self.client.post("/api/transactions-paiement/", json={
            "paiement_id": payment["id"],
            "montant": 400,
            "mode_paiement": "espèces",
            "type_transaction": "avance",
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        transaction = resp.json()

        resp = self.client.get(f"/api/transactions-paiement/?paiement_id={payment['id']}", headers=self.headers)
        self.assertEqual([t["id"] for t in resp.json()], [transaction["id"]])

        _, other_headers = self.register_lawyer()
        resp = self.client.get(f"/api/transactions-paiement/{transaction['id']}", headers=other_headers)
        self.assertEqual(resp.status_code, 404)

        resp = self.client.delete(f"/api/transactions-paiement/{transaction['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)

    def test_delete(self):
        payment = self.create_payment().json()
        resp = self.client.delete(f"/api/paiements/{payment['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        resp = self.client.get(f"/api/paiements/{payment['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)


class CaseTypeTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()

    def test_seeded_categories(self):
        resp = self.client.get("/api/types/main", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertIn("civil", resp.json())
        self.assertIn("family", resp.json())

    def test_new_type_is_usable_for_cases(self):
        resp = self.client.post("/api/types/", json={
            "name": "maritime",
            "sub_types": [{"name": "نزاعات الشحن"}],
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)

        resp = self.client.post("/api/types/", json={"name": "maritime"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

        client_record = self.create_client(self.headers)
        case = self.create_case(self.headers, client_record["id"], category="maritime", type="نزاعات الشحن")
        self.assertEqual(case["category"], "maritime")


if __name__ == "__main__":
    unittest.main()

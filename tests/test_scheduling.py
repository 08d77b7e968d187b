import unittest
from datetime import date

from fastapi import HTTPException

from app.models import CourtSession
from app.services.scheduling import ScheduleService, parse_day, validate_time_range
from tests.base import ApiTestCase

DAY = "2025-03-10"


class TimeRangeTestCase(unittest.TestCase):
    def test_valid_range(self):
        validate_time_range("09:00", "10:30")

    def test_rejects_bad_format_and_inverted_range(self):
        for start, end in (("9:00", "10:00"), ("09:00", "24:00"), ("10:00", "10:00"), ("11:00", "10:00")):
            with self.assertRaises(HTTPException) as ctx:
                validate_time_range(start, end)
            self.assertEqual(ctx.exception.status_code, 400)

    def test_parse_day(self):
        self.assertEqual(parse_day("2025-03-10").isoformat(), "2025-03-10")
        for value in (None, "10/03/2025", "2025-02-30"):
            with self.assertRaises(HTTPException):
                parse_day(value)


class SessionSchedulingTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.lawyer, self.headers = self.register_lawyer()
        self.client_record = self.create_client(self.headers, nom="Fatima Zahra")

    def create_session(self, start, end, day=DAY, **extra):
        payload = {
            "ordre": 1,
            "emplacement": "المحكمة الابتدائية بالرباط",
            "date": day,
            "heure_debut": start,
            "heure_fin": end,
            "client": self.client_record["nom"],
        }
        payload.update(extra)
        return self.client.post("/api/sessions/", json=payload, headers=self.headers)

    def test_overlapping_session_is_rejected(self):
        resp = self.create_session("09:00", "10:00")
        self.assertEqual(resp.status_code, 201, resp.text)
        existing_id = resp.json()["id"]

        resp = self.create_session("09:30", "10:30")
        self.assertEqual(resp.status_code, 400)
        detail = resp.json()["detail"]
        self.assertEqual(detail["message"], "تضارب في موعد الجلسة مع جلسات أخرى")
        self.assertEqual([c["id"] for c in detail["conflicts"]], [existing_id])

    def test_back_to_back_sessions_are_allowed(self):
        self.assertEqual(self.create_session("09:00", "10:00").status_code, 201)
        self.assertEqual(self.create_session("10:00", "11:00").status_code, 201)
        self.assertEqual(self.create_session("08:00", "09:00").status_code, 201)

    def test_list_search_and_pagination(self):
        self.create_session("09:00", "10:00", emplacement="Tribunal de commerce")
        self.create_session("11:00", "12:00", emplacement="Cour d'appel")
        self.create_session("14:00", "15:00", emplacement="Tribunal administratif")

        resp = self.client.get("/api/sessions/", headers=self.headers)
        self.assertEqual(len(resp.json()), 3)

        resp = self.client.get("/api/sessions/?search=tribunal&page=1&limit=1", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual((body["total"], body["page"], body["pages"]), (2, 1, 2))
        self.assertEqual(body["data"][0]["emplacement"], "Tribunal de commerce")

        resp = self.client.get("/api/sessions/?page=0", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_consultation_in_same_slot_does_not_conflict(self):
        self.assertEqual(self.create_session("09:00", "10:00").status_code, 201)
        resp = self.client.post("/api/consultations/", json={
            "date": DAY,
            "heure_debut": "09:00",
            "heure_fin": "10:00",
            "client_id": self.client_record["id"],
            "montant": 300,
            "mode_paiement": "espèce",
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(self.create_session("09:30", "10:30").status_code, 400)

    def test_other_day_and_other_lawyer_do_not_conflict(self):
        self.assertEqual(self.create_session("09:00", "10:00").status_code, 201)
        self.assertEqual(self.create_session("09:00", "10:00", day="2025-03-11").status_code, 201)

        _, other_headers = self.register_lawyer()
        other_client = self.create_client(other_headers, nom="Omar")
        resp = self.client.post("/api/sessions/", json={
            "ordre": 1,
            "emplacement": "Tribunal",
            "date": DAY,
            "heure_debut": "09:00",
            "heure_fin": "10:00",
            "client": other_client["nom"],
        }, headers=other_headers)
        self.assertEqual(resp.status_code, 201)

    def test_update_excludes_itself_from_conflicts(self):
        session = self.create_session("09:00", "10:00").json()
        resp = self.client.put(
            f"/api/sessions/{session['id']}",
            json={"heure_debut": "09:30", "heure_fin": "10:30"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["heure_debut"], "09:30")

        other = self.create_session("11:00", "12:00").json()
        resp = self.client.put(
            f"/api/sessions/{other['id']}",
            json={"heure_debut": "10:00"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

    def test_find_conflicts_directly(self):
        self.create_session("14:00", "15:00")
        service = ScheduleService(self.db, CourtSession)
        day = date(2025, 3, 10)
        self.assertEqual(len(service.find_conflicts(self.lawyer["id"], day, "14:59", "16:00")), 1)
        self.assertEqual(service.find_conflicts(self.lawyer["id"], day, "15:00", "16:00"), [])

    def test_unknown_client_name(self):
        resp = self.create_session("09:00", "10:00", client="Nobody")
        self.assertEqual(resp.status_code, 404)

    def test_case_number_copied_from_case(self):
        case = self.create_case(
            self.headers, self.client_record["id"], client_role="défendeur", case_number="2025/12",
        )
        resp = self.create_session("09:00", "10:00", affaire_id=case["id"])
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["case_number"], "2025/12")
        self.assertEqual(resp.json()["affaire_id"]["id"], case["id"])

    def test_day_listing_and_pdf(self):
        self.create_session("11:00", "12:00", remarque="تأجيل", gouvernance="المحكمة")
        self.create_session("09:00", "10:00")

        resp = self.client.get(f"/api/sessions/day?date={DAY}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["heure_debut"] for s in resp.json()], ["09:00", "11:00"])

        resp = self.client.get(f"/api/sessions/day/pdf?date={DAY}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["content-type"], "application/pdf")
        self.assertTrue(resp.content.startswith(b"%PDF"))

        resp = self.client.get("/api/sessions/day/pdf?date=2025-01-01", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

        resp = self.client.get("/api/sessions/day?date=01-01-2025", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_single_session_pdf(self):
        session = self.create_session("09:00", "10:00").json()
        resp = self.client.get(f"/api/sessions/{session['id']}/pdf", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.content.startswith(b"%PDF"))
        self.assertIn(f"session_{session['id']}.pdf", resp.headers["content-disposition"])


class AppointmentTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()
        self.client_record = self.create_client(self.headers, nom="Youssef")

    def create_appointment(self, start="09:00", end="10:00", **extra):
        payload = {
            "client": self.client_record["nom"],
            "type": "consultation",
            "date": DAY,
            "heure_debut": start,
            "heure_fin": end,
            "location": "المكتب",
        }
        payload.update(extra)
        return self.client.post("/api/rendez-vous/", json=payload, headers=self.headers)

    def test_create_and_format(self):
        resp = self.create_appointment(notes="أول لقاء")
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        self.assertEqual(body["type"], "consultation")
        self.assertEqual(body["location"], "المكتب")
        self.assertEqual(body["notes"], "أول لقاء")
        self.assertEqual(body["start"], f"{DAY}T09:00:00")
        self.assertIsNone(body["recurrence"])

    def test_meeting_requires_aff(self):
        resp = self.create_appointment(type="meeting")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "aff is required for meeting type")

    def test_recurring_requires_end_date(self):
        resp = self.create_appointment(recurrence_frequency="weekly")
        self.assertEqual(resp.status_code, 400)

        resp = self.create_appointment(recurrence_frequency="weekly", recurrence_end_date="2025-06-01")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["recurrence"], {"frequency": "weekly", "endDate": "2025-06-01"})

    def test_overlap_is_rejected(self):
        self.assertEqual(self.create_appointment("09:00", "10:00").status_code, 201)
        resp = self.create_appointment("09:45", "11:00")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["message"], "Conflict with existing rendez-vous")
        self.assertEqual(self.create_appointment("10:00", "11:00").status_code, 201)

    def test_list_search_and_pagination(self):
        self.create_appointment("09:00", "10:00", notes="Signature du contrat")
        self.create_appointment("11:00", "12:00", notes="Suivi du dossier")

        resp = self.client.get("/api/rendez-vous/?search=contrat&page=1&limit=5", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual((body["total"], body["page"], body["pages"]), (1, 1, 1))
        self.assertEqual(body["data"][0]["start"], f"{DAY}T09:00:00")

        resp = self.client.get("/api/rendez-vous/?search=dossier", headers=self.headers)
        self.assertEqual(len(resp.json()), 1)

    def test_delete_refused_while_sessions_reference_it(self):
        appointment = self.create_appointment().json()
        resp = self.client.post("/api/sessions/", json={
            "ordre": 2,
            "emplacement": "Tribunal",
            "date": DAY,
            "heure_debut": "14:00",
            "heure_fin": "15:00",
            "client": self.client_record["nom"],
            "rendez_vous_id": appointment["id"],
        }, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        session_id = resp.json()["id"]

        resp = self.client.delete(f"/api/rendez-vous/{appointment['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual([s["id"] for s in resp.json()["detail"]["sessions"]], [session_id])

        self.client.delete(f"/api/sessions/{session_id}", headers=self.headers)
        resp = self.client.delete(f"/api/rendez-vous/{appointment['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)


class ConsultationTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.headers = self.register_lawyer()
        self.client_record = self.create_client(self.headers)

    def create_consultation(self, start, end, **extra):
        payload = {
            "date": DAY,
            "heure_debut": start,
            "heure_fin": end,
            "client_id": self.client_record["id"],
            "montant": 300,
            "mode_paiement": "espèce",
        }
        payload.update(extra)
        return self.client.post("/api/consultations/", json=payload, headers=self.headers)

    def test_overlap_and_update(self):
        first = self.create_consultation("09:00", "10:00")
        self.assertEqual(first.status_code, 201, first.text)
        self.assertEqual(first.json()["client_id"]["id"], self.client_record["id"])

        resp = self.create_consultation("09:30", "09:45")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["message"], "Conflict with existing consultation")

        resp = self.client.put(
            f"/api/consultations/{first.json()['id']}",
            json={"heure_fin": "10:30"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)

    def test_invalid_client_id(self):
        resp = self.create_consultation("09:00", "10:00", client_id="nope")
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()

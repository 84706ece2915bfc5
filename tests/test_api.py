import base64
import json
import unittest

from fastapi.testclient import TestClient

from api_server import create_app
from services.event_service import register_for_event
from services.membership_service import register_membership
from services.qr_service import encode_payload, membership_payload, registration_payload
from tests.support import fresh_engine, make_event, make_user


class ScannerApiTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        self.client = TestClient(create_app(engine=self.engine, api_key=None))
        self.event = make_event(self.engine)
        self.reg = register_for_event(
            self.engine, self.event.id,
            {"name": "Siti Aminah", "email": "siti@example.com", "phone": "+60 13-222 3333"},
        )

    def test_health(self):
        r = self.client.get("/api/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"ok": True})

    def test_scan_checks_in_once(self):
        code = encode_payload(registration_payload(self.reg.id))
        r = self.client.post("/api/scan", json={"code": code, "verifier_id": "door-1"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["kind"], "event_registration")
        self.assertEqual(body["record"]["checked_in_by"], "door-1")

        r = self.client.post("/api/scan", json={"code": code})
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.json()["ok"])
        self.assertTrue(r.json()["message"].startswith("Already checked in"))

    def test_scan_accepts_base64_url(self):
        data = base64.urlsafe_b64encode(json.dumps({"registration_id": self.reg.id}).encode()).decode()
        r = self.client.post("/api/scan", json={"code": f"https://bwm.example/t?data={data}"})
        self.assertTrue(r.json()["ok"])

    def test_unreadable_code(self):
        r = self.client.post("/api/scan", json={"code": "??"})
        self.assertEqual(r.status_code, 400)
        r = self.client.post("/api/scan", json={"code": ""})
        self.assertEqual(r.status_code, 422)

    def test_membership_verify(self):
        user = make_user(self.engine)
        m = register_membership(
            self.engine, user, "ordinary",
            {"email": user.email, "ic_number": "900101-14-5678", "date_of_birth": "1990-01-01",
             "profession": "Architect", "volunteer_interest": False},
            "FPX-1",
        )
        r = self.client.get("/api/membership/verify",
                            params={"code": encode_payload(membership_payload(m.id, user.id))})
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["ok"])
        self.assertEqual(r.json()["record"]["tier"], "Ordinary Member")

        r = self.client.get("/api/membership/verify", params={"code": "unknown-member"})
        self.assertFalse(r.json()["ok"])

    def test_events(self):
        make_event(self.engine, title="Old Walk", date="2001-01-01")
        all_titles = [e["title"] for e in self.client.get("/api/events").json()]
        self.assertEqual(all_titles, ["Old Walk", self.event.title])
        upcoming = self.client.get("/api/events", params={"upcoming": "true"}).json()
        self.assertEqual([e["id"] for e in upcoming], [self.event.id])

    def test_event_detail_and_not_found(self):
        r = self.client.get(f"/api/events/{self.event.id}")
        self.assertEqual(r.json()["location"], "Merdeka Square, KL")
        r = self.client.get("/api/events/missing")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"detail": "Event not found"})


class ApiKeyTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(create_app(engine=fresh_engine(), api_key="door-key"))

    def test_missing_or_wrong_key(self):
        self.assertEqual(self.client.get("/api/events").status_code, 401)
        self.assertEqual(self.client.get("/api/events", headers={"X-API-Key": "nope"}).status_code, 401)

    def test_header_or_bearer(self):
        self.assertEqual(self.client.get("/api/events", headers={"X-API-Key": "door-key"}).status_code, 200)
        self.assertEqual(
            self.client.get("/api/events", headers={"Authorization": "Bearer door-key"}).status_code, 200)

    def test_health_is_open(self):
        self.assertEqual(self.client.get("/api/health").status_code, 200)


class ModuleAppTests(unittest.TestCase):
    def test_module_app_uses_configured_database(self):
        import api_server

        self.assertEqual(str(api_server.app.state.engine.url), "sqlite://")


if __name__ == "__main__":
    unittest.main()

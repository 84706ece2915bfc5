import base64
import json
import unittest
from unittest import mock

from services import checkin_service, membership_service
from services.event_service import register_for_event
from services.qr_service import (
    encode_payload,
    membership_payload,
    qr_data_uri,
    registration_payload,
    render_qr_png,
)
from tests.support import fresh_engine, make_event, make_user, set_column
from utils.qr_scan_utils import EVENT_REGISTRATION, MEMBERSHIP, parse_scanned_text

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def b64url(obj) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).decode().rstrip("=")


class ScanParsingTests(unittest.TestCase):
    def test_json_payloads(self):
        reg = parse_scanned_text(encode_payload(registration_payload("r-1")))
        self.assertEqual((reg.kind, reg.id), (EVENT_REGISTRATION, "r-1"))

        card = parse_scanned_text(encode_payload(membership_payload("m-1", "u-1")))
        self.assertEqual((card.kind, card.id), (MEMBERSHIP, "m-1"))

        typed = parse_scanned_text('{"type": "event_registration", "id": "r-2"}')
        self.assertEqual((typed.kind, typed.id), (EVENT_REGISTRATION, "r-2"))

    def test_nested_data(self):
        found = parse_scanned_text('{"data": {"ticket_id": "r-3"}}')
        self.assertEqual((found.kind, found.id), (EVENT_REGISTRATION, "r-3"))

    def test_urls(self):
        url = "https://warisan.example/verify?data=" + b64url({"registration_id": "r-4"})
        found = parse_scanned_text(url)
        self.assertEqual((found.kind, found.id), (EVENT_REGISTRATION, "r-4"))

        found = parse_scanned_text("https://warisan.example/card?id=m-5")
        self.assertEqual((found.kind, found.id), (MEMBERSHIP, "m-5"))

        found = parse_scanned_text("https://warisan.example/t?RegistrationId=r-6")
        self.assertEqual((found.kind, found.id), (EVENT_REGISTRATION, "r-6"))

    def test_raw_base64(self):
        found = parse_scanned_text(b64url({"type": "membership", "id": "m-7"}))
        self.assertEqual((found.kind, found.id), (MEMBERSHIP, "m-7"))

    def test_plain_token_and_garbage(self):
        found = parse_scanned_text("  BWM2024-00042 ")
        self.assertEqual((found.kind, found.id), (MEMBERSHIP, "BWM2024-00042"))
        self.assertIsNone(parse_scanned_text(""))
        self.assertIsNone(parse_scanned_text("abc"))
        self.assertIsNone(parse_scanned_text("hello world!"))
        self.assertIsNone(parse_scanned_text("{not json}"))


class RenderTests(unittest.TestCase):
    def test_png(self):
        png = render_qr_png(registration_payload("r-1"))
        self.assertTrue(png.startswith(PNG_MAGIC))
        self.assertTrue(render_qr_png("plain text").startswith(PNG_MAGIC))

    def test_data_uri(self):
        uri = qr_data_uri({"type": "membership", "id": "m-1"})
        self.assertTrue(uri.startswith("data:image/png;base64,"))
        self.assertTrue(base64.b64decode(uri.split(",", 1)[1]).startswith(PNG_MAGIC))

    def test_compact_json(self):
        self.assertEqual(
            encode_payload(registration_payload("r-1")),
            '{"type":"event_registration","registration_id":"r-1"}',
        )


class CheckInTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        self.event = make_event(self.engine)
        self.reg = register_for_event(
            self.engine, self.event.id,
            {"name": "Siti Aminah", "email": "siti@example.com", "phone": "+60 13-222 3333"},
        )
        self.code = encode_payload(registration_payload(self.reg.id))

    def test_first_scan_checks_in(self):
        result = checkin_service.check_in_registration(self.engine, self.code, verifier_id="door-1")
        self.assertTrue(result.ok)
        self.assertEqual(result.message, f"Checked in Siti Aminah for {self.event.title}")
        self.assertEqual(result.record["status"], "attended")
        self.assertEqual(result.record["checked_in_by"], "door-1")

    def test_second_scan_is_refused(self):
        checkin_service.check_in_registration(self.engine, self.code)
        again = checkin_service.check_in_registration(self.engine, self.code)
        self.assertFalse(again.ok)
        self.assertTrue(again.message.startswith("Already checked in at "))

    def test_simultaneous_scans_check_in_once(self):
        checkin_service.check_in_registration(self.engine, self.code, verifier_id="door-1")
        real_fetch = checkin_service._fetch_registration_for_update
        seen = []

        def stale_first_read(conn, registration_id):
            row = real_fetch(conn, registration_id)
            if not seen:
                # the second device read the ticket before the first one wrote
                row = dict(row, status="registered", checked_in_at=None, checked_in_by=None)
            seen.append(registration_id)
            return row

        with mock.patch.object(checkin_service, "_fetch_registration_for_update", side_effect=stale_first_read):
            result = checkin_service.check_in_registration(self.engine, self.code, verifier_id="door-2")

        self.assertFalse(result.ok)
        self.assertTrue(result.message.startswith("Already checked in at "))
        self.assertEqual(result.record["checked_in_by"], "door-1")

    def test_cancelled_ticket(self):
        set_column(self.engine, "event_registrations", self.reg.id, "status", "cancelled")
        result = checkin_service.check_in_registration(self.engine, self.code)
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "This registration was cancelled.")

    def test_unknown_ticket(self):
        result = checkin_service.check_in_registration(
            self.engine, encode_payload(registration_payload("nope")))
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "Ticket not found.")

    def test_scan_dispatch(self):
        self.assertTrue(checkin_service.scan(self.engine, self.code).ok)
        unreadable = checkin_service.scan(self.engine, "??")
        self.assertFalse(unreadable.ok)
        self.assertEqual(unreadable.message, checkin_service.UNREADABLE)

    def test_search(self):
        df = checkin_service.search_registrations(self.engine, "SITI")
        self.assertEqual(list(df["id"]), [self.reg.id])
        self.assertTrue(checkin_service.search_registrations(self.engine, "zzz").empty)
        df = checkin_service.search_registrations(self.engine, "example.com", event_id="other")
        self.assertTrue(df.empty)

    def test_attendance_summary(self):
        register_for_event(
            self.engine, self.event.id,
            {"name": "Kumar", "email": "kumar@example.com", "phone": "0123456789"},
        )
        gone = register_for_event(
            self.engine, self.event.id,
            {"name": "Mei Ling", "email": "mei@example.com", "phone": "0123456789"},
        )
        set_column(self.engine, "event_registrations", gone.id, "status", "cancelled")
        checkin_service.check_in_registration(self.engine, self.code, verifier_id="door-1")

        summary = checkin_service.attendance_summary(self.engine, self.event.id)
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["checked_in"], 1)
        self.assertEqual(summary["remaining"], 1)
        self.assertEqual(summary["cancelled"], 1)
        self.assertEqual(summary["completion_pct"], 50.0)
        self.assertEqual(checkin_service.attendance_summary(self.engine, "other")["completion_pct"], 0.0)

        recent = checkin_service.recent_checkins(self.engine)
        self.assertEqual(list(recent["registrant_name"]), ["Siti Aminah"])
        self.assertEqual(list(recent["checked_in_by"]), ["door-1"])


class MembershipVerificationTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        user = make_user(self.engine)
        self.membership = membership_service.register_membership(
            self.engine, user, "ordinary",
            {"email": user.email, "ic_number": "900101-14-5678", "date_of_birth": "1990-01-01",
             "profession": "Architect", "volunteer_interest": False},
            "FPX-1",
        )
        self.code = encode_payload(membership_payload(self.membership.id, user.id))

    def test_active(self):
        result = checkin_service.verify_membership(self.engine, self.code)
        self.assertTrue(result.ok)
        self.assertEqual(result.message, "Valid Ordinary Member: Aisyah Rahman")
        self.assertEqual(result.record["tier"], "Ordinary Member")

    def test_plain_id_works_too(self):
        self.assertTrue(checkin_service.verify_membership(self.engine, self.membership.id).ok)

    def test_lapsed(self):
        set_column(self.engine, "memberships", self.membership.id, "expires_at", "2000-01-01T00:00:00")
        result = checkin_service.verify_membership(self.engine, self.code)
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "Membership found but status is EXPIRED")

    def test_suspended(self):
        set_column(self.engine, "memberships", self.membership.id, "status", "suspended")
        result = checkin_service.scan(self.engine, self.code)
        self.assertEqual(result.message, "Membership found but status is SUSPENDED")

    def test_unknown(self):
        result = checkin_service.verify_membership(self.engine, "no-such-member")
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "Invalid Membership or ID not found.")


if __name__ == "__main__":
    unittest.main()

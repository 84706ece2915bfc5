import tempfile
import unittest
from pathlib import Path

from domain.errors import NotFoundError, PaymentError, ValidationError
from domain.models import Event
from services import event_service as es
from services.storage_service import LocalStorage
from tests.support import fresh_engine, make_event, make_user, payment, set_column

GUEST = {"name": "Siti Aminah", "email": "Siti@Example.com", "phone": "+60 13-222 3333"}


class EventCatalogueTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()

    def test_create_and_fetch(self):
        event = make_event(self.engine, fee="25", member_fee="")
        self.assertEqual(event.status, "upcoming")
        self.assertEqual(event.fee, 25.0)
        self.assertIsNone(event.member_fee)
        self.assertEqual(es.fetch_event_by_id(self.engine, event.id).title, "Kuala Lumpur Heritage Walk")

    def test_create_validation(self):
        with self.assertRaises(ValidationError) as ctx:
            es.create_event(self.engine, {"date": "25/11/2999", "time": "9am", "fee": "-1"})
        self.assertEqual(ctx.exception.errors, [
            "Event title is required",
            "Event date is required (YYYY-MM-DD)",
            "Event time is required (HH:MM)",
            "Location is required",
            "Description is required",
            "Fee cannot be negative",
        ])

    def test_upcoming_filter_and_order(self):
        make_event(self.engine, title="Past", date="2001-01-01")
        make_event(self.engine, title="Later", date="2999-12-01")
        make_event(self.engine, title="Evening", date="2999-11-25", time="19:00")
        make_event(self.engine, title="Morning", date="2999-11-25", time="08:00")

        titles = [e.title for e in es.fetch_events(self.engine, upcoming_only=True)]
        self.assertEqual(titles, ["Morning", "Evening", "Later"])
        self.assertEqual(len(es.fetch_events(self.engine)), 4)

    def test_poster_upload(self):
        with tempfile.TemporaryDirectory() as tmp:
            storage = LocalStorage(tmp)
            event = es.create_event(
                self.engine,
                {"title": "Open House", "date": "2999-01-01", "time": "10:00",
                 "location": "Rumah Penghulu Abu Seman", "description": "Tours all day"},
                b"\x89PNG fake",
                poster_filename="open house.png",
                storage=storage,
            )
            self.assertTrue(event.image_url.startswith("file://"))
            self.assertTrue(event.image_url.endswith("_open_house.png"))
            posters = list(Path(tmp, "event_poster").iterdir())
            self.assertEqual(len(posters), 1)
            self.assertEqual(posters[0].read_bytes(), b"\x89PNG fake")

    def test_delete(self):
        event = make_event(self.engine)
        es.delete_event(self.engine, event.id)
        with self.assertRaises(NotFoundError):
            es.fetch_event_by_id(self.engine, event.id)
        with self.assertRaises(NotFoundError):
            es.delete_event(self.engine, event.id)


class PricingTests(unittest.TestCase):
    def test_member_price(self):
        event = Event(id="e", title="Talk", date="2999-01-01", location="KL", fee=30.0, member_fee=15.0)
        self.assertEqual(es.applicable_fee(event), 30.0)
        self.assertEqual(es.applicable_fee(event, is_member=True), 15.0)
        self.assertEqual(es.display_fee(event), "RM30.00")

    def test_no_member_price_means_normal_fee(self):
        event = Event(id="e", title="Talk", date="2999-01-01", location="KL", fee=1200.0)
        self.assertEqual(es.applicable_fee(event, is_member=True), 1200.0)
        self.assertEqual(es.display_fee(event, is_member=True), "RM1,200.00")

    def test_free(self):
        event = Event(id="e", title="Talk", date="2999-01-01", location="KL")
        self.assertEqual(es.display_fee(event), "Free")


class RegistrationTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        self.user = make_user(self.engine)
        self.event = make_event(self.engine)

    def test_form_validation(self):
        self.assertEqual(es.validate_registration_form(GUEST), [])
        self.assertEqual(
            es.validate_registration_form({"name": "", "email": "x@", "phone": "12ab"}),
            ["Name is required", "Invalid email format", "Invalid phone number"],
        )
        self.assertEqual(
            es.validate_registration_form({}),
            ["Name is required", "Email is required", "Phone number is required"],
        )

    def test_free_registration_snapshots_event(self):
        reg = es.register_for_event(self.engine, self.event.id, GUEST)
        self.assertEqual(reg.status, "registered")
        self.assertEqual(reg.registrant_email, "siti@example.com")
        self.assertEqual(reg.event_title, self.event.title)
        self.assertEqual(reg.event_location, "Merdeka Square, KL")
        self.assertEqual(reg.amount_paid, 0.0)
        self.assertIsNone(reg.user_id)
        self.assertTrue(es.check_registration(self.engine, self.event.id, "SITI@example.com"))

    def test_duplicate_email_refused(self):
        es.register_for_event(self.engine, self.event.id, GUEST)
        with self.assertRaises(ValidationError) as ctx:
            es.register_for_event(self.engine, self.event.id, GUEST)
        self.assertEqual(str(ctx.exception), "You are already registered for this event")

    def test_paid_event_needs_payment(self):
        paid = make_event(self.engine, title="Batik Workshop", fee=80, member_fee=60)
        with self.assertRaises(PaymentError):
            es.register_for_event(self.engine, paid.id, GUEST)
        with self.assertRaises(PaymentError):
            es.register_for_event(self.engine, paid.id, GUEST, payment=payment(60))

        reg = es.register_for_event(self.engine, paid.id, GUEST, is_member=True, payment=payment(60))
        self.assertEqual(reg.amount_paid, 60.0)
        self.assertEqual(reg.payment_method, "card")
        self.assertTrue(reg.is_member)

    def test_blank_member_fee_charges_members_full_price(self):
        paid = make_event(self.engine, title="Conservation Talk", fee=50, member_fee="")
        self.assertIsNone(paid.member_fee)
        self.assertEqual(es.applicable_fee(paid, is_member=True), 50.0)
        with self.assertRaises(PaymentError):
            es.register_for_event(self.engine, paid.id, GUEST, is_member=True)

        reg = es.register_for_event(self.engine, paid.id, GUEST, is_member=True, payment=payment(50))
        self.assertEqual(reg.amount_paid, 50.0)

    def test_unknown_event(self):
        with self.assertRaises(NotFoundError):
            es.register_for_event(self.engine, "missing", GUEST)

    def test_user_tickets_and_cancel(self):
        reg = es.register_for_event(self.engine, self.event.id, GUEST, user_id=self.user.id)
        self.assertEqual([r.id for r in es.fetch_user_registrations(self.engine, self.user.id)], [reg.id])

        with self.assertRaises(NotFoundError):
            es.cancel_registration(self.engine, reg.id, "someone-else")

        cancelled = es.cancel_registration(self.engine, reg.id, self.user.id)
        self.assertEqual(cancelled.status, "cancelled")
        self.assertFalse(es.check_registration(self.engine, self.event.id, GUEST["email"]))
        # a cancelled ticket frees the email for a new registration
        es.register_for_event(self.engine, self.event.id, GUEST, user_id=self.user.id)

    def test_used_ticket_cannot_be_cancelled(self):
        reg = es.register_for_event(self.engine, self.event.id, GUEST, user_id=self.user.id)
        set_column(self.engine, "event_registrations", reg.id, "status", "attended")
        with self.assertRaises(ValidationError):
            es.cancel_registration(self.engine, reg.id, self.user.id)


if __name__ == "__main__":
    unittest.main()

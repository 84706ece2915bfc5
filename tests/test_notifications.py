import unittest
from unittest import mock

from domain.models import EventRegistration
from services import email_service, event_service, sms_service
from services.qr_service import registration_payload, render_qr_png
from tests.support import fresh_engine, make_event
from utils import email_utils


def _registration(**overrides):
    fields = dict(
        id="r-1", event_id="e-1", registrant_name="Siti <Aminah>",
        registrant_email="siti@example.com", registrant_phone="0123456789",
        event_title="Batik & Songket Workshop", event_date="2999-02-01",
        event_location="Rumah Penghulu", amount_paid=40.0,
    )
    fields.update(overrides)
    return EventRegistration(**fields)


class InlineQrMessageTests(unittest.TestCase):
    def test_structure(self):
        png = render_qr_png(registration_payload("r-1"))
        msg = email_utils.build_inline_qr_message(
            " Siti@Example.com ", "Your ticket", "<p>Hi<br>there</p>",
            qr_bytes=png, reply_to="info@badanwarisan.org.my",
        )
        self.assertEqual(msg.get_content_type(), "multipart/related")
        self.assertEqual(msg["To"], "siti@example.com")
        self.assertEqual(msg["Reply-To"], "info@badanwarisan.org.my")

        parts = {p.get_content_type(): p for p in msg.walk()}
        self.assertEqual(parts["image/png"]["Content-ID"], "<qrcode>")
        self.assertEqual(parts["image/png"].get_payload(decode=True), png)
        self.assertEqual(parts["text/plain"].get_payload(decode=True).decode(), "Hi\nthere")

    def test_subject_prefix(self):
        with mock.patch.object(email_utils, "EMAIL_SUBJECT_PREFIX", "[BWM]"):
            self.assertEqual(email_utils._prefix_subject("Ticket"), "[BWM] Ticket")
            self.assertEqual(email_utils._prefix_subject("[BWM] Ticket"), "[BWM] Ticket")

    def test_html_to_text(self):
        self.assertEqual(email_utils._strip_html_to_text("<b>A</b> &amp; B<br/>C"), "A & B\nC")
        self.assertEqual(email_utils._strip_html_to_text(""), "")


class TicketEmailTests(unittest.TestCase):
    def test_html_is_escaped(self):
        body = email_service.ticket_email_html(_registration())
        self.assertIn("Siti &lt;Aminah&gt;", body)
        self.assertIn("Batik &amp; Songket Workshop", body)
        self.assertIn("RM40.00", body)
        self.assertIn('src="cid:qrcode"', body)
        self.assertIn("Free", email_service.ticket_email_html(_registration(amount_paid=0)))

    @mock.patch.object(email_utils, "EMAIL_DRY_RUN", True)
    def test_dry_run_only_logs(self):
        with mock.patch.object(email_utils.smtplib, "SMTP_SSL") as smtp, \
                self.assertLogs("utils.email_utils", level="INFO") as logs:
            email_service.send_ticket_confirmation(_registration(), b"png")
        smtp.assert_not_called()
        self.assertIn("[DRY-RUN]", logs.output[0])

    @mock.patch.object(email_utils, "EMAIL_DRY_RUN", False)
    @mock.patch.object(email_utils, "SMTP_SECURITY", "ssl")
    @mock.patch.object(email_utils, "SENDER_EMAIL", "noreply@badanwarisan.org.my")
    @mock.patch.object(email_utils, "SMTP_USERNAME", "noreply@badanwarisan.org.my")
    @mock.patch.object(email_utils, "SMTP_PASSWORD", "app-password")
    def test_smtp_send(self):
        with mock.patch.object(email_utils.smtplib, "SMTP_SSL") as smtp:
            email_service.send_ticket_confirmation(_registration(), b"png")
        server = smtp.return_value
        server.login.assert_called_once_with("noreply@badanwarisan.org.my", "app-password")
        server.send_message.assert_called_once()
        server.quit.assert_called_once()

    def test_registration_sends_ticket_when_enabled(self):
        engine = fresh_engine()
        event = make_event(engine)
        with mock.patch.object(event_service, "EMAIL_ENABLED", True), \
                mock.patch.object(email_service, "send_ticket_confirmation") as send:
            reg = event_service.register_for_event(
                engine, event.id,
                {"name": "Siti", "email": "siti@example.com", "phone": "0123456789"},
            )
        send.assert_called_once()
        self.assertEqual(send.call_args.args[0].id, reg.id)

    def test_email_failure_does_not_block_registration(self):
        engine = fresh_engine()
        event = make_event(engine)
        with mock.patch.object(event_service, "EMAIL_ENABLED", True), \
                mock.patch.object(email_service, "send_ticket_confirmation", side_effect=RuntimeError("smtp down")), \
                self.assertLogs("services.event_service", level="WARNING"):
            reg = event_service.register_for_event(
                engine, event.id,
                {"name": "Siti", "email": "siti@example.com", "phone": "0123456789"},
            )
        self.assertEqual(reg.status, "registered")


class SmsTests(unittest.TestCase):
    @mock.patch.object(sms_service, "SMS_DRY_RUN", True)
    def test_dry_run(self):
        with self.assertLogs("services.sms_service", level="INFO") as logs:
            sms_service.send_sms("+60123456789", "Your code is 123456")
        self.assertIn("+60123456789", logs.output[0])

    @mock.patch.object(sms_service, "SMS_DRY_RUN", False)
    def test_publish(self):
        client = mock.Mock()
        with mock.patch.object(sms_service, "_sns_client", client):
            sms_service.send_sms("+60123456789", "hello")
        kwargs = client.publish.call_args.kwargs
        self.assertEqual(kwargs["PhoneNumber"], "+60123456789")
        self.assertEqual(
            kwargs["MessageAttributes"]["AWS.SNS.SMS.SMSType"]["StringValue"], "Transactional")


if __name__ == "__main__":
    unittest.main()

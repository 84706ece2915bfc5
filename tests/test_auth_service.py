import unittest
from unittest import mock

from domain.errors import AuthError, NotFoundError, ValidationError
from services import auth_service
from tests.support import fresh_engine, make_user, set_column


class SignUpTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()

    def test_sign_up_creates_unverified_profile(self):
        user = make_user(self.engine, email="Aisyah@Example.com")
        self.assertEqual(user.email, "aisyah@example.com")
        self.assertFalse(user.phone_verified)
        self.assertFalse(user.address_complete)
        self.assertEqual(user.phone_change_count, 0)
        self.assertEqual(auth_service.next_onboarding_step(user), "address")

    def test_duplicate_email_rejected(self):
        make_user(self.engine)
        with self.assertRaises(ValidationError):
            make_user(self.engine, email="AISYAH@example.com")

    def test_validation_messages(self):
        with self.assertRaises(ValidationError) as ctx:
            auth_service.sign_up(self.engine, "bad-email", "secret1", "secret2", "", "12")
        errors = ctx.exception.errors
        self.assertIn("Please enter a valid email address", errors)
        self.assertIn("Full name is required", errors)
        self.assertIn("Please enter a valid phone number", errors)
        self.assertIn("Passwords do not match", errors)

    def test_short_password(self):
        errors = auth_service.validate_sign_up("a@b.co", "abc", "abc", "A", "0123456789")
        self.assertEqual(errors, ["Password must be at least 6 characters"])


class SignInTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        self.user = make_user(self.engine)

    def test_sign_in(self):
        user = auth_service.sign_in(self.engine, " AISYAH@example.com ", "secret123")
        self.assertEqual(user.id, self.user.id)

    def test_wrong_password(self):
        with self.assertRaises(AuthError):
            auth_service.sign_in(self.engine, "aisyah@example.com", "nope-nope")

    def test_unknown_user(self):
        with self.assertRaises(AuthError):
            auth_service.sign_in(self.engine, "nobody@example.com", "secret123")
        with self.assertRaises(NotFoundError):
            auth_service.get_user(self.engine, "missing")


class ProfileTests(unittest.TestCase):
    def setUp(self):
        self.engine = fresh_engine()
        self.user = make_user(self.engine)

    def test_address_validation(self):
        with self.assertRaises(ValidationError) as ctx:
            auth_service.update_address(
                self.engine, self.user.id,
                address_line1="", postcode="123", city="", state="Atlantis",
            )
        errors = ctx.exception.errors
        self.assertIn("Address Line 1 is required", errors)
        self.assertIn("Postcode must be 5 digits", errors)
        self.assertIn("City is required", errors)
        self.assertIn("Please select a valid state", errors)

    def test_address_completes_onboarding_step(self):
        user = auth_service.update_address(
            self.engine, self.user.id,
            address_line1="2 Jalan Stonor", postcode="50450",
            city="Kuala Lumpur", state="W.P. Kuala Lumpur",
        )
        self.assertTrue(user.address_complete)
        self.assertTrue(auth_service.is_address_complete(user))
        self.assertEqual(auth_service.next_onboarding_step(user), "phone")

        set_column(self.engine, "users", user.id, "phone_verified", True)
        user = auth_service.get_user(self.engine, user.id)
        self.assertEqual(auth_service.next_onboarding_step(user), "done")

    def test_name_update(self):
        user = auth_service.update_profile(self.engine, self.user.id, full_name="Aisyah R.")
        self.assertEqual(user.full_name, "Aisyah R.")
        with self.assertRaises(ValidationError):
            auth_service.update_profile(self.engine, self.user.id, full_name="  ")

    def test_verified_phone_can_change_only_once(self):
        set_column(self.engine, "users", self.user.id, "phone_verified", True)

        user = auth_service.update_profile(self.engine, self.user.id, phone_number="+60 19-876 5432")
        self.assertFalse(user.phone_verified)
        self.assertEqual(user.phone_change_count, 1)

        set_column(self.engine, "users", self.user.id, "phone_verified", True)
        with self.assertRaises(ValidationError):
            auth_service.update_profile(self.engine, self.user.id, phone_number="+60 11-111 2222")

    def test_unverified_phone_change_is_not_counted(self):
        user = auth_service.update_profile(self.engine, self.user.id, phone_number="+60 19-876 5432")
        self.assertEqual(user.phone_change_count, 0)
        self.assertEqual(user.phone_number, "+60 19-876 5432")


class AdminAccessTests(unittest.TestCase):
    def test_correct_key(self):
        with mock.patch.object(auth_service, "ADMIN_ACCESS_KEY", "s3cret"):
            auth_service.check_admin_access("s3cret")

    def test_wrong_key(self):
        with mock.patch.object(auth_service, "ADMIN_ACCESS_KEY", "s3cret"):
            with self.assertRaises(AuthError) as ctx:
                auth_service.check_admin_access("guess")
        self.assertEqual(str(ctx.exception), "Access Denied: Incorrect Password")

    def test_unconfigured(self):
        with mock.patch.object(auth_service, "ADMIN_ACCESS_KEY", None):
            with self.assertRaises(AuthError):
                auth_service.check_admin_access("anything")


if __name__ == "__main__":
    unittest.main()

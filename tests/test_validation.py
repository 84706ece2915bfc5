import unittest

from utils.validation import (
    clean_email,
    clean_text,
    is_valid_email,
    is_valid_phone,
    is_valid_postcode,
    normalize_phone,
)


class ValidationTests(unittest.TestCase):
    def test_email(self):
        self.assertTrue(is_valid_email("ali@example.com"))
        self.assertFalse(is_valid_email("ali@example"))
        self.assertFalse(is_valid_email("ali baba@example.com"))
        self.assertFalse(is_valid_email(""))

    def test_phone_needs_eight_characters_of_digits_and_separators(self):
        self.assertTrue(is_valid_phone("+60 12-345 6789"))
        self.assertTrue(is_valid_phone("(03) 2144 9273"))
        self.assertFalse(is_valid_phone("1234567"))
        self.assertFalse(is_valid_phone("012345abc"))

    def test_postcode(self):
        self.assertTrue(is_valid_postcode("50450"))
        self.assertFalse(is_valid_postcode("5045"))
        self.assertFalse(is_valid_postcode("5045a"))

    def test_cleaning(self):
        self.assertEqual(clean_email("  Ali@Example.COM "), "ali@example.com")
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text("nan"), "")
        self.assertEqual(clean_text("\xa0Rumah\xa0 "), "Rumah")
        self.assertEqual(normalize_phone("+60 12-345 6789"), "+60123456789")


if __name__ == "__main__":
    unittest.main()

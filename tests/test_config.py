import unittest
from unittest import mock

import config


class ValidateConfigTests(unittest.TestCase):
    def test_defaults_pass(self):
        config.validate_config()

    def test_s3_needs_bucket(self):
        with mock.patch.object(config, "STORAGE_BACKEND", "s3"), \
                mock.patch.object(config, "S3_BUCKET", None):
            with self.assertRaises(RuntimeError):
                config.validate_config()

    def test_prefix_needs_trailing_slash(self):
        with mock.patch.object(config, "S3_REPORT_PREFIX", "reports"):
            with self.assertRaises(RuntimeError):
                config.validate_config()

    def test_live_email_needs_credentials(self):
        with mock.patch.object(config, "EMAIL_ENABLED", True), \
                mock.patch.object(config, "EMAIL_DRY_RUN", False), \
                mock.patch.dict("os.environ", {"SMTP_USERNAME": "", "SMTP_PASSWORD": ""}):
            with self.assertRaises(RuntimeError):
                config.validate_config()


if __name__ == "__main__":
    unittest.main()

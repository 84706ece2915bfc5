import os

# Settings must be in place before config.py is imported anywhere, under
# pytest and `python -m unittest discover` alike.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["PAYMENT_DELAY_SCALE"] = "0"
os.environ["SMS_DRY_RUN"] = "1"
os.environ["EMAIL_ENABLED"] = "0"
os.environ["EMAIL_DRY_RUN"] = "1"
os.environ["ADMIN_ACCESS_KEY"] = "test-admin-key"
os.environ.pop("VERIFIER_API_KEY", None)
os.environ.pop("DB_HOST", None)

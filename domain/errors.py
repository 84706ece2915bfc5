# domain/errors.py
from __future__ import annotations

from typing import Iterable


class WarisanError(Exception):
    """Base class for errors the UI/API can show to a user as-is."""


class ValidationError(WarisanError):
    def __init__(self, errors: Iterable[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = [e for e in errors if e]
        super().__init__("; ".join(self.errors) or "Invalid input")


class NotFoundError(WarisanError):
    pass


class AuthError(WarisanError):
    pass


class PaymentError(WarisanError):
    pass

# backend/app/domain/errors.py
from __future__ import annotations


class BusinessRuleError(Exception):
    """
    A request broke a business rule (room already taken, bad check-in date, ...).

    `message` is shown to the end user as-is, so it is written in Vietnamese
    like the rest of the user-facing text.
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message

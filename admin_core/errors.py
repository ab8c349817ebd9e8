"""Error taxonomy for the admin dashboard.

Backend calls never raise on their own (errors come back as values); the
repository layer checks every response and raises one of these so that the
nearest operation handler can turn it into a user-facing message.
"""
from __future__ import annotations

from typing import Optional


class AdminError(Exception):
    """Base class for every error the dashboard reports to the user."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AdminError):
    """Raised before any network call when form input is unusable."""

    kind = "validation"

    def __init__(self, message: str, option_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.option_index = option_index


class BackendNotConfiguredError(AdminError):
    kind = "unconfigured"


class BackendReadError(AdminError):
    kind = "read"


class BackendWriteError(AdminError):
    kind = "write"


class PartialWriteError(BackendWriteError):
    """The question row was written but its options were not.

    ``rolled_back`` tells whether the compensating delete of the question
    succeeded; when it did not, ``question_id`` names the orphaned row.
    """

    kind = "partial_write"

    def __init__(self, message: str, question_id: Optional[int], rolled_back: bool) -> None:
        super().__init__(message)
        self.question_id = question_id
        self.rolled_back = rolled_back


__all__ = [
    "AdminError",
    "ValidationError",
    "BackendNotConfiguredError",
    "BackendReadError",
    "BackendWriteError",
    "PartialWriteError",
]

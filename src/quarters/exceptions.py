"""Errors raised by the quarterly close workflow.

Every precondition failure is also a ``ValueError`` so API views can keep
translating business errors with ``except ValueError``.
"""
from core.exceptions import CRMError, NotFoundError

__all__ = [
    "CloseFailedError",
    "InvalidAmountError",
    "InvalidIdError",
    "InvalidStateError",
    "InvalidTransitionError",
    "NotFoundError",
    "PartialAggregationWarning",
]


class InvalidIdError(CRMError, ValueError):
    """Malformed quarter identifier (expected ``q<1-4>-<year>``)."""


class InvalidStateError(CRMError, ValueError):
    """The quarter is not in a state that allows the requested operation."""


class InvalidTransitionError(CRMError, ValueError):
    """Status change that would break ``open -> closed -> archived``."""


class InvalidAmountError(CRMError, ValueError):
    """Withdrawal amount is negative or exceeds the cash on hand."""


class CloseFailedError(CRMError):
    """A mutation step of the close failed; earlier mutations are kept."""


class PartialAggregationWarning(UserWarning):
    """One source of a quarterly summary could not be read and counted as 0."""

    def __init__(self, quarter_id, source, error):
        self.quarter_id = quarter_id
        self.source = source
        self.error = error
        super().__init__(f"{quarter_id}: {source} unavailable ({error})")

from __future__ import annotations


class EconomyServiceError(Exception):
    """Base exception for all economy-service business errors."""

    code = "economy_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(EconomyServiceError):
    """Unknown student, shop item or coupon."""

    code = "not_found"


class InsufficientBalanceError(EconomyServiceError):
    """A spend would drive the student's balance below zero."""

    code = "insufficient_balance"


class ItemInactiveError(EconomyServiceError):
    """The shop item is deactivated and cannot be purchased."""

    code = "item_inactive"


class InvalidTransitionError(EconomyServiceError):
    """Coupon state machine violation."""

    code = "invalid_transition"


class InvalidArgumentError(EconomyServiceError):
    """Malformed input (non-positive amount, blank reason, ...)."""

    code = "invalid_argument"


class BalanceConflictError(EconomyServiceError):
    """The balance kept changing while it was being reset."""

    code = "balance_conflict"

"""Engine error taxonomy."""
from __future__ import annotations


class LendingError(Exception):
    """Base class for all borrowing-engine errors."""


class ValidationError(LendingError):
    """Malformed input; raised before any write."""


class PositionNotFound(ValidationError):
    """No position with that id belongs to the borrower."""


class LimitExceeded(LendingError):
    """Requested LTV is above the asset class ceiling."""

    def __init__(
        self, max_borrowable: float, max_ltv: float, requested_ltv: float
    ) -> None:
        self.max_borrowable = max_borrowable
        self.max_ltv = max_ltv
        self.requested_ltv = requested_ltv
        super().__init__(
            f"Requested LTV {requested_ltv:.2%} exceeds maximum {max_ltv:.2%}. "
            f"Maximum borrowable: ${max_borrowable:,.2f}"
        )


class NoEligibleCollateral(LendingError):
    """Borrower has no tokenized, uncommitted assets."""


class ConflictError(LendingError):
    """Asset already backs another active position."""


class CollaboratorUnavailable(LendingError):
    """An external store did not respond or failed."""

"""Exception types for the staking reward engine.

Every failure carries an ``ErrorKind`` so that ``StakeController.step()`` can
report a rejection without callers matching on exception classes.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorKind(Enum):
    INVALID_ARGUMENT = "InvalidArgument"
    UNAUTHORIZED = "Unauthorized"
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    EXPIRED = "Expired"
    TRANSFER_FAILED = "TransferFailed"
    INVARIANT_VIOLATION = "InvariantViolation"


class StakingError(Exception):
    """Base class; aborts the enclosing operation."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT


class InvalidArgument(StakingError):
    """Zero/malformed identifier or non-positive weight/amount."""

    kind = ErrorKind.INVALID_ARGUMENT


class Unauthorized(StakingError):
    """Caller lacks the authority required for the operation."""

    kind = ErrorKind.UNAUTHORIZED


class NotFound(StakingError):
    """Unknown pool id or unregistered staked asset."""

    kind = ErrorKind.NOT_FOUND


class AlreadyExists(StakingError):
    """A pool is already registered for the staked asset."""

    kind = ErrorKind.ALREADY_EXISTS


class InsufficientFunds(StakingError):
    """Withdrawal above stake, or a payer that cannot pay in full."""

    kind = ErrorKind.INSUFFICIENT_FUNDS


class Expired(StakingError):
    """Pool registration attempted at or after the reward cutoff."""

    kind = ErrorKind.EXPIRED


class TransferFailed(StakingError):
    """The asset gateway reported an unsuccessful transfer."""

    kind = ErrorKind.TRANSFER_FAILED


class InvariantViolation(StakingError):
    """Raised when a post-state violates one or more invariants."""

    kind = ErrorKind.INVARIANT_VIOLATION

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")

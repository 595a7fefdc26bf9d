"""Error taxonomy for claim adjudication.

Every error carries the HTTP status the boundary layer reports it with, so
routers never translate error types by hand.
"""
from __future__ import annotations


class AdjudicationError(Exception):
    """Base class for all errors reported synchronously to callers."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(AdjudicationError):
    """Claim, item or conflict does not exist."""

    status_code = 404


class Forbidden(AdjudicationError):
    """Actor lacks the required role, capability or ownership."""

    status_code = 403


class InvalidTransition(AdjudicationError):
    """Requested status change violates the claim state machine."""

    status_code = 409


class DuplicateActiveClaim(AdjudicationError):
    """Claimant already has a pending or conflicted claim on the item."""

    status_code = 409


class ValidationError(AdjudicationError):
    """Malformed proof set, score out of range or blank mandatory field."""

    status_code = 422

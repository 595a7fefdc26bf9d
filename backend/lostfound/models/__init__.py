"""Pydantic models for the claim adjudication core."""

from lostfound.models.archive import ArchivedClaim, DataRetentionPolicy, RetentionAction
from lostfound.models.audit import AuditLog
from lostfound.models.claims import (
    ACTIVE_STATUSES,
    ANONYMIZED_CLAIMANT,
    TERMINAL_STATUSES,
    Claim,
    ClaimStatus,
    ConfidenceTier,
)
from lostfound.models.conflicts import ClaimConflict
from lostfound.models.decisions import (
    ApprovalStep,
    ClaimDecision,
    DecisionKind,
    status_from_history,
)

__all__ = [
    # Claims
    "Claim",
    "ClaimStatus",
    "ConfidenceTier",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "ANONYMIZED_CLAIMANT",
    # Conflicts
    "ClaimConflict",
    # Decisions
    "ClaimDecision",
    "DecisionKind",
    "ApprovalStep",
    "status_from_history",
    # Archival
    "ArchivedClaim",
    "DataRetentionPolicy",
    "RetentionAction",
    # Audit
    "AuditLog",
]

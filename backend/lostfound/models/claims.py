"""Claim model for the lost & found adjudication core.

A claim is a user's assertion that they own a specific found item.

Status state machine:
- PENDING: submitted, awaiting a decision
- CONFLICT: another active claim competes for the same item
- APPROVED / REJECTED: decided by an adjudicator (terminal)
- WITHDRAWN: retracted by the claimant (terminal)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator


class ClaimStatus(str, Enum):
    """Lifecycle status of a claim."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    CONFLICT = "conflict"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


TERMINAL_STATUSES = frozenset(
    {ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.WITHDRAWN}
)
ACTIVE_STATUSES = frozenset({ClaimStatus.PENDING, ClaimStatus.CONFLICT})


class ConfidenceTier(str, Enum):
    """Coarse bucket summarizing proof strength."""

    FULL = "full"
    PARTIAL = "partial"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Ordering weight, higher is stronger."""
        return _TIER_RANK[self]


_TIER_RANK = {
    ConfidenceTier.FULL: 2,
    ConfidenceTier.PARTIAL: 1,
    ConfidenceTier.LOW: 0,
}

# Placeholder written over claimant_id by the anonymize retention action
ANONYMIZED_CLAIMANT = "anonymized"

CLAIM_COLUMNS = (
    "id",
    "item_id",
    "claimant_id",
    "ownership_proofs_json",
    "proof_score",
    "ai_confidence_score",
    "confidence_tier",
    "status",
    "submitted_at_utc",
    "resolved_at_utc",
    "resolved_by",
    "admin_notes",
    "is_admin_override",
    "anonymized",
)


class Claim(BaseModel):
    """An ownership claim on a found item.

    Attributes:
        id: Unique identifier (auto-generated UUID).
        item_id: The found item being claimed.
        claimant_id: The user asserting ownership.
        ownership_proofs: Ordered proof artifact references.
        proof_score: Externally computed proof strength.
        ai_confidence_score: Optional externally computed confidence.
        confidence_tier: Routing bucket (full, partial, low).
        status: Current lifecycle status.
        submitted_at: When the claim was submitted.
        resolved_at: When the claim reached a terminal status.
        resolved_by: Actor who moved the claim to a terminal status.
        admin_notes: Remarks from the most recent decision.
        is_admin_override: Whether the claim was approved by override.
        anonymized: Whether claimant data was stripped by retention.
    """

    id: UUID = Field(default_factory=uuid4)
    item_id: str = Field(..., min_length=1, description="Claimed item")
    claimant_id: str = Field(..., min_length=1, description="Claiming user")
    ownership_proofs: list[str] = Field(
        default_factory=list, description="Proof artifact references"
    )
    proof_score: float = Field(..., description="Externally computed proof score")
    ai_confidence_score: float | None = Field(
        default=None, description="Externally computed AI confidence"
    )
    confidence_tier: ConfidenceTier = Field(..., description="Confidence tier")
    status: ClaimStatus = Field(default=ClaimStatus.PENDING)
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when claim was submitted",
    )
    resolved_at: datetime | None = Field(default=None)
    resolved_by: str | None = Field(default=None)
    admin_notes: str | None = Field(default=None)
    is_admin_override: bool = Field(default=False)
    anonymized: bool = Field(default=False)

    @model_validator(mode="after")
    def validate_resolution_fields(self) -> "Claim":
        """resolved_at/resolved_by are set iff the status is terminal."""
        resolved = self.resolved_at is not None and self.resolved_by is not None
        unresolved = self.resolved_at is None and self.resolved_by is None
        if self.status.is_terminal and not resolved:
            raise ValueError("terminal claims require resolved_at and resolved_by")
        if not self.status.is_terminal and not unresolved:
            raise ValueError("active claims cannot carry resolved_at or resolved_by")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def snapshot(self) -> dict[str, Any]:
        """JSON-safe copy of every field, used for archival."""
        return self.model_dump(mode="json")

    def to_db_row(self) -> tuple:
        """Convert model to database row tuple in CLAIM_COLUMNS order."""
        return (
            str(self.id),
            self.item_id,
            self.claimant_id,
            json.dumps(self.ownership_proofs),
            self.proof_score,
            self.ai_confidence_score,
            self.confidence_tier.value,
            self.status.value,
            self.submitted_at.isoformat(timespec="microseconds"),
            self.resolved_at.isoformat(timespec="microseconds") if self.resolved_at else None,
            self.resolved_by,
            self.admin_notes,
            int(self.is_admin_override),
            int(self.anonymized),
        )

    @classmethod
    def from_db_row(cls, row: Sequence) -> "Claim":
        """Reconstruct Claim from a row in CLAIM_COLUMNS order."""
        return cls(
            id=UUID(row[0]),
            item_id=row[1],
            claimant_id=row[2],
            ownership_proofs=json.loads(row[3]) if row[3] else [],
            proof_score=row[4],
            ai_confidence_score=row[5],
            confidence_tier=ConfidenceTier(row[6]),
            status=ClaimStatus(row[7]),
            submitted_at=datetime.fromisoformat(row[8]),
            resolved_at=datetime.fromisoformat(row[9]) if row[9] else None,
            resolved_by=row[10],
            admin_notes=row[11],
            is_admin_override=bool(row[12]),
            anonymized=bool(row[13]),
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "550e8400-e29b-41d4-a716-446655440000",
                    "item_id": "item-7f3a",
                    "claimant_id": "user-42",
                    "ownership_proofs": ["receipt.pdf", "Sticker on the lid"],
                    "proof_score": 82.5,
                    "ai_confidence_score": 0.91,
                    "confidence_tier": "full",
                    "status": "pending",
                    "submitted_at": "2025-03-02T09:15:00Z",
                    "is_admin_override": False,
                    "anonymized": False,
                }
            ]
        }
    }

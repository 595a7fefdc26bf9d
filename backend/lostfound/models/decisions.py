"""ClaimDecision model: the append-only adjudication trail.

Decisions are frozen once created. Several decisions may exist for one claim;
the most recent terminal one determines its status.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lostfound.models.claims import ClaimStatus


class DecisionKind(str, Enum):
    """Kind of adjudication decision."""

    APPROVED = "approved"
    REJECTED = "rejected"
    OVERRIDE = "override"

    @property
    def resulting_status(self) -> ClaimStatus:
        """Claim status this decision moves the decided claim to."""
        if self is DecisionKind.REJECTED:
            return ClaimStatus.REJECTED
        return ClaimStatus.APPROVED


class ApprovalStep(BaseModel):
    """One sign-off in a multi-party approval chain."""

    model_config = ConfigDict(frozen=True)

    approver_id: Annotated[str, Field(min_length=1)]
    approved_at: datetime


DECISION_COLUMNS = (
    "id",
    "claim_id",
    "decided_by",
    "decision",
    "remarks",
    "approval_chain_json",
    "timestamp_utc",
)


class ClaimDecision(BaseModel):
    """An immutable decision event on a claim.

    Attributes:
        id: Unique identifier (auto-generated UUID).
        claim_id: The decided claim.
        decided_by: Actor who issued the decision.
        decision: approved, rejected or override.
        remarks: Mandatory rationale.
        approval_chain: Ordered sign-offs, never mutated after creation.
        timestamp: When the decision was recorded.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    claim_id: UUID
    decided_by: Annotated[str, Field(min_length=1)]
    decision: DecisionKind
    remarks: Annotated[str, Field(min_length=1)]
    approval_chain: tuple[ApprovalStep, ...] = Field(default=())
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("approval_chain")
    @classmethod
    def validate_chain_order(
        cls, chain: tuple[ApprovalStep, ...]
    ) -> tuple[ApprovalStep, ...]:
        """Sign-off timestamps must be non-decreasing."""
        for earlier, later in zip(chain, chain[1:]):
            if later.approved_at < earlier.approved_at:
                raise ValueError("approval_chain timestamps must be in order")
        return chain

    def to_db_row(self) -> tuple:
        return (
            str(self.id),
            str(self.claim_id),
            self.decided_by,
            self.decision.value,
            self.remarks,
            json.dumps(
                [
                    {
                        "approver_id": step.approver_id,
                        "approved_at": step.approved_at.isoformat(timespec="microseconds"),
                    }
                    for step in self.approval_chain
                ]
            ),
            self.timestamp.isoformat(timespec="microseconds"),
        )

    @classmethod
    def from_db_row(cls, row: Sequence) -> "ClaimDecision":
        chain = json.loads(row[5]) if row[5] else []
        return cls(
            id=UUID(row[0]),
            claim_id=UUID(row[1]),
            decided_by=row[2],
            decision=DecisionKind(row[3]),
            remarks=row[4],
            approval_chain=tuple(
                ApprovalStep(
                    approver_id=step["approver_id"],
                    approved_at=datetime.fromisoformat(step["approved_at"]),
                )
                for step in chain
            ),
            timestamp=datetime.fromisoformat(row[6]),
        )


def status_from_history(decisions: Sequence[ClaimDecision]) -> ClaimStatus | None:
    """Status implied by the most recent decision, or None without history."""
    if not decisions:
        return None
    latest = max(decisions, key=lambda d: d.timestamp)
    return latest.decision.resulting_status

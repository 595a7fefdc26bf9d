"""ClaimConflict model.

A conflict records that two or more active claims compete for the same item.
While a conflict is open the item is held from ordinary approval.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

CONFLICT_COLUMNS = (
    "id",
    "item_id",
    "conflicting_claims_json",
    "detected_at_utc",
    "resolved",
    "resolved_at_utc",
)


class ClaimConflict(BaseModel):
    """Competing active claims on one item.

    Attributes:
        id: Unique identifier (auto-generated UUID).
        item_id: The contested item.
        conflicting_claims: Claim ids judged concurrently active.
        detected_at: When the conflict was first detected.
        resolved: Whether the conflict has been cleared.
        resolved_at: When the conflict was cleared.
    """

    id: UUID = Field(default_factory=uuid4)
    item_id: str = Field(..., min_length=1)
    conflicting_claims: list[UUID] = Field(..., min_length=2)
    detected_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    resolved: bool = Field(default=False)
    resolved_at: datetime | None = Field(default=None)

    def involves(self, claim_id: UUID) -> bool:
        return claim_id in self.conflicting_claims

    def to_db_row(self) -> tuple:
        return (
            str(self.id),
            self.item_id,
            json.dumps([str(c) for c in self.conflicting_claims]),
            self.detected_at.isoformat(timespec="microseconds"),
            int(self.resolved),
            self.resolved_at.isoformat(timespec="microseconds") if self.resolved_at else None,
        )

    @classmethod
    def from_db_row(cls, row: Sequence) -> "ClaimConflict":
        return cls(
            id=UUID(row[0]),
            item_id=row[1],
            conflicting_claims=[UUID(c) for c in json.loads(row[2])],
            detected_at=datetime.fromisoformat(row[3]),
            resolved=bool(row[4]),
            resolved_at=datetime.fromisoformat(row[5]) if row[5] else None,
        )

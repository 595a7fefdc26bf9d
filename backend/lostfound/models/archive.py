"""Retention policy and archived claim models."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class RetentionAction(str, Enum):
    """What happens to a live record once it is archived."""

    DELETE = "delete"
    ANONYMIZE = "anonymize"


class DataRetentionPolicy(BaseModel):
    """How long resolved records of an entity are kept live."""

    entity: str = Field(..., min_length=1, description="Governed entity, e.g. claims")
    retention_days: int = Field(..., ge=0)
    action: RetentionAction

    def to_db_row(self) -> tuple:
        return (self.entity, self.retention_days, self.action.value)

    @classmethod
    def from_db_row(cls, row: Sequence) -> "DataRetentionPolicy":
        return cls(entity=row[0], retention_days=row[1], action=RetentionAction(row[2]))


ARCHIVE_COLUMNS = (
    "id",
    "original_claim_id",
    "data_snapshot_json",
    "action",
    "archived_at_utc",
)


class ArchivedClaim(BaseModel):
    """Cold-storage snapshot of a terminal claim."""

    id: UUID = Field(default_factory=uuid4)
    original_claim_id: UUID
    data_snapshot: dict[str, Any]
    action: RetentionAction
    archived_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_db_row(self) -> tuple:
        return (
            str(self.id),
            str(self.original_claim_id),
            json.dumps(self.data_snapshot),
            self.action.value,
            self.archived_at.isoformat(timespec="microseconds"),
        )

    @classmethod
    def from_db_row(cls, row: Sequence) -> "ArchivedClaim":
        return cls(
            id=UUID(row[0]),
            original_claim_id=UUID(row[1]),
            data_snapshot=json.loads(row[2]),
            action=RetentionAction(row[3]),
            archived_at=datetime.fromisoformat(row[4]),
        )

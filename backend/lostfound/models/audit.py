"""AuditLog model: generic append-only record of mutating actions."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

AUDIT_COLUMNS = (
    "id",
    "actor_id",
    "action",
    "target_entity",
    "target_id",
    "metadata_json",
    "timestamp_utc",
)


class AuditLog(BaseModel):
    """One audit entry.

    Attributes:
        id: Unique identifier (auto-generated UUID).
        actor_id: Who performed the action (user id or system:<component>).
        action: Action name, e.g. claim_submitted.
        target_entity: Entity table, e.g. claims.
        target_id: Id of the affected record.
        metadata: Free-form structured context.
        timestamp: When the action happened.
    """

    id: UUID = Field(default_factory=uuid4)
    actor_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    target_entity: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_db_row(self) -> tuple:
        return (
            str(self.id),
            self.actor_id,
            self.action,
            self.target_entity,
            self.target_id,
            json.dumps(self.metadata, default=str),
            self.timestamp.isoformat(timespec="microseconds"),
        )

    @classmethod
    def from_db_row(cls, row: Sequence) -> "AuditLog":
        return cls(
            id=UUID(row[0]),
            actor_id=row[1],
            action=row[2],
            target_entity=row[3],
            target_id=row[4],
            metadata=json.loads(row[5]) if row[5] else {},
            timestamp=datetime.fromisoformat(row[6]),
        )

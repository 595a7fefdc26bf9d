"""Conflict detection among competing claims on one item.

``detect_conflicts`` runs inside the caller's transaction after every claim
submission or status change, so the active-claim count it sees and the
conflict record it writes belong to the same serialized unit of work.
"""
from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from uuid import UUID

from lostfound.db import (
    fetch_claims_for_item,
    fetch_open_conflict,
    insert_conflict,
    list_conflicts_for_item,
    update_claim,
    update_conflict,
    utc_now,
    write_audit_entry,
)
from lostfound.errors import NotFound
from lostfound.events import DomainEvent, DomainEventType
from lostfound.models.claims import ACTIVE_STATUSES, Claim, ClaimStatus
from lostfound.models.conflicts import ClaimConflict

logger = logging.getLogger(__name__)


@dataclass
class ConflictOutcome:
    """What a detector run found and changed for one item."""

    item_id: str
    active_claim_ids: list[UUID] = field(default_factory=list)
    conflict: ClaimConflict | None = None
    created: bool = False
    resolved: bool = False

    @property
    def has_open_conflict(self) -> bool:
        return self.conflict is not None and not self.conflict.resolved

    def to_events(self) -> list[DomainEvent]:
        """Events to publish once the surrounding transaction commits."""
        if self.conflict is None:
            return []
        data = {
            "item_id": self.item_id,
            "conflict_id": str(self.conflict.id),
            "claim_ids": [str(c) for c in self.conflict.conflicting_claims],
        }
        if self.created:
            return [DomainEvent(DomainEventType.CONFLICT_DETECTED, data)]
        if self.resolved:
            return [DomainEvent(DomainEventType.CONFLICT_RESOLVED, data)]
        return []


def detect_conflicts(
    conn: sqlite3.Connection,
    *,
    item_id: str,
    actor_id: str,
    now: datetime | None = None,
) -> ConflictOutcome:
    """Re-evaluate the active claims on an item.

    Two or more active claims: make sure an open conflict references all of
    them and flag them ``conflict``. One or none: resolve the open conflict
    and return a lone flagged claim to ``pending``.
    """
    now = now or utc_now()
    active = fetch_claims_for_item(conn, item_id, ACTIVE_STATUSES)
    open_conflict = fetch_open_conflict(conn, item_id)
    outcome = ConflictOutcome(
        item_id=item_id,
        active_claim_ids=[c.id for c in active],
        conflict=open_conflict,
    )

    if len(active) >= 2:
        if open_conflict is None:
            conflict = ClaimConflict(
                item_id=item_id,
                conflicting_claims=outcome.active_claim_ids,
                detected_at=now,
            )
            insert_conflict(conn, conflict)
            write_audit_entry(
                conn,
                actor_id=actor_id,
                action="conflict_detected",
                target_entity="claim_conflicts",
                target_id=conflict.id,
                metadata={"item_id": item_id, "claim_ids": [str(c) for c in conflict.conflicting_claims]},
                timestamp=now,
            )
            outcome.conflict = conflict
            outcome.created = True
            logger.info("Conflict detected on item %s across %d claims", item_id, len(active))
        else:
            added = [cid for cid in outcome.active_claim_ids if not open_conflict.involves(cid)]
            if added:
                conflict = open_conflict.model_copy(
                    update={"conflicting_claims": [*open_conflict.conflicting_claims, *added]}
                )
                update_conflict(conn, conflict)
                write_audit_entry(
                    conn,
                    actor_id=actor_id,
                    action="conflict_updated",
                    target_entity="claim_conflicts",
                    target_id=conflict.id,
                    metadata={"item_id": item_id, "added_claim_ids": [str(c) for c in added]},
                    timestamp=now,
                )
                outcome.conflict = conflict
        _set_status(conn, active, ClaimStatus.CONFLICT, "claim_conflict_flagged", actor_id, now)
    else:
        if open_conflict is not None:
            conflict = open_conflict.model_copy(update={"resolved": True, "resolved_at": now})
            update_conflict(conn, conflict)
            write_audit_entry(
                conn,
                actor_id=actor_id,
                action="conflict_resolved",
                target_entity="claim_conflicts",
                target_id=conflict.id,
                metadata={"item_id": item_id, "remaining_active": [str(c) for c in outcome.active_claim_ids]},
                timestamp=now,
            )
            outcome.conflict = conflict
            outcome.resolved = True
            logger.info("Conflict %s on item %s resolved", conflict.id, item_id)
        _set_status(conn, active, ClaimStatus.PENDING, "claim_conflict_cleared", actor_id, now)

    return outcome


def _set_status(
    conn: sqlite3.Connection,
    claims: Iterable[Claim],
    status: ClaimStatus,
    action: str,
    actor_id: str,
    now: datetime,
) -> None:
    for claim in claims:
        if claim.status == status:
            continue
        update_claim(conn, claim.model_copy(update={"status": status}))
        write_audit_entry(
            conn,
            actor_id=actor_id,
            action=action,
            target_entity="claims",
            target_id=claim.id,
            metadata={"item_id": claim.item_id, "from": claim.status.value, "to": status.value},
            timestamp=now,
        )


def rank_claims(claims: Iterable[Claim]) -> list[Claim]:
    """Advisory adjudication order, strongest first.

    Tier (full > partial > low), then proof score descending, then earliest
    submission. Never changes any claim's status.
    """
    return sorted(
        claims,
        key=lambda c: (-c.confidence_tier.rank, -c.proof_score, c.submitted_at),
    )


def get_conflict_for_item(db_path: Path, item_id: str) -> ClaimConflict:
    """The item's open conflict, else its most recently detected one."""
    conflicts = list_conflicts_for_item(db_path, item_id)
    if not conflicts:
        raise NotFound(f"No conflict recorded for item {item_id}")
    for conflict in conflicts:
        if not conflict.resolved:
            return conflict
    return conflicts[0]

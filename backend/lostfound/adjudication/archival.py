"""Retention-driven archival of terminal claims.

The sweep is periodic, not request driven. Each claim is handled in its own
short transaction so the sweep never holds the store for more than one claim
at a time, and an interrupted sweep simply resumes on the next run: the
existence check on ``original_claim_id`` keeps snapshots unique.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from pathlib import Path

from lostfound import db
from lostfound.events import DomainEvent, DomainEventType, EventBus, get_event_bus
from lostfound.models.archive import ArchivedClaim, DataRetentionPolicy, RetentionAction
from lostfound.models.claims import ANONYMIZED_CLAIMANT

logger = logging.getLogger(__name__)

ARCHIVAL_ACTOR = "system:archival"
CLAIMS_ENTITY = "claims"


@dataclass
class SweepReport:
    policies_applied: int = 0
    archived: int = 0
    deleted: int = 0
    anonymized: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _archive_one(
    db_path: Path,
    claim_id: str,
    policy: DataRetentionPolicy,
    now: datetime,
) -> tuple[str, bool, DomainEvent | None]:
    """Snapshot and delete/anonymize one claim.

    Returns (outcome, newly_archived, event) where outcome is one of
    "deleted", "anonymized" or "skipped".
    """
    with db.transaction(db_path) as conn:
        claim = db.fetch_claim(conn, claim_id)
        # Gone or reopened since selection
        if claim is None or not claim.is_terminal:
            return "skipped", False, None

        newly_archived = False
        if not db.archived_claim_exists(conn, claim.id):
            db.insert_archived_claim(
                conn,
                ArchivedClaim(
                    original_claim_id=claim.id,
                    data_snapshot=claim.snapshot(),
                    action=policy.action,
                    archived_at=now,
                ),
            )
            newly_archived = True

        if policy.action is RetentionAction.DELETE:
            db.delete_claim(conn, claim.id)
            outcome = "deleted"
        else:
            resolved_by = claim.resolved_by
            if resolved_by == claim.claimant_id:
                resolved_by = ANONYMIZED_CLAIMANT
            db.update_claim(
                conn,
                claim.model_copy(
                    update={
                        "claimant_id": ANONYMIZED_CLAIMANT,
                        "ownership_proofs": [],
                        "admin_notes": None,
                        "resolved_by": resolved_by,
                        "anonymized": True,
                    }
                ),
            )
            outcome = "anonymized"

        db.write_audit_entry(
            conn,
            actor_id=ARCHIVAL_ACTOR,
            action=f"claim_archived_{outcome}",
            target_entity="claims",
            target_id=claim.id,
            metadata={
                "item_id": claim.item_id,
                "retention_days": policy.retention_days,
                "snapshot_created": newly_archived,
            },
            timestamp=now,
        )

    event = DomainEvent(
        DomainEventType.CLAIM_ARCHIVED,
        {"claim_id": str(claim.id), "item_id": claim.item_id, "action": policy.action.value},
    )
    return outcome, newly_archived, event


def _apply_claim_policy(
    db_path: Path,
    policy: DataRetentionPolicy,
    now: datetime,
    report: SweepReport,
    bus: EventBus,
) -> None:
    cutoff = now - timedelta(days=policy.retention_days)
    eligible = db.list_terminal_claim_ids_resolved_before(
        db_path,
        cutoff,
        include_anonymized=policy.action is RetentionAction.DELETE,
    )
    for claim_id in eligible:
        try:
            outcome, newly_archived, event = _archive_one(db_path, claim_id, policy, now)
        except Exception:
            logger.exception("Archival of claim %s failed; will retry next sweep", claim_id)
            report.failed += 1
            continue
        if outcome == "skipped":
            report.skipped += 1
            continue
        if newly_archived:
            report.archived += 1
        if outcome == "deleted":
            report.deleted += 1
        else:
            report.anonymized += 1
        if event is not None:
            bus.publish(event)


def run_archival_sweep(
    db_path: Path,
    *,
    now: datetime | None = None,
    bus: EventBus | None = None,
) -> SweepReport:
    """Apply every claims retention policy once.

    A failing policy or claim is logged and skipped; the rest of the sweep
    continues and the failure is retried on the next scheduled run.
    """
    now = now or db.utc_now()
    bus = bus or get_event_bus()
    report = SweepReport()

    for policy in db.list_retention_policies(db_path):
        if policy.entity != CLAIMS_ENTITY:
            logger.debug("Skipping retention policy for unsupported entity %s", policy.entity)
            continue
        try:
            _apply_claim_policy(db_path, policy, now, report, bus)
        except Exception:
            logger.exception("Retention policy %s failed; will retry next sweep", policy.entity)
            report.failed += 1
            continue
        report.policies_applied += 1

    logger.info("Archival sweep finished: %s", report.to_dict())
    return report


def list_archived_claims(db_path: Path, limit: int = 100) -> list[ArchivedClaim]:
    return db.list_archived_claims(db_path, limit=limit)


def get_archived_claim(db_path: Path, original_claim_id: str) -> ArchivedClaim | None:
    return db.get_archived_claim(db_path, original_claim_id)

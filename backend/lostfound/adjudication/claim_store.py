"""Claim submission, withdrawal and lookup.

Submission and withdrawal each run as one BEGIN IMMEDIATE transaction that
also re-runs conflict detection for the item, so two concurrent submissions
can never both see "no conflict".
"""
from __future__ import annotations

import logging
import math
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from uuid import UUID

from lostfound import db
from lostfound.adjudication.conflict_detector import detect_conflicts
from lostfound.adjudication.tiers import resolve_confidence_tier
from lostfound.errors import (
    DuplicateActiveClaim,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from lostfound.events import DomainEventType, EventBus, get_event_bus
from lostfound.models.claims import Claim, ClaimStatus, ConfidenceTier
from lostfound.settings import Settings
from lostfound.settings import settings as default_settings

logger = logging.getLogger(__name__)


def _validate_score(name: str, value: float | None, settings: Settings) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number")
    if not settings.proof_score_min <= value <= settings.proof_score_max:
        raise ValidationError(
            f"{name} {value} outside [{settings.proof_score_min}, {settings.proof_score_max}]"
        )


def validate_submission(
    *,
    item_id: str,
    claimant_id: str,
    ownership_proofs: Sequence[str],
    proof_score: float,
    ai_confidence_score: float | None,
    settings: Settings,
) -> list[str]:
    """Check a submission and return the cleaned proof list."""
    if not item_id or not item_id.strip():
        raise ValidationError("item_id is required")
    if not claimant_id or not claimant_id.strip():
        raise ValidationError("claimant_id is required")
    if isinstance(ownership_proofs, str) or not ownership_proofs:
        raise ValidationError("At least one ownership proof is required")
    proofs: list[str] = []
    for proof in ownership_proofs:
        if not isinstance(proof, str) or not proof.strip():
            raise ValidationError("Ownership proofs must be non-empty strings")
        proofs.append(proof.strip())
    if proof_score is None:
        raise ValidationError("proof_score is required")
    _validate_score("proof_score", proof_score, settings)
    _validate_score("ai_confidence_score", ai_confidence_score, settings)
    return proofs


def submit_claim(
    db_path: Path,
    *,
    item_id: str,
    claimant_id: str,
    ownership_proofs: Sequence[str],
    proof_score: float,
    ai_confidence_score: float | None = None,
    confidence_tier: ConfidenceTier | str | None = None,
    settings: Settings | None = None,
    bus: EventBus | None = None,
) -> Claim:
    """Create a pending claim and re-run conflict detection for the item.

    Returns the claim as stored after detection, so its status is already
    ``conflict`` when a competing active claim exists.

    Raises:
        ValidationError: malformed proofs or scores.
        DuplicateActiveClaim: the claimant already has an active claim on the item.
    """
    settings = settings or default_settings
    bus = bus or get_event_bus()
    proofs = validate_submission(
        item_id=item_id,
        claimant_id=claimant_id,
        ownership_proofs=ownership_proofs,
        proof_score=proof_score,
        ai_confidence_score=ai_confidence_score,
        settings=settings,
    )
    tier = resolve_confidence_tier(confidence_tier, proof_score, settings)
    claim = Claim(
        item_id=item_id.strip(),
        claimant_id=claimant_id.strip(),
        ownership_proofs=proofs,
        proof_score=float(proof_score),
        ai_confidence_score=ai_confidence_score,
        confidence_tier=tier,
        submitted_at=db.utc_now(),
    )

    with db.transaction(db_path) as conn:
        existing = db.fetch_active_claim_for_pair(conn, claim.item_id, claim.claimant_id)
        if existing is not None:
            raise DuplicateActiveClaim(
                f"Claimant {claim.claimant_id} already has active claim {existing.id} "
                f"on item {claim.item_id}"
            )
        try:
            db.insert_claim(conn, claim)
        except sqlite3.IntegrityError as e:
            raise DuplicateActiveClaim(
                f"Claimant {claim.claimant_id} already has an active claim on item {claim.item_id}"
            ) from e
        db.write_audit_entry(
            conn,
            actor_id=claim.claimant_id,
            action="claim_submitted",
            target_entity="claims",
            target_id=claim.id,
            metadata={
                "item_id": claim.item_id,
                "proof_score": claim.proof_score,
                "confidence_tier": claim.confidence_tier.value,
                "proof_count": len(claim.ownership_proofs),
            },
            timestamp=claim.submitted_at,
        )
        outcome = detect_conflicts(
            conn, item_id=claim.item_id, actor_id=claim.claimant_id, now=claim.submitted_at
        )
        stored = db.fetch_claim(conn, claim.id)

    logger.info("Claim %s submitted on item %s (status=%s)", claim.id, claim.item_id, stored.status.value)
    bus.emit(
        DomainEventType.CLAIM_SUBMITTED,
        {
            "claim_id": str(claim.id),
            "item_id": claim.item_id,
            "claimant_id": claim.claimant_id,
            "status": stored.status.value,
        },
    )
    bus.publish_all(outcome.to_events())
    return stored


def withdraw_claim(
    db_path: Path,
    *,
    claim_id: UUID | str,
    actor_id: str,
    bus: EventBus | None = None,
) -> Claim:
    """Withdraw an active claim on behalf of its claimant.

    Withdrawal is not a decision: no ClaimDecision is written.

    Raises:
        NotFound: no such claim.
        Forbidden: actor is not the claimant.
        InvalidTransition: the claim is already terminal.
    """
    bus = bus or get_event_bus()
    with db.transaction(db_path) as conn:
        claim = db.fetch_claim(conn, claim_id)
        if claim is None:
            raise NotFound(f"Claim {claim_id} not found")
        if claim.claimant_id != actor_id:
            raise Forbidden("Only the claimant can withdraw a claim")
        if claim.is_terminal:
            raise InvalidTransition(
                f"Claim {claim.id} is already {claim.status.value}"
            )
        now = db.utc_now()
        withdrawn = claim.model_copy(
            update={
                "status": ClaimStatus.WITHDRAWN,
                "resolved_at": now,
                "resolved_by": actor_id,
            }
        )
        db.update_claim(conn, withdrawn)
        db.write_audit_entry(
            conn,
            actor_id=actor_id,
            action="claim_withdrawn",
            target_entity="claims",
            target_id=claim.id,
            metadata={"item_id": claim.item_id, "previous_status": claim.status.value},
            timestamp=now,
        )
        outcome = detect_conflicts(conn, item_id=claim.item_id, actor_id=actor_id, now=now)

    logger.info("Claim %s withdrawn by claimant", claim.id)
    bus.emit(DomainEventType.CLAIM_WITHDRAWN, {"claim_id": str(claim.id), "item_id": claim.item_id})
    bus.publish_all(outcome.to_events())
    return withdrawn


def get_claim(db_path: Path, claim_id: UUID | str) -> Claim:
    claim = db.get_claim(db_path, claim_id)
    if claim is None:
        raise NotFound(f"Claim {claim_id} not found")
    return claim


def list_claims_for_item(db_path: Path, item_id: str) -> list[Claim]:
    return db.list_claims_for_item(db_path, item_id)


def list_claims_for_user(db_path: Path, claimant_id: str) -> list[Claim]:
    return db.list_claims_for_user(db_path, claimant_id)


MAX_PAGE_SIZE = 100


def list_claims(
    db_path: Path,
    *,
    status: ClaimStatus | str | None = None,
    limit: int = 20,
    skip: int = 0,
) -> tuple[list[Claim], int]:
    """Admin review listing, newest first, with the unpaged total."""
    if status is not None and not isinstance(status, ClaimStatus):
        try:
            status = ClaimStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown claim status: {status}") from e
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return db.list_claims(db_path, status=status, limit=limit, skip=max(0, skip))


def claim_stats(db_path: Path) -> dict[str, int]:
    return db.claim_stats(db_path)

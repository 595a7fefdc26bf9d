"""Adjudication decisions on claims.

Each call writes one immutable ClaimDecision for the decided claim (plus one
per sibling rejected by an override), moves the claims to their terminal
status, appends audit entries and re-runs conflict detection, all inside a
single transaction.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any
from uuid import UUID

import pydantic

from lostfound import db
from lostfound.adjudication.conflict_detector import detect_conflicts
from lostfound.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from lostfound.events import DomainEvent, DomainEventType, EventBus, get_event_bus
from lostfound.identity import Actor
from lostfound.models.claims import ACTIVE_STATUSES, Claim, ClaimStatus
from lostfound.models.decisions import ApprovalStep, ClaimDecision, DecisionKind

logger = logging.getLogger(__name__)


def _parse_decision(decision: DecisionKind | str) -> DecisionKind:
    try:
        return DecisionKind(decision)
    except ValueError as e:
        raise ValidationError(
            "Decision must be one of: approved, rejected, override"
        ) from e


def build_approval_chain(
    steps: Iterable[ApprovalStep | Mapping[str, Any]],
) -> tuple[ApprovalStep, ...]:
    """Validate sign-offs into an immutable, time-ordered chain."""
    try:
        chain = tuple(
            step if isinstance(step, ApprovalStep) else ApprovalStep.model_validate(step)
            for step in steps
        )
    except pydantic.ValidationError as e:
        raise ValidationError(f"Malformed approval chain: {e.errors()[0]['msg']}") from e
    for step in chain:
        if not step.approver_id.strip():
            raise ValidationError("Approval chain approver_id must not be blank")
    for earlier, later in zip(chain, chain[1:]):
        if later.approved_at < earlier.approved_at:
            raise ValidationError("Approval chain timestamps must be in order")
    return chain


def _authorize(actor: Actor, kind: DecisionKind) -> None:
    if kind is DecisionKind.OVERRIDE:
        if not actor.can_override:
            raise Forbidden("Override requires the override capability")
    elif not actor.is_adjudicator:
        raise Forbidden("Admin access required to decide claims")


def _decision_events(decisions: list[ClaimDecision], claims: dict[UUID, Claim]) -> list[DomainEvent]:
    events = []
    for decision in decisions:
        claim = claims[decision.claim_id]
        events.append(
            DomainEvent(
                DomainEventType.DECISION_MADE,
                {
                    "decision_id": str(decision.id),
                    "claim_id": str(decision.claim_id),
                    "item_id": claim.item_id,
                    "claimant_id": claim.claimant_id,
                    "decision": decision.decision.value,
                    "status": claim.status.value,
                },
            )
        )
    return events


def decide_claim(
    db_path: Path,
    *,
    claim_id: UUID | str,
    actor: Actor,
    decision: DecisionKind | str,
    remarks: str,
    approval_chain: Iterable[ApprovalStep | Mapping[str, Any]] = (),
    bus: EventBus | None = None,
) -> ClaimDecision:
    """Record an adjudication decision on an active claim.

    ``approved`` and ``rejected`` need an adjudicator role. ``override`` needs
    the override capability and is the only way to approve a claim that is in
    conflict: the chosen claim is approved and every other active claim in the
    item's open conflict is rejected in the same transaction.

    Raises:
        ValidationError: unknown decision, blank remarks or bad approval chain.
        Forbidden: actor lacks the role or capability for this decision.
        NotFound: no such claim.
        InvalidTransition: claim is terminal, plain approval of a conflicted claim,
            or the item already has a different approved claim.
    """
    bus = bus or get_event_bus()
    kind = _parse_decision(decision)
    if not remarks or not remarks.strip():
        raise ValidationError("Remarks are required")
    remarks = remarks.strip()
    chain = build_approval_chain(approval_chain)
    _authorize(actor, kind)

    with db.transaction(db_path) as conn:
        claim = db.fetch_claim(conn, claim_id)
        if claim is None:
            raise NotFound(f"Claim {claim_id} not found")
        if claim.is_terminal:
            raise InvalidTransition(f"Claim {claim.id} is already {claim.status.value}")
        if kind is DecisionKind.APPROVED and claim.status == ClaimStatus.CONFLICT:
            raise InvalidTransition(
                f"Claim {claim.id} is in conflict; only an override can approve it"
            )
        if kind.resulting_status == ClaimStatus.APPROVED:
            owner = next(
                (
                    c
                    for c in db.fetch_claims_for_item(conn, claim.item_id, {ClaimStatus.APPROVED})
                    if c.id != claim.id
                ),
                None,
            )
            if owner is not None:
                raise InvalidTransition(
                    f"Item {claim.item_id} already has approved claim {owner.id}"
                )

        now = db.utc_now()
        primary = ClaimDecision(
            claim_id=claim.id,
            decided_by=actor.actor_id,
            decision=kind,
            remarks=remarks,
            approval_chain=chain,
            timestamp=now,
        )
        decided = claim.model_copy(
            update={
                "status": kind.resulting_status,
                "resolved_at": now,
                "resolved_by": actor.actor_id,
                "admin_notes": remarks,
                "is_admin_override": kind is DecisionKind.OVERRIDE,
            }
        )
        db.update_claim(conn, decided)
        db.insert_decision(conn, primary)
        db.write_audit_entry(
            conn,
            actor_id=actor.actor_id,
            action=f"claim_{kind.value}",
            target_entity="claims",
            target_id=claim.id,
            metadata={
                "decision_id": str(primary.id),
                "item_id": claim.item_id,
                "remarks": remarks,
                "previous_status": claim.status.value,
                "approval_chain": [step.approver_id for step in chain],
            },
            timestamp=now,
        )
        decisions = [primary]
        decided_claims = {decided.id: decided}

        if kind is DecisionKind.OVERRIDE:
            conflict = db.fetch_open_conflict(conn, claim.item_id)
            siblings = []
            if conflict is not None:
                siblings = [
                    c
                    for c in db.fetch_claims_for_item(conn, claim.item_id, ACTIVE_STATUSES)
                    if c.id != claim.id and conflict.involves(c.id)
                ]
            for sibling in siblings:
                rejection = ClaimDecision(
                    claim_id=sibling.id,
                    decided_by=actor.actor_id,
                    decision=DecisionKind.REJECTED,
                    remarks=f"Rejected by override approving claim {claim.id}: {remarks}",
                    timestamp=now,
                )
                rejected = sibling.model_copy(
                    update={
                        "status": ClaimStatus.REJECTED,
                        "resolved_at": now,
                        "resolved_by": actor.actor_id,
                        "admin_notes": rejection.remarks,
                    }
                )
                db.update_claim(conn, rejected)
                db.insert_decision(conn, rejection)
                db.write_audit_entry(
                    conn,
                    actor_id=actor.actor_id,
                    action="claim_rejected",
                    target_entity="claims",
                    target_id=sibling.id,
                    metadata={
                        "decision_id": str(rejection.id),
                        "item_id": sibling.item_id,
                        "override_of": str(claim.id),
                        "conflict_id": str(conflict.id),
                        "previous_status": sibling.status.value,
                    },
                    timestamp=now,
                )
                decisions.append(rejection)
                decided_claims[rejected.id] = rejected

        outcome = detect_conflicts(conn, item_id=claim.item_id, actor_id=actor.actor_id, now=now)

    logger.info(
        "Claim %s %s by %s (%d sibling(s) rejected)",
        claim.id,
        kind.value,
        actor.actor_id,
        len(decisions) - 1,
    )
    bus.publish_all(_decision_events(decisions, decided_claims))
    bus.publish_all(outcome.to_events())
    return primary


def list_decisions(db_path: Path, claim_id: UUID | str) -> list[ClaimDecision]:
    """Decision history for a claim, newest first."""
    decisions = db.list_decisions(db_path, claim_id)
    # History outlives archived-and-deleted claims
    if not decisions and db.get_claim(db_path, claim_id) is None:
        raise NotFound(f"Claim {claim_id} not found")
    return decisions

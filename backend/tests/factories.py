"""Factory functions for test data creation.

These factories provide sensible defaults for model instantiation and claim
submission, making tests more DRY and readable.

Usage:
    from tests.factories import make_claim, submit

    claim = make_claim(status=ClaimStatus.APPROVED)
    stored = submit(db_path, claimant_id="u1", proof_score=90)
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from lostfound.adjudication import submit_claim
from lostfound.events import EventBus
from lostfound.models import Claim, ClaimStatus, ConfidenceTier

DEFAULT_ITEM_ID = "item-umbrella-01"
DEFAULT_PROOFS = ["receipt.jpg", "Name written inside the handle"]


def make_claim(
    *,
    id: Optional[UUID] = None,
    item_id: str = DEFAULT_ITEM_ID,
    claimant_id: str = "student-1",
    ownership_proofs: Optional[list[str]] = None,
    proof_score: float = 70.0,
    ai_confidence_score: Optional[float] = None,
    confidence_tier: ConfidenceTier = ConfidenceTier.PARTIAL,
    status: ClaimStatus = ClaimStatus.PENDING,
    submitted_at: Optional[datetime] = None,
    resolved_at: Optional[datetime] = None,
    resolved_by: Optional[str] = None,
) -> Claim:
    """Create a Claim with sensible defaults.

    Terminal statuses get resolved_at/resolved_by filled in automatically
    unless given.
    """
    if status.is_terminal:
        resolved_at = resolved_at or datetime.now(UTC)
        resolved_by = resolved_by or "admin-1"
    return Claim(
        id=id or uuid4(),
        item_id=item_id,
        claimant_id=claimant_id,
        ownership_proofs=list(DEFAULT_PROOFS) if ownership_proofs is None else ownership_proofs,
        proof_score=proof_score,
        ai_confidence_score=ai_confidence_score,
        confidence_tier=confidence_tier,
        status=status,
        submitted_at=submitted_at or datetime.now(UTC),
        resolved_at=resolved_at,
        resolved_by=resolved_by,
    )


def submit(
    db_path: Path,
    *,
    item_id: str = DEFAULT_ITEM_ID,
    claimant_id: str = "student-1",
    proof_score: float = 70.0,
    confidence_tier: Optional[ConfidenceTier] = None,
    ownership_proofs: Optional[list[str]] = None,
    bus: Optional[EventBus] = None,
) -> Claim:
    """Submit a claim through the claim store with default proofs."""
    return submit_claim(
        db_path,
        item_id=item_id,
        claimant_id=claimant_id,
        ownership_proofs=list(DEFAULT_PROOFS) if ownership_proofs is None else ownership_proofs,
        proof_score=proof_score,
        confidence_tier=confidence_tier,
        bus=bus or EventBus(),
    )


def actor_headers(actor_id: str, role: str = "student", capabilities: Optional[str] = None) -> dict:
    """Identity headers as forwarded by the upstream gateway."""
    result = {"X-Actor-Id": actor_id, "X-Actor-Role": role}
    if capabilities:
        result["X-Actor-Capabilities"] = capabilities
    return result


ADMIN_HEADERS = actor_headers("admin-1", "admin")
OVERRIDE_HEADERS = actor_headers("admin-2", "admin", "override")

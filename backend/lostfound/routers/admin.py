"""Admin API router - adjudication, listings, retention and audit."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from lostfound import db
from lostfound.adjudication import (
    claim_stats,
    decide_claim,
    list_archived_claims,
    list_claims,
    run_archival_sweep,
)
from lostfound.adjudication.claim_store import MAX_PAGE_SIZE
from lostfound.errors import NotFound
from lostfound.identity import Actor, get_actor, require_adjudicator
from lostfound.models import (
    ArchivedClaim,
    AuditLog,
    ClaimDecision,
    ClaimStatus,
    DataRetentionPolicy,
)
from lostfound.schemas import (
    ClaimListResponse,
    ClaimStatsResponse,
    DecisionRequest,
    RetentionPoliciesResponse,
    SweepResponse,
)
from lostfound.settings import settings

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.put("/claims/{claim_id}/decision", response_model=ClaimDecision)
def api_decide_claim(
    claim_id: str,
    req: DecisionRequest,
    actor: Actor = Depends(get_actor),
) -> ClaimDecision:
    """Approve, reject or override a claim.

    Role and capability checks happen in the decision recorder so that an
    override-capable actor is judged by the capability, not the role.
    """
    return decide_claim(
        settings.db_path,
        claim_id=claim_id,
        actor=actor,
        decision=req.decision,
        remarks=req.remarks,
        approval_chain=req.approval_chain,
    )


@router.get("/claims", response_model=ClaimListResponse)
def api_admin_list_claims(
    status: ClaimStatus | None = None,
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    skip: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_actor),
) -> ClaimListResponse:
    require_adjudicator(actor)
    claims, total = list_claims(settings.db_path, status=status, limit=limit, skip=skip)
    return ClaimListResponse(claims=claims, total=total)


@router.get("/stats", response_model=ClaimStatsResponse)
def api_admin_stats(actor: Actor = Depends(get_actor)) -> ClaimStatsResponse:
    require_adjudicator(actor)
    return ClaimStatsResponse(**claim_stats(settings.db_path))


@router.post("/archival/sweep", response_model=SweepResponse)
def api_run_archival_sweep(actor: Actor = Depends(get_actor)) -> SweepResponse:
    """Run one archival sweep now instead of waiting for the scheduler."""
    require_adjudicator(actor)
    report = run_archival_sweep(settings.db_path)
    return SweepResponse(**report.to_dict())


@router.get("/archived-claims", response_model=list[ArchivedClaim])
def api_list_archived_claims(
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
) -> list[ArchivedClaim]:
    require_adjudicator(actor)
    return list_archived_claims(settings.db_path, limit=limit)


@router.get("/retention-policies", response_model=RetentionPoliciesResponse)
def api_list_retention_policies(actor: Actor = Depends(get_actor)) -> RetentionPoliciesResponse:
    require_adjudicator(actor)
    return RetentionPoliciesResponse(policies=db.list_retention_policies(settings.db_path))


@router.put("/retention-policies", response_model=DataRetentionPolicy)
def api_set_retention_policy(
    policy: DataRetentionPolicy,
    actor: Actor = Depends(get_actor),
) -> DataRetentionPolicy:
    """Create or replace the retention policy for one entity."""
    require_adjudicator(actor)
    db.upsert_retention_policy(settings.db_path, policy)
    return policy


@router.delete("/retention-policies/{entity}")
def api_delete_retention_policy(entity: str, actor: Actor = Depends(get_actor)) -> dict:
    require_adjudicator(actor)
    if not db.delete_retention_policy(settings.db_path, entity):
        raise NotFound(f"No retention policy for {entity}")
    return {"status": "deleted", "entity": entity}


@router.get("/audit", response_model=list[AuditLog])
def api_list_audit(
    target_entity: str | None = None,
    target_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
) -> list[AuditLog]:
    require_adjudicator(actor)
    return db.list_audit_entries(
        settings.db_path, target_entity=target_entity, target_id=target_id, limit=limit
    )

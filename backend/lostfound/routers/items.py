"""Items API router - claims filed against a found item."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lostfound.adjudication import (
    get_conflict_for_item,
    list_claims_for_item,
    rank_claims,
    submit_claim,
)
from lostfound.errors import Forbidden
from lostfound.identity import Actor, get_actor, require_adjudicator
from lostfound.models import Claim, ClaimConflict
from lostfound.schemas import RankedClaim, RankingResponse, SubmitClaimRequest
from lostfound.settings import settings

router = APIRouter(prefix="/api/items", tags=["items"])


@router.post("/{item_id}/claims", response_model=Claim, status_code=201)
def api_submit_claim(
    item_id: str,
    req: SubmitClaimRequest,
    actor: Actor = Depends(get_actor),
) -> Claim:
    """Submit an ownership claim on a found item as the calling user."""
    if actor.role == "visitor":
        raise Forbidden("This action is not available for visitors")
    return submit_claim(
        settings.db_path,
        item_id=item_id,
        claimant_id=actor.actor_id,
        ownership_proofs=req.ownership_proofs,
        proof_score=req.proof_score,
        ai_confidence_score=req.ai_confidence_score,
        confidence_tier=req.confidence_tier,
        settings=settings,
    )


@router.get("/{item_id}/claims", response_model=list[Claim])
def api_list_item_claims(item_id: str, actor: Actor = Depends(get_actor)) -> list[Claim]:
    """Claims on the item; non-adjudicators only see their own."""
    claims = list_claims_for_item(settings.db_path, item_id)
    if actor.is_adjudicator:
        return claims
    return [c for c in claims if c.claimant_id == actor.actor_id]


@router.get("/{item_id}/claims/ranking", response_model=RankingResponse)
def api_rank_item_claims(item_id: str, actor: Actor = Depends(get_actor)) -> RankingResponse:
    """Advisory ordering of the item's active claims for adjudicators."""
    require_adjudicator(actor)
    active = [c for c in list_claims_for_item(settings.db_path, item_id) if c.is_active]
    ranked = rank_claims(active)
    return RankingResponse(
        item_id=item_id,
        claims=[RankedClaim(rank=i + 1, claim=c) for i, c in enumerate(ranked)],
    )


@router.get("/{item_id}/conflict", response_model=ClaimConflict)
def api_get_item_conflict(item_id: str, actor: Actor = Depends(get_actor)) -> ClaimConflict:
    return get_conflict_for_item(settings.db_path, item_id)

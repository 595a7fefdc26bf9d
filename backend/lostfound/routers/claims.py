"""Claims API router - single-claim lookups, withdrawal and history."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lostfound.adjudication import get_claim, list_decisions, withdraw_claim
from lostfound.errors import Forbidden
from lostfound.identity import Actor, get_actor
from lostfound.models import Claim, ClaimDecision
from lostfound.settings import settings

router = APIRouter(prefix="/api/claims", tags=["claims"])


def _ensure_visible(claim: Claim, actor: Actor) -> None:
    if claim.claimant_id != actor.actor_id and not actor.is_adjudicator:
        raise Forbidden("Access denied")


@router.get("/{claim_id}", response_model=Claim)
def api_get_claim(claim_id: str, actor: Actor = Depends(get_actor)) -> Claim:
    claim = get_claim(settings.db_path, claim_id)
    _ensure_visible(claim, actor)
    return claim


@router.post("/{claim_id}/withdraw", response_model=Claim)
def api_withdraw_claim(claim_id: str, actor: Actor = Depends(get_actor)) -> Claim:
    """Withdraw a pending or conflicted claim. Only the claimant may do this."""
    return withdraw_claim(settings.db_path, claim_id=claim_id, actor_id=actor.actor_id)


@router.get("/{claim_id}/decisions", response_model=list[ClaimDecision])
def api_list_claim_decisions(
    claim_id: str, actor: Actor = Depends(get_actor)
) -> list[ClaimDecision]:
    if not actor.is_adjudicator:
        _ensure_visible(get_claim(settings.db_path, claim_id), actor)
    return list_decisions(settings.db_path, claim_id)

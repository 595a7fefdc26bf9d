"""Users API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lostfound.adjudication import list_claims_for_user
from lostfound.errors import Forbidden
from lostfound.identity import Actor, get_actor
from lostfound.models import Claim
from lostfound.settings import settings

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/claims", response_model=list[Claim])
def api_list_user_claims(user_id: str, actor: Actor = Depends(get_actor)) -> list[Claim]:
    """Claims filed by a user, newest first. Visible to the user and admins."""
    if actor.actor_id != user_id and not actor.is_adjudicator:
        raise Forbidden("Access denied")
    return list_claims_for_user(settings.db_path, user_id)

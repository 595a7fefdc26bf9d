"""Identity boundary.

Authentication happens upstream. This module turns the trusted headers the
gateway forwards into an ``Actor`` and holds the role checks the adjudication
core relies on. Override authority is an explicit capability on each actor.
"""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException

ROLES = frozenset({"student", "faculty", "visitor", "admin", "delegated_admin", "system"})
ADJUDICATOR_ROLES = frozenset({"admin", "delegated_admin", "system"})

OVERRIDE_CAPABILITY = "override"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: str = "student"
    can_override: bool = False

    @property
    def is_adjudicator(self) -> bool:
        return self.role in ADJUDICATOR_ROLES


def parse_capabilities(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str = Header(default="student"),
    x_actor_capabilities: str | None = Header(default=None),
) -> Actor:
    """FastAPI dependency building the calling actor from request headers."""
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    role = x_actor_role.strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Unknown role: {x_actor_role}")
    capabilities = parse_capabilities(x_actor_capabilities)
    return Actor(
        actor_id=x_actor_id.strip(),
        role=role,
        can_override=OVERRIDE_CAPABILITY in capabilities,
    )


def require_adjudicator(actor: Actor) -> Actor:
    if not actor.is_adjudicator:
        raise HTTPException(status_code=403, detail="Admin access required")
    return actor

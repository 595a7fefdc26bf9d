"""Claim adjudication engine.

Claim store, conflict detector, decision recorder and archival service.
"""

from lostfound.adjudication.archival import (
    SweepReport,
    get_archived_claim,
    list_archived_claims,
    run_archival_sweep,
)
from lostfound.adjudication.claim_store import (
    claim_stats,
    get_claim,
    list_claims,
    list_claims_for_item,
    list_claims_for_user,
    submit_claim,
    withdraw_claim,
)
from lostfound.adjudication.conflict_detector import (
    ConflictOutcome,
    detect_conflicts,
    get_conflict_for_item,
    list_conflicts_for_item,
    rank_claims,
)
from lostfound.adjudication.decision_recorder import decide_claim, list_decisions

__all__ = [
    "submit_claim",
    "withdraw_claim",
    "get_claim",
    "list_claims_for_item",
    "list_claims_for_user",
    "list_claims",
    "claim_stats",
    "ConflictOutcome",
    "detect_conflicts",
    "get_conflict_for_item",
    "list_conflicts_for_item",
    "rank_claims",
    "decide_claim",
    "list_decisions",
    "SweepReport",
    "run_archival_sweep",
    "list_archived_claims",
    "get_archived_claim",
]

from __future__ import annotations

from pydantic import BaseModel, Field

from lostfound.models import (
    ApprovalStep,
    Claim,
    ClaimStatus,
    ConfidenceTier,
    DataRetentionPolicy,
    DecisionKind,
)


class SubmitClaimRequest(BaseModel):
    ownership_proofs: list[str] = Field(min_length=1)
    proof_score: float
    ai_confidence_score: float | None = None
    confidence_tier: ConfidenceTier | None = None


class DecisionRequest(BaseModel):
    decision: DecisionKind
    remarks: str = Field(min_length=1)
    approval_chain: list[ApprovalStep] = Field(default_factory=list)


class RankedClaim(BaseModel):
    rank: int
    claim: Claim


class RankingResponse(BaseModel):
    item_id: str
    advisory: bool = True
    claims: list[RankedClaim]


class ClaimListResponse(BaseModel):
    claims: list[Claim]
    total: int


class ClaimStatsResponse(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    withdrawn: int = 0
    conflict: int = 0
    total: int = 0
    open_conflicts: int = 0


class RetentionPoliciesResponse(BaseModel):
    policies: list[DataRetentionPolicy]


class SweepResponse(BaseModel):
    policies_applied: int
    archived: int
    deleted: int
    anonymized: int
    skipped: int
    failed: int


class AppStatus(BaseModel):
    version: str
    db_ok: bool
    archival_sweeper_running: bool
    archival_sweep_interval_s: float
    claim_statuses: list[ClaimStatus]

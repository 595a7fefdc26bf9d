"""Tests for the Claim model and its status/tier enums.

Run: pytest tests/models/test_claims.py -v
"""

from datetime import datetime, timezone
from uuid import UUID

import pytest
from pydantic import ValidationError

from lostfound.models.claims import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Claim,
    ClaimStatus,
    ConfidenceTier,
)
from tests.factories import make_claim


class TestClaimStatus:
    def test_terminal_and_active_partition_all_statuses(self):
        assert TERMINAL_STATUSES | ACTIVE_STATUSES == set(ClaimStatus)
        assert not TERMINAL_STATUSES & ACTIVE_STATUSES

    @pytest.mark.parametrize(
        "status,terminal",
        [
            (ClaimStatus.PENDING, False),
            (ClaimStatus.CONFLICT, False),
            (ClaimStatus.APPROVED, True),
            (ClaimStatus.REJECTED, True),
            (ClaimStatus.WITHDRAWN, True),
        ],
    )
    def test_is_terminal(self, status, terminal):
        assert status.is_terminal is terminal
        assert status.is_active is not terminal


class TestConfidenceTier:
    def test_rank_orders_full_partial_low(self):
        assert ConfidenceTier.FULL.rank > ConfidenceTier.PARTIAL.rank > ConfidenceTier.LOW.rank

    def test_from_string(self):
        assert ConfidenceTier("partial") is ConfidenceTier.PARTIAL


class TestClaim:
    def test_defaults(self):
        claim = Claim(
            item_id="item-1",
            claimant_id="user-1",
            proof_score=55.0,
            confidence_tier=ConfidenceTier.PARTIAL,
        )
        assert isinstance(claim.id, UUID)
        assert claim.status == ClaimStatus.PENDING
        assert claim.resolved_at is None
        assert claim.resolved_by is None
        assert claim.is_admin_override is False
        assert claim.submitted_at.tzinfo is not None

    def test_terminal_claim_requires_resolution_fields(self):
        with pytest.raises(ValidationError):
            Claim(
                item_id="item-1",
                claimant_id="user-1",
                proof_score=55.0,
                confidence_tier=ConfidenceTier.LOW,
                status=ClaimStatus.APPROVED,
            )

    def test_active_claim_rejects_resolution_fields(self):
        with pytest.raises(ValidationError):
            Claim(
                item_id="item-1",
                claimant_id="user-1",
                proof_score=55.0,
                confidence_tier=ConfidenceTier.LOW,
                resolved_at=datetime.now(timezone.utc),
                resolved_by="admin-1",
            )

    def test_blank_item_id_rejected(self):
        with pytest.raises(ValidationError):
            make_claim(item_id="")

    def test_db_row_preserves_fields(self):
        claim = make_claim(
            status=ClaimStatus.REJECTED,
            ai_confidence_score=42.5,
            ownership_proofs=["photo.png", "serial 1234"],
        )
        restored = Claim.from_db_row(claim.to_db_row())

        assert restored == claim

    def test_snapshot_is_json_safe(self):
        claim = make_claim(status=ClaimStatus.APPROVED)
        snap = claim.snapshot()

        assert snap["id"] == str(claim.id)
        assert snap["status"] == "approved"
        assert isinstance(snap["resolved_at"], str)

"""Tests for the retention-driven archival sweep.

Run: pytest tests/test_archival.py -v
"""

from datetime import UTC, datetime, timedelta

import pytest

from lostfound import db
from lostfound.adjudication import decide_claim, get_claim, list_decisions, run_archival_sweep
from lostfound.adjudication import archival
from lostfound.adjudication.archival import get_archived_claim, list_archived_claims
from lostfound.errors import NotFound
from lostfound.events import DomainEventType
from lostfound.models import (
    ANONYMIZED_CLAIMANT,
    ClaimStatus,
    DataRetentionPolicy,
    RetentionAction,
)
from tests.factories import make_claim, submit

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _policy(db_path, action: RetentionAction, days: int = 30) -> None:
    db.upsert_retention_policy(
        db_path, DataRetentionPolicy(entity="claims", retention_days=days, action=action)
    )


def _insert(db_path, claim) -> None:
    with db.transaction(db_path) as conn:
        db.insert_claim(conn, claim)


@pytest.fixture
def old_approved(temp_db_path):
    claim = make_claim(
        claimant_id="u1",
        status=ClaimStatus.APPROVED,
        resolved_at=NOW - timedelta(days=90),
    )
    _insert(temp_db_path, claim)
    return claim


class TestDeleteAction:
    def test_old_terminal_claim_archived_and_deleted(self, temp_db_path, old_approved):
        _policy(temp_db_path, RetentionAction.DELETE)

        report = run_archival_sweep(temp_db_path, now=NOW)

        assert report.archived == 1
        assert report.deleted == 1
        assert db.get_claim(temp_db_path, old_approved.id) is None
        archived = get_archived_claim(temp_db_path, str(old_approved.id))
        assert archived.action is RetentionAction.DELETE
        assert archived.data_snapshot["claimant_id"] == "u1"
        assert archived.data_snapshot["status"] == "approved"

    def test_recent_and_active_claims_untouched(self, temp_db_path):
        recent = make_claim(claimant_id="a", status=ClaimStatus.REJECTED, resolved_at=NOW - timedelta(days=2))
        active = make_claim(claimant_id="b", submitted_at=NOW - timedelta(days=400))
        _insert(temp_db_path, recent)
        _insert(temp_db_path, active)
        _policy(temp_db_path, RetentionAction.DELETE)

        report = run_archival_sweep(temp_db_path, now=NOW)

        assert report.archived == 0
        assert db.get_claim(temp_db_path, recent.id) is not None
        assert db.get_claim(temp_db_path, active.id) is not None

    def test_decision_history_survives_deletion(self, temp_db_path, admin):
        claim = submit(temp_db_path, claimant_id="u1")
        decision = decide_claim(temp_db_path, claim_id=claim.id, actor=admin, decision="approved", remarks="ok")
        _policy(temp_db_path, RetentionAction.DELETE, days=0)

        run_archival_sweep(temp_db_path, now=decision.timestamp + timedelta(seconds=1))

        with pytest.raises(NotFound):
            get_claim(temp_db_path, claim.id)
        assert [d.id for d in list_decisions(temp_db_path, claim.id)] == [decision.id]


class TestAnonymizeAction:
    def test_claimant_data_stripped(self, temp_db_path, old_approved):
        _policy(temp_db_path, RetentionAction.ANONYMIZE)

        report = run_archival_sweep(temp_db_path, now=NOW)

        stored = db.get_claim(temp_db_path, old_approved.id)
        assert report.anonymized == 1
        assert stored.claimant_id == ANONYMIZED_CLAIMANT
        assert stored.ownership_proofs == []
        assert stored.admin_notes is None
        assert stored.anonymized is True
        assert stored.status == ClaimStatus.APPROVED
        snapshot = get_archived_claim(temp_db_path, str(old_approved.id)).data_snapshot
        assert snapshot["claimant_id"] == "u1"

    def test_withdrawn_claim_resolver_anonymized(self, temp_db_path):
        claim = make_claim(
            claimant_id="u1",
            status=ClaimStatus.WITHDRAWN,
            resolved_at=NOW - timedelta(days=90),
            resolved_by="u1",
        )
        _insert(temp_db_path, claim)
        _policy(temp_db_path, RetentionAction.ANONYMIZE)

        run_archival_sweep(temp_db_path, now=NOW)

        assert db.get_claim(temp_db_path, claim.id).resolved_by == ANONYMIZED_CLAIMANT


class TestIdempotence:
    @pytest.mark.parametrize("action", [RetentionAction.DELETE, RetentionAction.ANONYMIZE])
    def test_second_sweep_changes_nothing(self, temp_db_path, old_approved, action):
        _policy(temp_db_path, action)

        run_archival_sweep(temp_db_path, now=NOW)
        second = run_archival_sweep(temp_db_path, now=NOW)

        assert second.archived == 0
        assert second.deleted == 0
        assert second.anonymized == 0
        assert len(list_archived_claims(temp_db_path)) == 1

    def test_delete_after_anonymize_reuses_snapshot(self, temp_db_path, old_approved):
        _policy(temp_db_path, RetentionAction.ANONYMIZE)
        run_archival_sweep(temp_db_path, now=NOW)
        _policy(temp_db_path, RetentionAction.DELETE)

        report = run_archival_sweep(temp_db_path, now=NOW)

        assert report.deleted == 1
        assert report.archived == 0
        assert len(list_archived_claims(temp_db_path)) == 1


class TestFailures:
    def test_failed_claim_skipped_and_retried(self, temp_db_path, monkeypatch):
        first = make_claim(claimant_id="a", status=ClaimStatus.APPROVED, resolved_at=NOW - timedelta(days=60))
        second = make_claim(claimant_id="b", status=ClaimStatus.REJECTED, resolved_at=NOW - timedelta(days=50))
        _insert(temp_db_path, first)
        _insert(temp_db_path, second)
        _policy(temp_db_path, RetentionAction.DELETE)

        real_delete = db.delete_claim

        def flaky_delete(conn, claim_id):
            if claim_id == first.id:
                raise RuntimeError("disk full")
            return real_delete(conn, claim_id)

        monkeypatch.setattr(db, "delete_claim", flaky_delete)
        report = run_archival_sweep(temp_db_path, now=NOW)

        assert report.failed == 1
        assert report.deleted == 1
        # Rolled back: no orphan snapshot for the failed claim
        assert get_archived_claim(temp_db_path, str(first.id)) is None
        assert db.get_claim(temp_db_path, first.id) is not None

        monkeypatch.setattr(db, "delete_claim", real_delete)
        retry = run_archival_sweep(temp_db_path, now=NOW)

        assert retry.deleted == 1
        assert retry.failed == 0

    def test_unsupported_entity_ignored(self, temp_db_path, old_approved):
        db.upsert_retention_policy(
            temp_db_path,
            DataRetentionPolicy(entity="found_items", retention_days=1, action=RetentionAction.DELETE),
        )

        report = run_archival_sweep(temp_db_path, now=NOW)

        assert report.policies_applied == 0
        assert db.get_claim(temp_db_path, old_approved.id) is not None

    def test_no_policies_is_noop(self, temp_db_path, old_approved):
        report = run_archival_sweep(temp_db_path, now=NOW)
        assert report.to_dict() == {
            "policies_applied": 0,
            "archived": 0,
            "deleted": 0,
            "anonymized": 0,
            "skipped": 0,
            "failed": 0,
        }


class TestEvents:
    def test_archived_event_published(self, temp_db_path, old_approved, bus, events):
        _policy(temp_db_path, RetentionAction.ANONYMIZE)

        run_archival_sweep(temp_db_path, now=NOW, bus=bus)

        event = events.get_nowait()
        assert event.event_type is DomainEventType.CLAIM_ARCHIVED
        assert event.data["claim_id"] == str(old_approved.id)
        assert event.data["action"] == "anonymize"

    def test_audit_entry_written_by_system_actor(self, temp_db_path, old_approved):
        _policy(temp_db_path, RetentionAction.DELETE)

        run_archival_sweep(temp_db_path, now=NOW)

        entries = db.list_audit_entries(temp_db_path, target_id=str(old_approved.id))
        assert entries[0].actor_id == archival.ARCHIVAL_ACTOR
        assert entries[0].action == "claim_archived_deleted"

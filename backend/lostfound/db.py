from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import UUID

from lostfound.models.archive import (
    ARCHIVE_COLUMNS,
    ArchivedClaim,
    DataRetentionPolicy,
)
from lostfound.models.audit import AUDIT_COLUMNS, AuditLog
from lostfound.models.claims import CLAIM_COLUMNS, TERMINAL_STATUSES, Claim, ClaimStatus
from lostfound.models.conflicts import CONFLICT_COLUMNS, ClaimConflict
from lostfound.models.decisions import DECISION_COLUMNS, ClaimDecision

_CLAIM_SELECT = f"SELECT {', '.join(CLAIM_COLUMNS)} FROM claims"
_CONFLICT_SELECT = f"SELECT {', '.join(CONFLICT_COLUMNS)} FROM claim_conflicts"
_DECISION_SELECT = f"SELECT {', '.join(DECISION_COLUMNS)} FROM claim_decisions"
_ARCHIVE_SELECT = f"SELECT {', '.join(ARCHIVE_COLUMNS)} FROM archived_claims"
_AUDIT_SELECT = f"SELECT {', '.join(AUDIT_COLUMNS)} FROM audit_logs"


def utc_now() -> datetime:
    return datetime.now(UTC)


def _connect(db_path: Path) -> sqlite3.Connection:
    """Create a database connection with proper configuration.

    Foreign keys are enabled per connection (SQLite leaves them off by
    default). IMMEDIATE isolation acquires the RESERVED lock at transaction
    start, so a read-then-write sequence inside one transaction cannot
    interleave with another writer.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path),
        timeout=30.0,
        isolation_level="IMMEDIATE",
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextlib.contextmanager
def transaction(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Run a block inside a single BEGIN IMMEDIATE transaction.

    Commits on success, rolls back on any exception and always closes the
    connection. All claim mutations for an item (claim rows and the item's
    conflict record) go through one of these blocks.
    """
    conn = _connect(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            conn.execute("ROLLBACK")
            raise
    finally:
        conn.close()


@contextlib.contextmanager
def _reader(db_path: Path) -> Iterator[sqlite3.Connection]:
    with contextlib.closing(_connect(db_path)) as conn:
        yield conn


def ping(db_path: Path) -> bool:
    """True when the database file can be opened and queried."""
    try:
        with _reader(db_path) as conn:
            conn.execute("SELECT 1").fetchone()
        return True
    except sqlite3.Error:
        return False


def init_db(db_path: Path) -> None:
    with contextlib.closing(_connect(db_path)) as conn, conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS claims (
                id TEXT PRIMARY KEY,
                item_id TEXT NOT NULL,
                claimant_id TEXT NOT NULL,
                ownership_proofs_json TEXT NOT NULL DEFAULT '[]',
                proof_score REAL NOT NULL,
                ai_confidence_score REAL,
                confidence_tier TEXT NOT NULL,
                status TEXT NOT NULL,
                submitted_at_utc TEXT NOT NULL,
                resolved_at_utc TEXT,
                resolved_by TEXT,
                admin_notes TEXT,
                is_admin_override INTEGER NOT NULL DEFAULT 0,
                anonymized INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_item ON claims(item_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_claimant ON claims(claimant_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_claims_submitted ON claims(submitted_at_utc DESC)"
        )
        # One non-terminal claim per (item, claimant)
        conn.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_claims_active_pair
            ON claims(item_id, claimant_id)
            WHERE status IN ('pending', 'conflict')
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS claim_conflicts (
                id TEXT PRIMARY KEY,
                item_id TEXT NOT NULL,
                conflicting_claims_json TEXT NOT NULL,
                detected_at_utc TEXT NOT NULL,
                resolved INTEGER NOT NULL DEFAULT 0,
                resolved_at_utc TEXT
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_conflicts_item ON claim_conflicts(item_id, detected_at_utc DESC)"
        )
        # One open conflict per item
        conn.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_conflicts_open_item
            ON claim_conflicts(item_id)
            WHERE resolved = 0
            """
        )

        # Decisions outlive deleted claims, so no foreign key to claims
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS claim_decisions (
                id TEXT PRIMARY KEY,
                claim_id TEXT NOT NULL,
                decided_by TEXT NOT NULL,
                decision TEXT NOT NULL,
                remarks TEXT NOT NULL,
                approval_chain_json TEXT NOT NULL DEFAULT '[]',
                timestamp_utc TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_decisions_claim ON claim_decisions(claim_id, timestamp_utc DESC)"
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS archived_claims (
                id TEXT PRIMARY KEY,
                original_claim_id TEXT NOT NULL UNIQUE,
                data_snapshot_json TEXT NOT NULL,
                action TEXT NOT NULL,
                archived_at_utc TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_archived_at ON archived_claims(archived_at_utc DESC)"
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS data_retention_policies (
                entity TEXT PRIMARY KEY,
                retention_days INTEGER NOT NULL,
                action TEXT NOT NULL
            )
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS audit_logs (
                id TEXT PRIMARY KEY,
                actor_id TEXT NOT NULL,
                action TEXT NOT NULL,
                target_entity TEXT NOT NULL,
                target_id TEXT NOT NULL,
                metadata_json TEXT NOT NULL DEFAULT '{}',
                timestamp_utc TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_audit_target ON audit_logs(target_entity, target_id)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_logs(timestamp_utc DESC)"
        )


# =================================================================
# AUDIT
# =================================================================


def write_audit_entry(
    conn: sqlite3.Connection,
    *,
    actor_id: str,
    action: str,
    target_entity: str,
    target_id: str | UUID,
    metadata: dict[str, Any] | None = None,
    timestamp: datetime | None = None,
) -> AuditLog:
    """Append one audit entry inside the caller's transaction."""
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        target_entity=target_entity,
        target_id=str(target_id),
        metadata=metadata or {},
        timestamp=timestamp or utc_now(),
    )
    conn.execute(
        f"INSERT INTO audit_logs ({', '.join(AUDIT_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?)",
        entry.to_db_row(),
    )
    return entry


def list_audit_entries(
    db_path: Path,
    *,
    target_entity: str | None = None,
    target_id: str | None = None,
    limit: int = 100,
) -> list[AuditLog]:
    """Read-only audit listing for administrators, newest first."""
    clauses: list[str] = []
    params: list[Any] = []
    if target_entity:
        clauses.append("target_entity = ?")
        params.append(target_entity)
    if target_id:
        clauses.append("target_id = ?")
        params.append(target_id)
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_AUDIT_SELECT}{where} ORDER BY timestamp_utc DESC LIMIT ?",
            (*params, limit),
        ).fetchall()
    return [AuditLog.from_db_row(r) for r in rows]


# =================================================================
# CLAIMS
# =================================================================

_CLAIM_UPDATE = """
    UPDATE claims
    SET claimant_id = ?,
        ownership_proofs_json = ?,
        proof_score = ?,
        ai_confidence_score = ?,
        confidence_tier = ?,
        status = ?,
        submitted_at_utc = ?,
        resolved_at_utc = ?,
        resolved_by = ?,
        admin_notes = ?,
        is_admin_override = ?,
        anonymized = ?
    WHERE id = ? AND item_id = ?
"""


def insert_claim(conn: sqlite3.Connection, claim: Claim) -> None:
    placeholders = ", ".join("?" for _ in CLAIM_COLUMNS)
    conn.execute(
        f"INSERT INTO claims ({', '.join(CLAIM_COLUMNS)}) VALUES ({placeholders})",
        claim.to_db_row(),
    )


def update_claim(conn: sqlite3.Connection, claim: Claim) -> None:
    row = claim.to_db_row()
    # SET columns follow CLAIM_COLUMNS after (id, item_id)
    conn.execute(_CLAIM_UPDATE, (*row[2:], row[0], row[1]))


def delete_claim(conn: sqlite3.Connection, claim_id: UUID) -> bool:
    cursor = conn.execute("DELETE FROM claims WHERE id = ?", (str(claim_id),))
    return cursor.rowcount > 0


def fetch_claim(conn: sqlite3.Connection, claim_id: UUID | str) -> Claim | None:
    row = conn.execute(f"{_CLAIM_SELECT} WHERE id = ?", (str(claim_id),)).fetchone()
    return Claim.from_db_row(row) if row else None


def fetch_claims_for_item(
    conn: sqlite3.Connection,
    item_id: str,
    statuses: Iterable[ClaimStatus] | None = None,
) -> list[Claim]:
    """Claims on an item, oldest submission first."""
    params: list[Any] = [item_id]
    status_clause = ""
    if statuses is not None:
        values = [s.value for s in statuses]
        status_clause = f" AND status IN ({', '.join('?' for _ in values)})"
        params.extend(values)
    rows = conn.execute(
        f"{_CLAIM_SELECT} WHERE item_id = ?{status_clause} ORDER BY submitted_at_utc ASC",
        params,
    ).fetchall()
    return [Claim.from_db_row(r) for r in rows]


def fetch_active_claim_for_pair(
    conn: sqlite3.Connection, item_id: str, claimant_id: str
) -> Claim | None:
    row = conn.execute(
        f"""
        {_CLAIM_SELECT}
        WHERE item_id = ? AND claimant_id = ? AND status IN ('pending', 'conflict')
        """,
        (item_id, claimant_id),
    ).fetchone()
    return Claim.from_db_row(row) if row else None


def get_claim(db_path: Path, claim_id: UUID | str) -> Claim | None:
    with _reader(db_path) as conn:
        return fetch_claim(conn, claim_id)


def list_claims_for_item(db_path: Path, item_id: str) -> list[Claim]:
    with _reader(db_path) as conn:
        return fetch_claims_for_item(conn, item_id)


def list_claims_for_user(db_path: Path, claimant_id: str) -> list[Claim]:
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_CLAIM_SELECT} WHERE claimant_id = ? ORDER BY submitted_at_utc DESC",
            (claimant_id,),
        ).fetchall()
    return [Claim.from_db_row(r) for r in rows]


def list_claims(
    db_path: Path,
    *,
    status: ClaimStatus | None = None,
    limit: int = 20,
    skip: int = 0,
) -> tuple[list[Claim], int]:
    """Admin review listing, newest first, with the unpaged total."""
    where = " WHERE status = ?" if status else ""
    params: tuple[Any, ...] = (status.value,) if status else ()
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_CLAIM_SELECT}{where} ORDER BY submitted_at_utc DESC LIMIT ? OFFSET ?",
            (*params, limit, skip),
        ).fetchall()
        total = conn.execute(f"SELECT COUNT(*) FROM claims{where}", params).fetchone()[0]
    return [Claim.from_db_row(r) for r in rows], total


def list_terminal_claim_ids_resolved_before(
    db_path: Path,
    cutoff: datetime,
    *,
    include_anonymized: bool = True,
) -> list[str]:
    """Ids of terminal claims resolved before ``cutoff``, oldest first."""
    terminal = [s.value for s in TERMINAL_STATUSES]
    query = f"""
        SELECT id FROM claims
        WHERE status IN ({', '.join('?' for _ in terminal)})
          AND resolved_at_utc IS NOT NULL
          AND julianday(resolved_at_utc) < julianday(?)
    """
    if not include_anonymized:
        query += " AND anonymized = 0"
    query += " ORDER BY resolved_at_utc ASC"
    with _reader(db_path) as conn:
        rows = conn.execute(
            query, (*terminal, cutoff.isoformat(timespec="microseconds"))
        ).fetchall()
    return [row["id"] for row in rows]


def claim_stats(db_path: Path) -> dict[str, int]:
    """Claim counts per status plus the number of open conflicts."""
    stats = {status.value: 0 for status in ClaimStatus}
    with _reader(db_path) as conn:
        for row in conn.execute("SELECT status, COUNT(*) FROM claims GROUP BY status"):
            stats[row[0]] = row[1]
        open_conflicts = conn.execute(
            "SELECT COUNT(*) FROM claim_conflicts WHERE resolved = 0"
        ).fetchone()[0]
    stats["total"] = sum(stats[s.value] for s in ClaimStatus)
    stats["open_conflicts"] = open_conflicts
    return stats


# =================================================================
# CONFLICTS
# =================================================================


def insert_conflict(conn: sqlite3.Connection, conflict: ClaimConflict) -> None:
    conn.execute(
        f"INSERT INTO claim_conflicts ({', '.join(CONFLICT_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?)",
        conflict.to_db_row(),
    )


def update_conflict(conn: sqlite3.Connection, conflict: ClaimConflict) -> None:
    row = conflict.to_db_row()
    conn.execute(
        """
        UPDATE claim_conflicts
        SET conflicting_claims_json = ?,
            resolved = ?,
            resolved_at_utc = ?
        WHERE id = ?
        """,
        (row[2], row[4], row[5], row[0]),
    )


def fetch_open_conflict(conn: sqlite3.Connection, item_id: str) -> ClaimConflict | None:
    row = conn.execute(
        f"{_CONFLICT_SELECT} WHERE item_id = ? AND resolved = 0", (item_id,)
    ).fetchone()
    return ClaimConflict.from_db_row(row) if row else None


def list_conflicts_for_item(db_path: Path, item_id: str) -> list[ClaimConflict]:
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_CONFLICT_SELECT} WHERE item_id = ? ORDER BY detected_at_utc DESC",
            (item_id,),
        ).fetchall()
    return [ClaimConflict.from_db_row(r) for r in rows]


# =================================================================
# DECISIONS
# =================================================================


def insert_decision(conn: sqlite3.Connection, decision: ClaimDecision) -> None:
    conn.execute(
        f"INSERT INTO claim_decisions ({', '.join(DECISION_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?)",
        decision.to_db_row(),
    )


def list_decisions(db_path: Path, claim_id: UUID | str) -> list[ClaimDecision]:
    """Decision history for a claim, newest first."""
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_DECISION_SELECT} WHERE claim_id = ? ORDER BY timestamp_utc DESC",
            (str(claim_id),),
        ).fetchall()
    return [ClaimDecision.from_db_row(r) for r in rows]


# =================================================================
# ARCHIVE + RETENTION
# =================================================================


def insert_archived_claim(conn: sqlite3.Connection, archived: ArchivedClaim) -> None:
    conn.execute(
        f"INSERT INTO archived_claims ({', '.join(ARCHIVE_COLUMNS)}) VALUES (?, ?, ?, ?, ?)",
        archived.to_db_row(),
    )


def archived_claim_exists(conn: sqlite3.Connection, original_claim_id: UUID) -> bool:
    row = conn.execute(
        "SELECT 1 FROM archived_claims WHERE original_claim_id = ?",
        (str(original_claim_id),),
    ).fetchone()
    return row is not None


def get_archived_claim(db_path: Path, original_claim_id: UUID | str) -> ArchivedClaim | None:
    with _reader(db_path) as conn:
        row = conn.execute(
            f"{_ARCHIVE_SELECT} WHERE original_claim_id = ?",
            (str(original_claim_id),),
        ).fetchone()
    return ArchivedClaim.from_db_row(row) if row else None


def list_archived_claims(db_path: Path, limit: int = 100) -> list[ArchivedClaim]:
    with _reader(db_path) as conn:
        rows = conn.execute(
            f"{_ARCHIVE_SELECT} ORDER BY archived_at_utc DESC LIMIT ?", (limit,)
        ).fetchall()
    return [ArchivedClaim.from_db_row(r) for r in rows]


def upsert_retention_policy(db_path: Path, policy: DataRetentionPolicy) -> None:
    with transaction(db_path) as conn:
        conn.execute(
            """
            INSERT INTO data_retention_policies (entity, retention_days, action)
            VALUES (?, ?, ?)
            ON CONFLICT(entity) DO UPDATE SET
                retention_days = excluded.retention_days,
                action = excluded.action
            """,
            policy.to_db_row(),
        )


def list_retention_policies(db_path: Path) -> list[DataRetentionPolicy]:
    with _reader(db_path) as conn:
        rows = conn.execute(
            "SELECT entity, retention_days, action FROM data_retention_policies ORDER BY entity"
        ).fetchall()
    return [DataRetentionPolicy.from_db_row(r) for r in rows]


def delete_retention_policy(db_path: Path, entity: str) -> bool:
    with transaction(db_path) as conn:
        cursor = conn.execute(
            "DELETE FROM data_retention_policies WHERE entity = ?", (entity,)
        )
        return cursor.rowcount > 0


def seed_retention_policies(
    db_path: Path, policies: Iterable[DataRetentionPolicy]
) -> int:
    """Insert seed policies if the policy table is empty. Returns rows added."""
    added = 0
    with transaction(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM data_retention_policies").fetchone()[0]
        if count > 0:
            return 0
        for policy in policies:
            conn.execute(
                "INSERT INTO data_retention_policies (entity, retention_days, action) VALUES (?, ?, ?)",
                policy.to_db_row(),
            )
            added += 1
    return added

"""SQLite-backed append-only storage for safety decision records."""

import json
import logging
import os
import sqlite3
import time
from pathlib import Path

from .models import DecisionKind, DecisionRecord

logger = logging.getLogger(__name__)


class DecisionLogError(Exception):
    """A decision record could not be written."""


class DecisionLogger:
    """Append-only sink for decision records."""

    def append(self, record: DecisionRecord) -> None:
        """Persist one record. Must raise if the write did not happen."""
        raise NotImplementedError


def record_decision(
    decision_log: DecisionLogger,
    record: DecisionRecord,
    attempts: int = 3,
    retry_delay_seconds: float = 0.2,
) -> None:
    """Append a record, retrying failed writes.

    Args:
        decision_log: Destination log
        record: Record to append
        attempts: Total number of write attempts
        retry_delay_seconds: Pause between attempts

    Raises:
        DecisionLogError: If every attempt failed
    """
    attempts = max(1, attempts)
    last_error: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            decision_log.append(record)
            logger.debug(f"Recorded decision {record.record_id} ({record.kind.value})")
            return
        except Exception as e:
            last_error = e
            logger.warning(
                f"Decision log write failed for {record.record_id} "
                f"(attempt {attempt}/{attempts}): {e}"
            )
            if attempt < attempts:
                time.sleep(retry_delay_seconds)

    raise DecisionLogError(
        f"Could not record decision {record.record_id} after {attempts} attempts"
    ) from last_error


class DecisionLogStore(DecisionLogger):
    """SQLite-backed store for decision records.

    Records can be appended and read back; the schema rejects updates and
    deletes.
    """

    def __init__(self, db_path: str | None = None):
        """Initialize decision log store.

        Args:
            db_path: Path to SQLite database. Defaults to MED_SAFETY_DB_PATH env var
                     or ~/.medsafety/decisions.db
        """
        if db_path:
            self.db_path = os.path.expanduser(db_path)
        else:
            self.db_path = os.path.expanduser(
                os.environ.get("MED_SAFETY_DB_PATH", "~/.medsafety/decisions.db")
            )

        # Ensure directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()

        with self._connect() as conn:
            conn.executescript(schema)

    def _connect(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def append(self, record: DecisionRecord) -> None:
        """Append a decision record.

        Appending a record whose ID is already stored is a no-op, so a
        retried write that had in fact succeeded does not fail.

        Args:
            record: DecisionRecord to persist
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO decision_records (
                        id, kind, resident_id, medication_id, staff_id, facility_id,
                        administered_at, actor, status, is_valid, requires_witness,
                        requires_vital_signs, risk_score, findings, required_actions,
                        verdict, environmental_data, staff_workload, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.record_id,
                        record.kind.value,
                        record.resident_id,
                        record.medication_id,
                        record.staff_id,
                        record.facility_id,
                        record.administered_at,
                        record.actor,
                        record.status,
                        int(record.is_valid),
                        int(record.requires_witness),
                        int(record.requires_vital_signs),
                        record.risk_score,
                        json.dumps(record.findings),
                        json.dumps(record.required_actions),
                        json.dumps(record.verdict),
                        json.dumps(record.environmental_data) if record.environmental_data is not None else None,
                        json.dumps(record.staff_workload) if record.staff_workload is not None else None,
                        record.created_at,
                    ),
                )
        except sqlite3.IntegrityError:
            if self.get_record(record.record_id) is None:
                raise
            logger.debug(f"Decision {record.record_id} already recorded")

    def get_record(self, record_id: str) -> DecisionRecord | None:
        """Get record by ID.

        Args:
            record_id: Decision record ID

        Returns:
            DecisionRecord or None if not found
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM decision_records WHERE id = ?", (record_id,)
            ).fetchone()

        if not row:
            return None

        return DecisionRecord.from_row(row)

    def list_records(
        self,
        resident_id: str | None = None,
        kind: DecisionKind | str | None = None,
        since: str | None = None,
        limit: int = 100,
    ) -> list[DecisionRecord]:
        """List records, newest first.

        Args:
            resident_id: Only records for this resident
            kind: Only baseline or predictive records
            since: ISO timestamp; only records created at or after it
            limit: Maximum number of records

        Returns:
            List of DecisionRecord
        """
        query = "SELECT * FROM decision_records WHERE 1=1"
        params: list = []

        if resident_id:
            query += " AND resident_id = ?"
            params.append(resident_id)

        if kind:
            query += " AND kind = ?"
            params.append(kind.value if isinstance(kind, DecisionKind) else kind)

        if since:
            query += " AND created_at >= ?"
            params.append(since)

        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [DecisionRecord.from_row(row) for row in rows]

    def count(self) -> int:
        """Total number of stored records."""
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM decision_records").fetchone()
        return row[0]

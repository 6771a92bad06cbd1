"""SQLite logging of sync runs."""

import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class SyncRunLog:
    """Captured outcome of one sync run."""

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    trigger: str = "manual"  # startup, scheduled, api, manual
    success: bool = False
    created: int = 0
    updated: int = 0
    deleted: int = 0
    auto_filled: int = 0
    error_message: str | None = None
    processing_time_ms: int = 0


def log_sync_run(conn: sqlite3.Connection, log: SyncRunLog) -> None:
    """Write a sync run record."""
    with conn:
        conn.execute(
            """
            INSERT INTO sync_runs (
                run_id, trigger_source, started_at, success, created, updated,
                deleted, auto_filled, error_message, processing_time_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                log.run_id,
                log.trigger,
                log.started_at,
                int(log.success),
                log.created,
                log.updated,
                log.deleted,
                log.auto_filled,
                log.error_message,
                log.processing_time_ms,
            ),
        )


def recent_sync_runs(conn: sqlite3.Connection, limit: int = 20) -> list[SyncRunLog]:
    """Most recent sync runs, newest first."""
    rows = conn.execute(
        """
        SELECT run_id, trigger_source, started_at, success, created, updated,
               deleted, auto_filled, error_message, processing_time_ms
        FROM sync_runs
        ORDER BY started_at DESC, id DESC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()

    return [
        SyncRunLog(
            run_id=row[0],
            trigger=row[1],
            started_at=row[2],
            success=bool(row[3]),
            created=row[4],
            updated=row[5],
            deleted=row[6],
            auto_filled=row[7],
            error_message=row[8],
            processing_time_ms=row[9],
        )
        for row in rows
    ]

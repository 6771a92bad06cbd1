"""
SQLite shift ledger: employers, shifts, payroll entries and expenses.

Every public write helper is its own transaction (``with conn:``), so a
failure part-way through a sync leaves earlier writes committed and only
rolls back the step in flight.
"""

import sqlite3
from pathlib import Path

from core.config import DB_PATH
from core.validation import PayrollEntry

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS employers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT UNIQUE NOT NULL,
        hourly_wage INTEGER,
        default_transport_fee INTEGER,
        is_one_time INTEGER NOT NULL DEFAULT 0,
        note TEXT,
        color TEXT,
        create_date TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS shifts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        calendar_event_id TEXT NOT NULL,
        employer_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        entry_status TEXT NOT NULL DEFAULT 'PENDING' CHECK(entry_status IN ('PENDING', 'COMPLETED')),
        create_date TEXT DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (calendar_event_id, start_time),
        FOREIGN KEY (employer_id) REFERENCES employers(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payroll_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        shift_id INTEGER UNIQUE NOT NULL,
        entry_type TEXT NOT NULL CHECK(entry_type IN ('HOURS', 'INCOME')),
        clock_in TEXT,
        clock_out TEXT,
        break_start TEXT,
        break_end TEXT,
        break_minutes INTEGER,
        work_minutes INTEGER,
        late_night_minutes INTEGER,
        income INTEGER,
        transport_fee INTEGER,
        note TEXT,
        create_date TEXT DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (shift_id) REFERENCES shifts(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS expenses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entry_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        amount INTEGER NOT NULL CHECK(amount > 0),
        FOREIGN KEY (entry_id) REFERENCES payroll_entries(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sync_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id TEXT UNIQUE NOT NULL,
        trigger_source TEXT NOT NULL,
        started_at TEXT NOT NULL,
        success INTEGER NOT NULL,
        created INTEGER NOT NULL DEFAULT 0,
        updated INTEGER NOT NULL DEFAULT 0,
        deleted INTEGER NOT NULL DEFAULT 0,
        auto_filled INTEGER NOT NULL DEFAULT 0,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_shifts_start_time ON shifts(start_time)",
    "CREATE INDEX IF NOT EXISTS idx_shifts_employer_status ON shifts(employer_id, entry_status)",
    "CREATE INDEX IF NOT EXISTS idx_sync_runs_started ON sync_runs(started_at)",
]

INSERT_EMPLOYER_SQL = "INSERT OR IGNORE INTO employers (name) VALUES (?)"

INSERT_SHIFT_SQL = """
    INSERT INTO shifts (
        calendar_event_id, employer_id, title, start_time, end_time, entry_status
    ) VALUES (?, ?, ?, ?, ?, 'PENDING')
"""

UPDATE_SHIFT_END_SQL = "UPDATE shifts SET end_time = ?, title = ? WHERE id = ?"


def get_connection(db_path: Path | str = DB_PATH) -> sqlite3.Connection:
    """
    Get a database connection with row access by column name.

    The connection may be handed to worker threads (``asyncio.to_thread``)
    as long as only one thread uses it at a time.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    with conn:
        for statement in SCHEMA:
            conn.execute(statement)


# =============================================================================
# EMPLOYERS
# =============================================================================


def get_employer_by_name(conn: sqlite3.Connection, name: str) -> sqlite3.Row | None:
    return conn.execute("SELECT * FROM employers WHERE name = ?", (name,)).fetchone()


def find_or_create_employer(conn: sqlite3.Connection, name: str) -> sqlite3.Row:
    """
    Return the employer with this name, creating a bare one if absent.

    Existing employer fields are never overwritten.
    """
    with conn:
        conn.execute(INSERT_EMPLOYER_SQL, (name,))
    return get_employer_by_name(conn, name)


# =============================================================================
# SHIFTS
# =============================================================================


def find_shift(
    conn: sqlite3.Connection, calendar_event_id: str, start_time: str
) -> sqlite3.Row | None:
    """Look up a shift by its reconciliation key."""
    return conn.execute(
        "SELECT * FROM shifts WHERE calendar_event_id = ? AND start_time = ?",
        (calendar_event_id, start_time),
    ).fetchone()


def get_shift(conn: sqlite3.Connection, shift_id: int) -> sqlite3.Row | None:
    return conn.execute("SELECT * FROM shifts WHERE id = ?", (shift_id,)).fetchone()


def insert_shift(
    conn: sqlite3.Connection,
    calendar_event_id: str,
    employer_id: int,
    title: str,
    start_time: str,
    end_time: str,
) -> int:
    """Create a PENDING shift and return its id."""
    with conn:
        cursor = conn.execute(
            INSERT_SHIFT_SQL, (calendar_event_id, employer_id, title, start_time, end_time)
        )
    return cursor.lastrowid


def update_shift_end(conn: sqlite3.Connection, shift_id: int, end_time: str, title: str) -> None:
    with conn:
        conn.execute(UPDATE_SHIFT_END_SQL, (end_time, title, shift_id))


def upsert_shift(
    conn: sqlite3.Connection,
    calendar_event_id: str,
    employer_name: str,
    title: str,
    start_time: str,
    end_time: str,
) -> str:
    """
    Insert or update one shift, creating its employer if absent.

    The employer and shift writes share one transaction.

    Returns:
        "created", "updated" (end time changed) or "skipped"
    """
    with conn:
        conn.execute(INSERT_EMPLOYER_SQL, (employer_name,))
        employer = get_employer_by_name(conn, employer_name)

        existing = find_shift(conn, calendar_event_id, start_time)
        if existing is None:
            conn.execute(
                INSERT_SHIFT_SQL,
                (calendar_event_id, employer["id"], title, start_time, end_time),
            )
            return "created"

        if existing["end_time"] != end_time:
            conn.execute(UPDATE_SHIFT_END_SQL, (end_time, title, existing["id"]))
            return "updated"

    return "skipped"


def list_shifts_in_window(conn: sqlite3.Connection, start: str, end: str) -> list[sqlite3.Row]:
    """Shifts whose start time falls in [start, end)."""
    return conn.execute(
        """
        SELECT id, calendar_event_id, start_time FROM shifts
        WHERE start_time >= ? AND start_time < ?
        ORDER BY start_time
        """,
        (start, end),
    ).fetchall()


def list_pending_shifts(conn: sqlite3.Connection, employer_id: int) -> list[sqlite3.Row]:
    return conn.execute(
        """
        SELECT * FROM shifts
        WHERE employer_id = ? AND entry_status = 'PENDING'
        ORDER BY start_time ASC
        """,
        (employer_id,),
    ).fetchall()


def delete_shifts_cascade(conn: sqlite3.Connection, shift_ids: list[int]) -> int:
    """
    Delete shifts with their payroll entries and expenses in one transaction.

    Order is expenses, entries, then shifts. Returns the number of shifts deleted.
    """
    if not shift_ids:
        return 0

    placeholders = ", ".join("?" for _ in shift_ids)
    with conn:
        conn.execute(
            f"""
            DELETE FROM expenses WHERE entry_id IN (
                SELECT id FROM payroll_entries WHERE shift_id IN ({placeholders})
            )
            """,
            shift_ids,
        )
        conn.execute(f"DELETE FROM payroll_entries WHERE shift_id IN ({placeholders})", shift_ids)
        cursor = conn.execute(f"DELETE FROM shifts WHERE id IN ({placeholders})", shift_ids)
    return cursor.rowcount


# =============================================================================
# PAYROLL ENTRIES
# =============================================================================


def get_payroll_entry_for_shift(conn: sqlite3.Connection, shift_id: int) -> sqlite3.Row | None:
    return conn.execute(
        "SELECT * FROM payroll_entries WHERE shift_id = ?", (shift_id,)
    ).fetchone()


def list_expenses(conn: sqlite3.Connection, entry_id: int) -> list[sqlite3.Row]:
    return conn.execute(
        "SELECT * FROM expenses WHERE entry_id = ? ORDER BY id", (entry_id,)
    ).fetchall()


def create_payroll_entry(conn: sqlite3.Connection, entry: PayrollEntry) -> int:
    """
    Insert a payroll entry with its expenses and mark the shift COMPLETED.

    Returns the new entry id.
    """
    with conn:
        cursor = conn.execute(
            """
            INSERT INTO payroll_entries (
                shift_id, entry_type, clock_in, clock_out, break_start, break_end,
                break_minutes, work_minutes, late_night_minutes, income,
                transport_fee, note
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.shift_id,
                entry.entry_type,
                entry.clock_in,
                entry.clock_out,
                entry.break_start,
                entry.break_end,
                entry.break_minutes,
                entry.work_minutes,
                entry.late_night_minutes,
                entry.income,
                entry.transport_fee,
                entry.note,
            ),
        )
        entry_id = cursor.lastrowid
        for expense in entry.expenses:
            conn.execute(
                "INSERT INTO expenses (entry_id, name, amount) VALUES (?, ?, ?)",
                (entry_id, expense.name, expense.amount),
            )
        conn.execute(
            "UPDATE shifts SET entry_status = 'COMPLETED' WHERE id = ?",
            (entry.shift_id,),
        )
    return entry_id


def delete_payroll_entry(conn: sqlite3.Connection, entry_id: int) -> bool:
    """
    Delete a payroll entry and its expenses, resetting the shift to PENDING.

    Returns False if no such entry exists.
    """
    row = conn.execute(
        "SELECT shift_id FROM payroll_entries WHERE id = ?", (entry_id,)
    ).fetchone()
    if row is None:
        return False

    with conn:
        conn.execute("DELETE FROM expenses WHERE entry_id = ?", (entry_id,))
        conn.execute("DELETE FROM payroll_entries WHERE id = ?", (entry_id,))
        conn.execute(
            "UPDATE shifts SET entry_status = 'PENDING' WHERE id = ?",
            (row["shift_id"],),
        )
    return True

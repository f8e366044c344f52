"""
Health Store — single-file SQLite database for everything HoloSelf logs.

One shared connection guarded by a ``threading.Lock``.  Every public method
holds the lock only for its own SQL, so callers must never wrap a network
call (LLM, TTS) inside a store call.

Tables:
  supplements, vitals, lab_results, health_schedule, agent_memory,
  plus ``_migrations`` for schema versioning.

Dates are stored as ISO 8601 text.  "Today" comparisons use the date
prefix exactly as written (local time), not SQLite's UTC conversion.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from holoself.schemas.health import (
    AgentMemoryEntry,
    HealthTimelineEntry,
    LabResult,
    OcrResult,
    ScheduledExam,
    SupplementEntry,
    VitalEntry,
)

logger = logging.getLogger("holoself.storage")

CURRENT_SCHEMA_VERSION = 1

VOICE_TRANSCRIPT = "voice_transcript"

# test_date values MAX() can compare as dates
ISO_DATE_GLOB = "[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]*"

_V1_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS supplements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        dosage TEXT NOT NULL,
        taken_at TEXT NOT NULL,
        category TEXT NOT NULL,
        notes TEXT,
        created_at TEXT DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vitals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        vital_type TEXT NOT NULL,
        value REAL NOT NULL,
        unit TEXT NOT NULL,
        recorded_at TEXT NOT NULL,
        source TEXT NOT NULL DEFAULT 'manual',
        created_at TEXT DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS lab_results (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        marker TEXT NOT NULL,
        value REAL NOT NULL,
        unit TEXT NOT NULL,
        reference_range TEXT,
        status TEXT NOT NULL,
        lab_name TEXT,
        test_date TEXT,
        pdf_source TEXT,
        created_at TEXT DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS health_schedule (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        exam_type TEXT NOT NULL,
        reason TEXT NOT NULL,
        scheduled_date TEXT NOT NULL,
        triggered_by TEXT,
        completed INTEGER DEFAULT 0,
        created_at TEXT DEFAULT (datetime('now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS agent_memory (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        content TEXT NOT NULL,
        category TEXT NOT NULL,
        embedding BLOB,
        created_at TEXT DEFAULT (datetime('now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_supplements_taken_at ON supplements(taken_at)",
    "CREATE INDEX IF NOT EXISTS idx_vitals_recorded_at ON vitals(recorded_at)",
    "CREATE INDEX IF NOT EXISTS idx_lab_results_marker ON lab_results(marker)",
    "CREATE INDEX IF NOT EXISTS idx_health_schedule_date ON health_schedule(scheduled_date)",
    "CREATE INDEX IF NOT EXISTS idx_agent_memory_category ON agent_memory(category, created_at)",
]

# version → statements; append new versions here
MIGRATIONS: dict[int, list[str]] = {
    1: _V1_STATEMENTS,
}


class HealthStoreError(Exception):
    """Raised when the database cannot be reached or a statement fails."""


DateLike = Union[date, str]


def _day(value: DateLike) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def _utc_stamp(moment: datetime) -> str:
    """Format like SQLite's ``datetime('now')`` (UTC, no offset)."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


class HealthStore:
    """
    SQLite-backed storage for supplements, vitals, labs, exams and agent memory.

    Usage:
        store = HealthStore("~/.holoself/holoself.db")
        store.run_migrations()
        store.insert_supplement(entry)
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:") -> None:
        self.db_path = str(db_path)
        in_memory = self.db_path == ":memory:"
        if not in_memory:
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        url = "sqlite://" if in_memory else f"sqlite:///{Path(self.db_path).expanduser()}"

        try:
            self._engine = create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            self._conn: Connection = self._engine.connect()
            if not in_memory:
                self._conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            self._conn.exec_driver_sql("PRAGMA foreign_keys=ON")
            self._conn.commit()
        except SQLAlchemyError as e:
            raise HealthStoreError(f"Failed to open database at {self.db_path}: {e}") from e

        self._lock = threading.Lock()
        logger.info("Health store opened at %s", self.db_path)

    @contextmanager
    def _session(self) -> Iterator[Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except SQLAlchemyError as e:
                self._conn.rollback()
                raise HealthStoreError(str(e)) from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()
            self._engine.dispose()

    def ping(self) -> bool:
        try:
            with self._session() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except HealthStoreError:
            return False

    # ── Migrations ──

    def schema_version(self) -> int:
        with self._session() as conn:
            conn.exec_driver_sql(
                "CREATE TABLE IF NOT EXISTS _migrations ("
                " version INTEGER PRIMARY KEY,"
                " applied_at TEXT DEFAULT (datetime('now')))"
            )
            return conn.execute(
                text("SELECT COALESCE(MAX(version), 0) FROM _migrations")
            ).scalar_one()

    def run_migrations(self) -> int:
        """Apply every migration newer than the recorded version."""
        current = self.schema_version()
        for version in sorted(MIGRATIONS):
            if version <= current:
                continue
            with self._session() as conn:
                for statement in MIGRATIONS[version]:
                    conn.exec_driver_sql(statement)
                conn.execute(
                    text("INSERT INTO _migrations (version) VALUES (:v)"), {"v": version}
                )
            logger.info("Applied schema migration v%d", version)
            current = version
        return current

    # ── Supplements ──

    def insert_supplement(self, entry: SupplementEntry) -> int:
        with self._session() as conn:
            result = conn.execute(
                text(
                    "INSERT INTO supplements (name, dosage, taken_at, category, notes) "
                    "VALUES (:name, :dosage, :taken_at, :category, :notes)"
                ),
                entry.model_dump(exclude={"id"}),
            )
            return int(result.lastrowid)

    def get_supplements(self, date_from: str, date_to: str) -> list[SupplementEntry]:
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT id, name, dosage, taken_at, category, notes FROM supplements "
                    "WHERE taken_at BETWEEN :date_from AND :date_to ORDER BY taken_at DESC"
                ),
                {"date_from": date_from, "date_to": date_to},
            ).mappings().all()
        return [SupplementEntry(**row) for row in rows]

    def is_supplement_taken(self, name: str, day: DateLike) -> bool:
        with self._session() as conn:
            count = conn.execute(
                text(
                    "SELECT COUNT(*) FROM supplements "
                    "WHERE name = :name AND substr(taken_at, 1, 10) = :day"
                ),
                {"name": name, "day": _day(day)},
            ).scalar_one()
        return count > 0

    def active_supplement_names(
        self, since_days: int = 90, now: Optional[datetime] = None
    ) -> list[str]:
        """Distinct supplement names logged in the last ``since_days``, oldest first."""
        since = ((now or datetime.now()) - timedelta(days=since_days)).strftime("%Y-%m-%d")
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT name FROM supplements WHERE substr(taken_at, 1, 10) >= :since "
                    "GROUP BY name ORDER BY MIN(taken_at), name"
                ),
                {"since": since},
            ).all()
        return [row[0] for row in rows]

    # ── Vitals ──

    def insert_vital(self, entry: VitalEntry) -> int:
        with self._session() as conn:
            result = conn.execute(
                text(
                    "INSERT INTO vitals (vital_type, value, unit, recorded_at, source) "
                    "VALUES (:vital_type, :value, :unit, :recorded_at, :source)"
                ),
                entry.model_dump(exclude={"id"}),
            )
            return int(result.lastrowid)

    def get_vitals(self, date_from: str, date_to: str) -> list[VitalEntry]:
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT id, vital_type, value, unit, recorded_at, source FROM vitals "
                    "WHERE recorded_at BETWEEN :date_from AND :date_to ORDER BY recorded_at DESC"
                ),
                {"date_from": date_from, "date_to": date_to},
            ).mappings().all()
        return [VitalEntry(**row) for row in rows]

    def count_vitals_on(self, day: DateLike) -> int:
        with self._session() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM vitals WHERE substr(recorded_at, 1, 10) = :day"),
                {"day": _day(day)},
            ).scalar_one()

    def get_health_timeline(self, date_from: str, date_to: str) -> list[HealthTimelineEntry]:
        """Supplements and vitals in one list, newest first."""
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT timestamp, event_type, label, value FROM ("
                    " SELECT taken_at AS timestamp, 'supplement' AS event_type,"
                    "        name || ' (' || dosage || ')' AS label, NULL AS value"
                    " FROM supplements WHERE taken_at BETWEEN :date_from AND :date_to"
                    " UNION ALL"
                    " SELECT recorded_at AS timestamp, 'vital' AS event_type,"
                    "        vital_type || ': ' || CAST(value AS TEXT) || ' ' || unit AS label,"
                    "        value"
                    " FROM vitals WHERE recorded_at BETWEEN :date_from AND :date_to"
                    ") ORDER BY timestamp DESC"
                ),
                {"date_from": date_from, "date_to": date_to},
            ).mappings().all()
        return [HealthTimelineEntry(**row) for row in rows]

    # ── Lab results ──

    def insert_lab_result(self, lab: LabResult) -> int:
        with self._session() as conn:
            result = conn.execute(
                text(
                    "INSERT INTO lab_results "
                    "(marker, value, unit, reference_range, status, lab_name, test_date, pdf_source) "
                    "VALUES (:marker, :value, :unit, :reference_range, :status, :lab_name, "
                    ":test_date, :pdf_source)"
                ),
                lab.model_dump(exclude={"id"}),
            )
            return int(result.lastrowid)

    def import_ocr_result(self, ocr: OcrResult, pdf_source: Optional[str] = None) -> list[int]:
        """Store every marker of an OCR'd report under the report's date and lab."""
        ids = []
        for marker in ocr.markers:
            ids.append(
                self.insert_lab_result(
                    LabResult(
                        marker=marker.marker,
                        value=marker.value,
                        unit=marker.unit,
                        reference_range=marker.reference_range,
                        status=marker.status,
                        lab_name=ocr.lab,
                        test_date=ocr.date,
                        pdf_source=pdf_source,
                    )
                )
            )
        logger.info("Imported %d lab markers from %s", len(ids), pdf_source or "ocr")
        return ids

    def latest_test_date_per_marker(self) -> list[tuple[str, Optional[str]]]:
        """Newest well-formed (YYYY-MM-DD) test date per marker; None when a marker has none."""
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT marker, MAX(CASE WHEN test_date GLOB :iso THEN test_date END) "
                    "FROM lab_results GROUP BY marker ORDER BY marker"
                ),
                {"iso": ISO_DATE_GLOB},
            ).all()
        return [(row[0], row[1]) for row in rows]

    # ── Scheduled exams ──

    def insert_scheduled_exam(self, exam: ScheduledExam) -> int:
        with self._session() as conn:
            result = conn.execute(
                text(
                    "INSERT INTO health_schedule "
                    "(exam_type, reason, scheduled_date, triggered_by, completed) "
                    "VALUES (:exam_type, :reason, :scheduled_date, :triggered_by, :completed)"
                ),
                {
                    "exam_type": exam.exam_type,
                    "reason": exam.reason,
                    "scheduled_date": exam.scheduled_date,
                    "triggered_by": exam.triggered_by,
                    "completed": int(exam.completed),
                },
            )
            return int(result.lastrowid)

    def has_pending_exam(self, exam_type: str, triggered_by: Optional[str]) -> bool:
        with self._session() as conn:
            count = conn.execute(
                text(
                    "SELECT COUNT(*) FROM health_schedule WHERE exam_type = :exam_type "
                    "AND triggered_by IS :triggered_by AND completed = 0"
                ),
                {"exam_type": exam_type, "triggered_by": triggered_by},
            ).scalar_one()
        return count > 0

    def upcoming_incomplete_exams(self) -> list[ScheduledExam]:
        """Not-yet-completed exams, soonest first."""
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT id, exam_type, reason, scheduled_date, triggered_by, completed "
                    "FROM health_schedule WHERE completed = 0 "
                    "ORDER BY scheduled_date ASC, id ASC"
                )
            ).mappings().all()
        return [ScheduledExam(**{**row, "completed": bool(row["completed"])}) for row in rows]

    def complete_exam(self, exam_id: int) -> bool:
        with self._session() as conn:
            result = conn.execute(
                text("UPDATE health_schedule SET completed = 1 WHERE id = :id"),
                {"id": exam_id},
            )
            return result.rowcount > 0

    # ── Agent memory ──

    def insert_memory(
        self, content: str, category: str, created_at: Optional[datetime] = None
    ) -> int:
        with self._session() as conn:
            if created_at is None:
                result = conn.execute(
                    text("INSERT INTO agent_memory (content, category) VALUES (:content, :category)"),
                    {"content": content, "category": category},
                )
            else:
                result = conn.execute(
                    text(
                        "INSERT INTO agent_memory (content, category, created_at) "
                        "VALUES (:content, :category, :created_at)"
                    ),
                    {"content": content, "category": category, "created_at": _utc_stamp(created_at)},
                )
            return int(result.lastrowid)

    def get_memory(self, category: str, limit: int = 20) -> list[AgentMemoryEntry]:
        with self._session() as conn:
            rows = conn.execute(
                text(
                    "SELECT id, content, category, created_at FROM agent_memory "
                    "WHERE category = :category ORDER BY id DESC LIMIT :limit"
                ),
                {"category": category, "limit": limit},
            ).mappings().all()
        return [AgentMemoryEntry(**row) for row in rows]

    def recent_voice_transcript(
        self, within_seconds: int = 30, now: Optional[datetime] = None
    ) -> Optional[str]:
        """Latest voice transcript recorded within the last ``within_seconds``."""
        cutoff = _utc_stamp((now or datetime.now(timezone.utc)) - timedelta(seconds=within_seconds))
        with self._session() as conn:
            row = conn.execute(
                text(
                    "SELECT content FROM agent_memory "
                    "WHERE category = :category AND created_at >= :cutoff "
                    "ORDER BY created_at DESC, id DESC LIMIT 1"
                ),
                {"category": VOICE_TRANSCRIPT, "cutoff": cutoff},
            ).first()
        return row[0] if row else None

    def count_memory(self, category: str, day: DateLike) -> int:
        with self._session() as conn:
            return conn.execute(
                text(
                    "SELECT COUNT(*) FROM agent_memory "
                    "WHERE category = :category AND substr(created_at, 1, 10) = :day"
                ),
                {"category": category, "day": _day(day)},
            ).scalar_one()

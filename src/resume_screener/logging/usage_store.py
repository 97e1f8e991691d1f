"""SQLite-backed usage log storage."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from resume_screener.logging.models import UsageLog

DEFAULT_DB_PATH = Path.home() / ".resume-screener" / "usage.db"


class UsageStore:
    """SQLite-backed store for analysis usage logs with WAL mode."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS usage_logs (
                    id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    mode TEXT NOT NULL,
                    job_id TEXT,
                    job_title TEXT,
                    files_total INTEGER NOT NULL DEFAULT 0,
                    files_succeeded INTEGER NOT NULL DEFAULT 0,
                    fallback_count INTEGER NOT NULL DEFAULT 0,
                    degraded_count INTEGER NOT NULL DEFAULT 0,
                    elapsed_seconds REAL NOT NULL DEFAULT 0.0,
                    total_input_tokens INTEGER NOT NULL DEFAULT 0,
                    total_output_tokens INTEGER NOT NULL DEFAULT 0,
                    estimated_cost_usd REAL NOT NULL DEFAULT 0.0,
                    success INTEGER NOT NULL DEFAULT 1,
                    error_message TEXT
                )
            """)

    def save_log(self, log: UsageLog) -> None:
        """Persist a usage log entry."""
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO usage_logs
                   (id, timestamp, mode, job_id, job_title, files_total,
                    files_succeeded, fallback_count, degraded_count, elapsed_seconds,
                    total_input_tokens, total_output_tokens, estimated_cost_usd,
                    success, error_message)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    log.id,
                    log.timestamp.isoformat(),
                    log.mode,
                    log.job_id,
                    log.job_title,
                    log.files_total,
                    log.files_succeeded,
                    log.fallback_count,
                    log.degraded_count,
                    log.elapsed_seconds,
                    log.total_input_tokens,
                    log.total_output_tokens,
                    log.estimated_cost_usd,
                    1 if log.success else 0,
                    log.error_message,
                ),
            )

    def get_logs(self, job_id: str | None = None, limit: int = 50) -> list[UsageLog]:
        """Retrieve usage logs, optionally filtered by job_id."""
        with self._connect() as conn:
            if job_id is not None:
                rows = conn.execute(
                    "SELECT * FROM usage_logs WHERE job_id = ? ORDER BY timestamp DESC LIMIT ?",
                    (job_id, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM usage_logs ORDER BY timestamp DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        return [self._row_to_log(row) for row in rows]

    def get_monthly_stats(self) -> dict:
        """Get aggregated stats for the current month."""
        now = datetime.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        with self._connect() as conn:
            row = conn.execute(
                """SELECT
                       COUNT(*),
                       SUM(files_total),
                       SUM(files_succeeded),
                       SUM(fallback_count),
                       SUM(total_input_tokens),
                       SUM(total_output_tokens),
                       SUM(estimated_cost_usd)
                   FROM usage_logs
                   WHERE timestamp >= ?""",
                (month_start.isoformat(),),
            ).fetchone()
        files_total = row[1] or 0
        return {
            "total_runs": row[0] or 0,
            "files_total": files_total,
            "files_succeeded": row[2] or 0,
            "fallback_count": row[3] or 0,
            "total_input_tokens": row[4] or 0,
            "total_output_tokens": row[5] or 0,
            "total_cost_usd": row[6] or 0.0,
            "success_rate": ((row[2] or 0) / files_total * 100) if files_total else 0.0,
            "month": now.strftime("%Y-%m"),
        }

    @staticmethod
    def _row_to_log(row: tuple) -> UsageLog:
        return UsageLog(
            id=row[0],
            timestamp=datetime.fromisoformat(row[1]),
            mode=row[2],
            job_id=row[3],
            job_title=row[4],
            files_total=row[5],
            files_succeeded=row[6],
            fallback_count=row[7],
            degraded_count=row[8],
            elapsed_seconds=row[9],
            total_input_tokens=row[10],
            total_output_tokens=row[11],
            estimated_cost_usd=row[12],
            success=bool(row[13]),
            error_message=row[14],
        )

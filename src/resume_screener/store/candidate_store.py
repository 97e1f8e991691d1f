"""SQLite store for job postings and candidate analyses."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from resume_screener.errors import JobNotFound
from resume_screener.models.analysis import ResumeAnalysis
from resume_screener.models.candidate import CandidateRecord
from resume_screener.models.job import JobPosting, JobRequirements, JobStatus

DEFAULT_DB_PATH = Path.home() / ".resume-screener" / "screener.db"

_JOB_COLUMNS = (
    "id, title, description, required_skills, optional_skills, experience_min, "
    "experience_max, status, total_resumes, processed_resumes, created_at, updated_at"
)
_CANDIDATE_COLUMNS = (
    "id, job_id, resume_filename, analysis_json, provider, model, degraded, fallback, "
    "processed_at, created_at"
)


class CandidateStore:
    """SQLite-backed jobs and candidates tables with WAL mode."""

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
                CREATE TABLE IF NOT EXISTS jobs (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    required_skills TEXT NOT NULL DEFAULT '[]',
                    optional_skills TEXT NOT NULL DEFAULT '[]',
                    experience_min INTEGER NOT NULL DEFAULT 0,
                    experience_max INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    total_resumes INTEGER NOT NULL DEFAULT 0,
                    processed_resumes INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS candidates (
                    id TEXT PRIMARY KEY,
                    job_id TEXT NOT NULL,
                    resume_filename TEXT NOT NULL,
                    analysis_json TEXT NOT NULL,
                    match_score REAL NOT NULL,
                    recommendation TEXT NOT NULL,
                    provider TEXT,
                    model TEXT,
                    degraded INTEGER NOT NULL DEFAULT 0,
                    fallback INTEGER NOT NULL DEFAULT 0,
                    processed_at TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_candidates_job ON candidates (job_id, match_score)"
            )

    # --- Jobs ---

    def create_job(self, requirements: JobRequirements, status: JobStatus = "active") -> JobPosting:
        """Persist a new job posting and return it."""
        job = JobPosting(**requirements.model_dump(), status=status)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO jobs ({_JOB_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    job.id,
                    job.title,
                    job.description,
                    json.dumps(job.required_skills),
                    json.dumps(job.optional_skills),
                    job.experience_min,
                    job.experience_max,
                    job.status,
                    job.total_resumes,
                    job.processed_resumes,
                    job.created_at.isoformat(),
                    job.updated_at.isoformat(),
                ),
            )
        return job

    def get_job(self, job_id: str) -> JobPosting | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id = ?", (job_id,)
            ).fetchone()
        return self._row_to_job(row) if row else None

    def require_job(self, job_id: str) -> JobPosting:
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def list_jobs(self, status: JobStatus | None = None) -> list[JobPosting]:
        """Jobs newest first, optionally filtered by status."""
        with self._connect() as conn:
            if status is not None:
                rows = conn.execute(
                    f"SELECT {_JOB_COLUMNS} FROM jobs WHERE status = ? ORDER BY created_at DESC",
                    (status,),
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_JOB_COLUMNS} FROM jobs ORDER BY created_at DESC"
                ).fetchall()
        return [self._row_to_job(row) for row in rows]

    def update_job_status(self, job_id: str, status: JobStatus) -> JobPosting:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE jobs SET status = ?, updated_at = ? WHERE id = ?",
                (status, datetime.now().isoformat(), job_id),
            )
            if cursor.rowcount == 0:
                raise JobNotFound(job_id)
        return self.require_job(job_id)

    def record_batch(self, job_id: str, attempted: int, succeeded: int) -> JobPosting:
        """Add a batch's file counts to the job's resume counters."""
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE jobs
                   SET total_resumes = total_resumes + ?,
                       processed_resumes = processed_resumes + ?,
                       updated_at = ?
                   WHERE id = ?""",
                (attempted, succeeded, datetime.now().isoformat(), job_id),
            )
            if cursor.rowcount == 0:
                raise JobNotFound(job_id)
        return self.require_job(job_id)

    def delete_job(self, job_id: str) -> bool:
        """Delete a job and its candidates. Returns False if it did not exist."""
        with self._connect() as conn:
            conn.execute("DELETE FROM candidates WHERE job_id = ?", (job_id,))
            cursor = conn.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
            return cursor.rowcount > 0

    # --- Candidates ---

    def add_candidate(self, record: CandidateRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""INSERT OR REPLACE INTO candidates
                    ({_CANDIDATE_COLUMNS}, match_score, recommendation)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.id,
                    record.job_id,
                    record.resume_filename,
                    record.analysis.model_dump_json(),
                    record.provider,
                    record.model,
                    1 if record.degraded else 0,
                    1 if record.fallback else 0,
                    record.processed_at.isoformat(),
                    record.created_at.isoformat(),
                    record.analysis.match_score,
                    record.analysis.recommendation,
                ),
            )

    def get_candidate(self, candidate_id: str) -> CandidateRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_CANDIDATE_COLUMNS} FROM candidates WHERE id = ?", (candidate_id,)
            ).fetchone()
        return self._row_to_candidate(row) if row else None

    def list_candidates(
        self,
        job_id: str,
        recommendation: str | None = None,
        min_score: float | None = None,
    ) -> list[CandidateRecord]:
        """Candidates for a job, best match first."""
        query = f"SELECT {_CANDIDATE_COLUMNS} FROM candidates WHERE job_id = ?"
        params: list = [job_id]
        if recommendation is not None:
            query += " AND recommendation = ?"
            params.append(recommendation)
        if min_score is not None:
            query += " AND match_score >= ?"
            params.append(min_score)
        query += " ORDER BY match_score DESC, created_at ASC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_candidate(row) for row in rows]

    def dashboard_stats(self) -> dict:
        """Aggregate counts across all jobs and candidates."""
        with self._connect() as conn:
            job_rows = conn.execute(
                "SELECT status, COUNT(*) FROM jobs GROUP BY status"
            ).fetchall()
            candidate_row = conn.execute(
                """SELECT
                       COUNT(*),
                       AVG(match_score),
                       SUM(CASE WHEN recommendation = 'Shortlist' THEN 1 ELSE 0 END),
                       SUM(CASE WHEN recommendation = 'Review' THEN 1 ELSE 0 END),
                       SUM(CASE WHEN recommendation = 'Reject' THEN 1 ELSE 0 END)
                   FROM candidates"""
            ).fetchone()
        jobs_by_status = {status: count for status, count in job_rows}
        return {
            "total_jobs": sum(jobs_by_status.values()),
            "active_jobs": jobs_by_status.get("active", 0),
            "total_candidates": candidate_row[0] or 0,
            "avg_match_score": round(candidate_row[1], 1) if candidate_row[1] is not None else None,
            "shortlisted": candidate_row[2] or 0,
            "review": candidate_row[3] or 0,
            "rejected": candidate_row[4] or 0,
        }

    @staticmethod
    def _row_to_job(row: tuple) -> JobPosting:
        return JobPosting(
            id=row[0],
            title=row[1],
            description=row[2],
            required_skills=json.loads(row[3]),
            optional_skills=json.loads(row[4]),
            experience_min=row[5],
            experience_max=row[6],
            status=row[7],
            total_resumes=row[8],
            processed_resumes=row[9],
            created_at=datetime.fromisoformat(row[10]),
            updated_at=datetime.fromisoformat(row[11]),
        )

    @staticmethod
    def _row_to_candidate(row: tuple) -> CandidateRecord:
        return CandidateRecord(
            id=row[0],
            job_id=row[1],
            resume_filename=row[2],
            analysis=ResumeAnalysis.model_validate_json(row[3]),
            provider=row[4],
            model=row[5],
            degraded=bool(row[6]),
            fallback=bool(row[7]),
            processed_at=datetime.fromisoformat(row[8]),
            created_at=datetime.fromisoformat(row[9]),
        )

"""Tests for UsageLog model and UsageStore."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from resume_screener.logging.models import UsageLog
from resume_screener.logging.usage_store import UsageStore


# --- UsageLog model tests ---


class TestUsageLog:
    def test_create_minimal(self):
        log = UsageLog()
        assert log.mode == "batch_analysis"
        assert log.job_id is None
        assert log.success is True
        assert log.fallback_count == 0
        assert log.id  # uuid auto-generated

    def test_create_full(self):
        log = UsageLog(
            mode="single_analysis",
            job_id="job-1",
            job_title="Backend Engineer",
            files_total=3,
            files_succeeded=2,
            fallback_count=1,
            degraded_count=1,
            elapsed_seconds=42.5,
            total_input_tokens=5000,
            total_output_tokens=3000,
            estimated_cost_usd=0.05,
        )
        assert log.job_title == "Backend Engineer"
        assert log.files_succeeded == 2
        assert log.total_input_tokens == 5000
        assert log.estimated_cost_usd == 0.05

    def test_unique_ids(self):
        assert UsageLog().id != UsageLog().id

    def test_timestamp_auto(self):
        before = datetime.now()
        log = UsageLog()
        after = datetime.now()
        assert before <= log.timestamp <= after


# --- UsageStore tests ---


@pytest.fixture
def usage_store(tmp_path: Path) -> UsageStore:
    return UsageStore(db_path=tmp_path / "test_usage.db")


class TestUsageStore:
    def test_save_and_get(self, usage_store: UsageStore):
        log = UsageLog(job_id="job-1", job_title="Frontend", error_message="a.pdf: empty")
        usage_store.save_log(log)
        logs = usage_store.get_logs()
        assert len(logs) == 1
        assert logs[0].id == log.id
        assert logs[0].job_title == "Frontend"
        assert logs[0].error_message == "a.pdf: empty"

    def test_get_by_job_id(self, usage_store: UsageStore):
        usage_store.save_log(UsageLog(job_id="j1"))
        usage_store.save_log(UsageLog(job_id="j2"))
        usage_store.save_log(UsageLog(job_id="j1"))

        assert len(usage_store.get_logs(job_id="j1")) == 2
        assert len(usage_store.get_logs(job_id="j2")) == 1

    def test_get_logs_limit(self, usage_store: UsageStore):
        for _ in range(10):
            usage_store.save_log(UsageLog())
        assert len(usage_store.get_logs(limit=3)) == 3

    def test_get_logs_empty(self, usage_store: UsageStore):
        assert usage_store.get_logs() == []

    def test_monthly_stats(self, usage_store: UsageStore):
        usage_store.save_log(
            UsageLog(
                files_total=4,
                files_succeeded=3,
                fallback_count=1,
                total_input_tokens=1000,
                total_output_tokens=500,
                estimated_cost_usd=0.03,
            )
        )
        usage_store.save_log(
            UsageLog(
                files_total=1,
                files_succeeded=1,
                total_input_tokens=2000,
                total_output_tokens=1000,
                estimated_cost_usd=0.05,
            )
        )
        stats = usage_store.get_monthly_stats()
        assert stats["total_runs"] == 2
        assert stats["files_total"] == 5
        assert stats["files_succeeded"] == 4
        assert stats["fallback_count"] == 1
        assert stats["total_input_tokens"] == 3000
        assert stats["total_output_tokens"] == 1500
        assert stats["total_cost_usd"] == pytest.approx(0.08)
        assert stats["success_rate"] == pytest.approx(80.0)
        assert stats["month"] == datetime.now().strftime("%Y-%m")

    def test_monthly_stats_empty(self, usage_store: UsageStore):
        stats = usage_store.get_monthly_stats()
        assert stats["total_runs"] == 0
        assert stats["total_cost_usd"] == 0.0
        assert stats["success_rate"] == 0.0

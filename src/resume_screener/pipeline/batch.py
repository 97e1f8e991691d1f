"""Batch upload pipeline: extract, analyze and store each resume in turn."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from resume_screener.config import ExtractionConfig
from resume_screener.errors import DocumentError
from resume_screener.logging.cost_calculator import calculate_cost
from resume_screener.logging.models import UsageLog
from resume_screener.logging.usage_store import UsageStore
from resume_screener.models.candidate import CandidateRecord
from resume_screener.parsers.resume_parser import DOCX_MIME, PDF_MIME, extract_upload
from resume_screener.pipeline.orchestrator import ResumeAnalyzer
from resume_screener.store.candidate_store import CandidateStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


def collect_calls(analyzer: ResumeAnalyzer) -> list[tuple[str, int, int]]:
    """Drain both provider token logs as (model, input_tokens, output_tokens)."""
    calls: list[tuple[str, int, int]] = []
    for client in (analyzer.primary, analyzer.secondary):
        calls.extend(client.get_token_summary()["calls"])
    return calls


@dataclass
class UploadedFile:
    filename: str
    content: bytes
    content_type: str = ""

    @property
    def format_hint(self) -> str:
        # Browsers often send a generic or empty type; trust the name then
        if self.content_type in (PDF_MIME, DOCX_MIME):
            return self.content_type
        return self.filename


@dataclass
class FileOutcome:
    filename: str
    success: bool
    candidate: CandidateRecord | None = None
    error: str = ""


@dataclass
class BatchReport:
    job_id: str
    outcomes: list[FileOutcome] = field(default_factory=list)
    usage: UsageLog | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded


class BatchProcessor:
    """Processes uploaded resumes one at a time for a single job.

    A file that cannot be read is reported and skipped; the rest of the
    batch still runs. Provider failures never stop a batch because the
    analyzer always returns an analysis.
    """

    def __init__(
        self,
        analyzer: ResumeAnalyzer,
        store: CandidateStore,
        *,
        extraction: ExtractionConfig | None = None,
        usage_store: UsageStore | None = None,
    ):
        self.analyzer = analyzer
        self.store = store
        self.extraction = extraction or ExtractionConfig()
        self.usage_store = usage_store

    def read_document(self, file: UploadedFile) -> str:
        return extract_upload(file.content, file.format_hint, self.extraction)

    async def process(
        self,
        job_id: str,
        files: list[UploadedFile],
        on_progress: ProgressCallback | None = None,
    ) -> BatchReport:
        """Run every file through extraction and analysis and store the results.

        Args:
            job_id: Stored job to score against.
            files: Uploaded documents, processed in order.
            on_progress: Optional callback(index, total, filename), called
                before each file starts and once more with index == total.

        Raises:
            JobNotFound: if job_id is not in the store.
        """
        job = self.store.require_job(job_id)
        requirements = job.to_requirements()
        report = BatchReport(job_id=job_id)
        start = time.monotonic()
        fallback_count = 0
        degraded_count = 0

        for index, file in enumerate(files):
            if on_progress:
                on_progress(index, len(files), file.filename)
            try:
                resume_text = self.read_document(file)
            except DocumentError as exc:
                logger.warning("Failed to read %s: %s", file.filename, exc)
                report.outcomes.append(
                    FileOutcome(filename=file.filename, success=False, error=str(exc))
                )
                continue
            logger.info("Extracted %d characters from %s", len(resume_text), file.filename)

            result = await self.analyzer.analyze_detailed(resume_text, requirements)
            fallback_count += int(result.fallback)
            degraded_count += int(result.degraded)
            record = CandidateRecord(
                job_id=job_id,
                resume_filename=file.filename,
                analysis=result.analysis,
                provider=result.provider,
                model=result.model,
                degraded=result.degraded,
                fallback=result.fallback,
            )
            self.store.add_candidate(record)
            report.outcomes.append(FileOutcome(filename=file.filename, success=True, candidate=record))

        if on_progress:
            on_progress(len(files), len(files), "")

        self.store.record_batch(job_id, attempted=len(files), succeeded=report.succeeded)
        report.usage = self._usage_log(job.id, job.title, report, fallback_count, degraded_count)
        report.usage.elapsed_seconds = time.monotonic() - start
        if self.usage_store is not None:
            self.usage_store.save_log(report.usage)

        logger.info(
            "Batch for job %s done: %d succeeded, %d failed",
            job_id,
            report.succeeded,
            report.failed,
        )
        return report

    def _usage_log(
        self,
        job_id: str,
        job_title: str,
        report: BatchReport,
        fallback_count: int,
        degraded_count: int,
    ) -> UsageLog:
        calls = collect_calls(self.analyzer)
        failures = [o for o in report.outcomes if not o.success]
        return UsageLog(
            job_id=job_id,
            job_title=job_title,
            files_total=len(report.outcomes),
            files_succeeded=report.succeeded,
            fallback_count=fallback_count,
            degraded_count=degraded_count,
            total_input_tokens=sum(c[1] for c in calls),
            total_output_tokens=sum(c[2] for c in calls),
            estimated_cost_usd=calculate_cost(calls),
            success=not failures,
            error_message="; ".join(f"{o.filename}: {o.error}" for o in failures) or None,
        )

"""Tests for the batch upload processor."""

import io
import zipfile

import docx
import pytest

from resume_screener.config import ExtractionConfig, LLMConfig
from resume_screener.errors import JobNotFound
from resume_screener.logging.usage_store import UsageStore
from resume_screener.parsers.resume_parser import DOCX_MIME, PDF_MIME
from resume_screener.pipeline.batch import BatchProcessor, UploadedFile
from resume_screener.pipeline.orchestrator import ResumeAnalyzer

LLM_CONFIG = LLMConfig(
    primary_models=("claude-sonnet-4-5-20250929",),
    primary_degraded_models=("claude-haiku-4-5-20251001",),
    secondary_models=("gemini-2.5-flash",),
    secondary_degraded_models=("gemini-2.5-flash-lite",),
)


def _docx_bytes(text: str) -> bytes:
    document = docx.Document()
    for line in text.splitlines():
        document.add_paragraph(line)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def job(store, sample_job):
    return store.create_job(sample_job)


def _processor(fake_provider, store, primary_responses, usage_store=None):
    primary = fake_provider("anthropic", primary_responses)
    secondary = fake_provider("gemini")
    analyzer = ResumeAnalyzer(primary, secondary, llm_config=LLM_CONFIG)
    return BatchProcessor(
        analyzer, store, extraction=ExtractionConfig(), usage_store=usage_store
    )


class TestUploadedFile:
    def test_format_hint_prefers_known_mime(self):
        assert UploadedFile("cv", b"", PDF_MIME).format_hint == PDF_MIME
        assert UploadedFile("cv.docx", b"", "application/octet-stream").format_hint == "cv.docx"
        assert UploadedFile("cv.docx", b"", DOCX_MIME).format_hint == DOCX_MIME


class TestBatchProcessor:
    async def test_processes_and_stores(
        self, fake_provider, store, job, sample_resume_text, analysis_json, tmp_path
    ):
        usage_store = UsageStore(db_path=tmp_path / "usage.db")
        processor = _processor(fake_provider, store, [analysis_json], usage_store)
        files = [UploadedFile("jane.docx", _docx_bytes(sample_resume_text), DOCX_MIME)]

        report = await processor.process(job.id, files)

        assert report.succeeded == 1
        assert report.failed == 0
        stored = store.list_candidates(job.id)
        assert len(stored) == 1
        assert stored[0].resume_filename == "jane.docx"
        assert stored[0].analysis.match_score == 88
        assert stored[0].provider == "anthropic"
        assert store.get_job(job.id).processed_resumes == 1

        logs = usage_store.get_logs(job_id=job.id)
        assert len(logs) == 1
        assert logs[0].files_succeeded == 1
        assert logs[0].total_input_tokens == 100
        assert logs[0].estimated_cost_usd > 0

    async def test_unreadable_file_does_not_stop_batch(
        self, fake_provider, store, job, sample_resume_text, analysis_json
    ):
        processor = _processor(fake_provider, store, [analysis_json])
        files = [
            UploadedFile("notes.txt", b"plain text"),
            UploadedFile("broken.pdf", b"not a pdf", PDF_MIME),
            UploadedFile("jane.docx", _docx_bytes(sample_resume_text)),
        ]

        report = await processor.process(job.id, files)

        assert [o.success for o in report.outcomes] == [False, False, True]
        assert report.outcomes[0].error
        assert report.usage.success is False
        assert "notes.txt" in report.usage.error_message
        updated = store.get_job(job.id)
        assert updated.total_resumes == 3
        assert updated.processed_resumes == 1

    async def test_malformed_docx_xml_does_not_stop_batch(
        self, fake_provider, store, job, sample_resume_text, analysis_json
    ):
        good = _docx_bytes(sample_resume_text)
        src = zipfile.ZipFile(io.BytesIO(good))
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as out:
            for item in src.infolist():
                data = src.read(item.filename)
                if item.filename == "word/document.xml":
                    data = b"<w:document <broken"
                out.writestr(item, data)
        processor = _processor(fake_provider, store, [analysis_json])
        files = [UploadedFile("broken.docx", buf.getvalue()), UploadedFile("good.docx", good)]

        report = await processor.process(job.id, files)

        assert [o.success for o in report.outcomes] == [False, True]
        assert "malformed XML" in report.outcomes[0].error
        assert [c.resume_filename for c in store.list_candidates(job.id)] == ["good.docx"]
        assert store.get_job(job.id).total_resumes == 2

    async def test_provider_failure_stores_fallback(
        self, fake_provider, store, job, sample_resume_text
    ):
        processor = _processor(fake_provider, store, [])
        files = [UploadedFile("jane.docx", _docx_bytes(sample_resume_text))]

        report = await processor.process(job.id, files)

        candidate = report.outcomes[0].candidate
        assert report.outcomes[0].success
        assert candidate.fallback is True
        assert candidate.provider is None
        assert candidate.analysis.recommendation == "Review"
        assert report.usage.fallback_count == 1

    async def test_progress_callback(self, fake_provider, store, job, sample_resume_text):
        processor = _processor(fake_provider, store, [])
        events = []
        files = [
            UploadedFile("a.docx", _docx_bytes(sample_resume_text)),
            UploadedFile("b.docx", _docx_bytes(sample_resume_text)),
        ]

        await processor.process(job.id, files, on_progress=lambda *args: events.append(args))

        assert events == [(0, 2, "a.docx"), (1, 2, "b.docx"), (2, 2, "")]

    async def test_unknown_job(self, fake_provider, store):
        processor = _processor(fake_provider, store, [])
        with pytest.raises(JobNotFound):
            await processor.process("missing", [])

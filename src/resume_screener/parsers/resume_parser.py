"""Resume text extraction from PDF and DOCX uploads."""

from __future__ import annotations

import io
import logging
import re
import zipfile
from pathlib import Path

from resume_screener.config import ExtractionConfig
from resume_screener.errors import ExtractionFailed, UnsupportedFormat

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TRUNCATION_MARKER = "\n\n[Content truncated for processing...]"
DEFAULT_MAX_CHARS = 20_000
MIN_CHARS = {"pdf": 50, "docx": 100}

_ARTIFACTS = re.compile(r"[\u200b\u200c\u200d\u00ad\u2060\ufeff]")


def detect_format(mime_or_extension: str) -> str:
    """Map a MIME type, extension or filename to "pdf" or "docx"."""
    value = (mime_or_extension or "").strip().lower()
    if value == PDF_MIME:
        return "pdf"
    if value == DOCX_MIME:
        return "docx"
    if "/" not in value:
        extension = value.rsplit(".", 1)[-1]
        if extension in ("pdf", "docx"):
            return extension
    raise UnsupportedFormat(
        f"Unsupported file type: {mime_or_extension!r}. Please upload PDF or DOCX files."
    )


def extract_text(
    document: bytes,
    mime_or_extension: str,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    min_chars: int | None = None,
) -> str:
    """Extract plain text from a PDF or DOCX document.

    Args:
        document: Raw file bytes.
        mime_or_extension: MIME type, extension (".pdf", "docx") or filename.
        max_chars: Length cap; longer text is cut and TRUNCATION_MARKER appended.
        min_chars: Plausibility floor. Defaults to 50 for PDF and 100 for DOCX.

    Raises:
        UnsupportedFormat: if the type is neither PDF nor DOCX.
        ExtractionFailed: if the document is unreadable or yields too little
            text (typically a scanned, image-only file).
    """
    fmt = detect_format(mime_or_extension)
    if fmt == "pdf":
        text = _parse_pdf(document)
    else:
        text = _parse_docx(document)

    text = normalize_whitespace(text)
    floor = MIN_CHARS[fmt] if min_chars is None else min_chars
    if len(text) < floor:
        raise ExtractionFailed(
            f"Insufficient text extracted from {fmt.upper()} ({len(text)} characters). "
            "The file may be scanned or image-based."
        )

    if len(text) > max_chars:
        logger.info("Truncating extracted text from %d to %d characters", len(text), max_chars)
        text = text[:max_chars] + TRUNCATION_MARKER
    return text


def parse_resume(file_path: str | Path, **kwargs) -> str:
    """Read a resume file from disk and extract its text by suffix."""
    path = Path(file_path)
    return extract_text(path.read_bytes(), path.suffix, **kwargs)


def normalize_whitespace(text: str) -> str:
    """Drop invisible unicode artifacts and collapse whitespace runs."""
    text = _ARTIFACTS.sub("", text)
    return re.sub(r"\s+", " ", text).strip()


def _parse_pdf(document: bytes) -> str:
    import fitz  # pymupdf

    try:
        doc = fitz.open(stream=document, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as exc:
        raise ExtractionFailed(f"Unable to extract text from PDF: {exc}") from exc
    try:
        pages = [page.get_text() for page in doc]
    except (RuntimeError, ValueError) as exc:
        raise ExtractionFailed(f"Unable to read PDF pages: {exc}") from exc
    finally:
        doc.close()
    return "\n".join(pages)


def _parse_docx(document: bytes) -> str:
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError
    from lxml.etree import XMLSyntaxError

    try:
        doc = Document(io.BytesIO(document))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError):
        logger.warning("Could not open DOCX package, using raw text fallback")
        return _decode_raw(document)
    except XMLSyntaxError as exc:
        raise ExtractionFailed(f"DOCX contains malformed XML: {exc}") from exc

    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text.strip():
                    parts.append(cell.text)
    return "\n".join(parts)


def _decode_raw(document: bytes) -> str:
    # Lossy: keeps printable ASCII only
    text = document.decode("utf-8", errors="replace")
    return re.sub(r"[^\x20-\x7E\n]", " ", text)


def extract_upload(document: bytes, format_hint: str, config: ExtractionConfig) -> str:
    """extract_text with the length cap and per-format floors from config."""
    fmt = detect_format(format_hint)
    min_chars = config.min_pdf_chars if fmt == "pdf" else config.min_docx_chars
    return extract_text(document, fmt, max_chars=config.max_chars, min_chars=min_chars)

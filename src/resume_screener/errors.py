"""Exception hierarchy for document extraction, provider calls and parsing."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT = "transient"
    NO_JSON = "no_json"
    MALFORMED_JSON = "malformed_json"
    SCHEMA_VIOLATION = "schema_violation"


class ScreenerError(Exception):
    """Base class for all resume-screener errors."""


# --- Configuration ---


class ConfigError(ScreenerError):
    """Raised when configuration is invalid or incomplete."""


class MissingCredentialsError(ConfigError):
    """Raised at startup when a provider API key is not configured."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing provider credentials: " + ", ".join(self.missing)
            + ". Set them in the environment or a .env file."
        )


# --- Documents ---


class DocumentError(ScreenerError):
    """Raised when an uploaded document cannot be turned into text."""


class UnsupportedFormat(DocumentError):
    pass


class ExtractionFailed(DocumentError):
    pass


# --- Providers ---


class ProviderError(ScreenerError):
    """Raised when a language-model provider call fails."""

    kind: FailureKind = FailureKind.TRANSIENT

    def __init__(self, message: str, *, provider: str = "", model: str = ""):
        super().__init__(message)
        self.provider = provider
        self.model = model


class ProviderUnavailable(ProviderError):
    """Network failure, timeout, server error or any other unusable response."""


class ModelNotFound(ProviderUnavailable):
    """The model id is unknown to the provider under the current credentials."""

    kind = FailureKind.NOT_FOUND


class ProviderRateLimited(ProviderError):
    kind = FailureKind.RATE_LIMITED


class ProviderQuotaExceeded(ProviderError):
    """Generation stopped on the output-token limit."""

    kind = FailureKind.QUOTA_EXCEEDED


# --- Response parsing ---


class ResponseParseError(ScreenerError, ValueError):
    """Raised when provider text cannot be turned into a ResumeAnalysis."""

    kind: FailureKind = FailureKind.MALFORMED_JSON


class NoJsonFound(ResponseParseError):
    kind = FailureKind.NO_JSON


class MalformedJson(ResponseParseError):
    kind = FailureKind.MALFORMED_JSON


class SchemaViolation(ResponseParseError):
    kind = FailureKind.SCHEMA_VIOLATION


# --- Storage ---


class JobNotFound(ScreenerError, KeyError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"

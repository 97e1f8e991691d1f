"""Application configuration loaded from config.yaml and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from resume_screener.errors import MissingCredentialsError
from resume_screener.models.analysis import ScoringPolicy


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


@dataclass(frozen=True)
class LLMConfig:
    primary_models: tuple[str, ...] = (
        "claude-sonnet-4-5-20250929",
        "claude-sonnet-4-20250514",
        "claude-3-7-sonnet-20250219",
    )
    primary_degraded_models: tuple[str, ...] = (
        "claude-haiku-4-5-20251001",
        "claude-3-5-haiku-20241022",
    )
    secondary_models: tuple[str, ...] = (
        "gemini-2.5-flash",
        "gemini-2.0-flash",
        "gemini-1.5-flash",
    )
    secondary_degraded_models: tuple[str, ...] = (
        "gemini-2.5-flash-lite",
        "gemini-2.0-flash-lite",
        "gemini-1.5-flash-8b",
    )
    primary_temperature: float = 0.2
    secondary_temperature: float = 0.1
    max_output_tokens: int = 4000
    degraded_max_output_tokens: int = 2000
    secondary_resume_chars: int = 4000
    degraded_resume_chars: int = 2000
    timeout: int = 60

    def __post_init__(self) -> None:
        # YAML gives lists; keep the config hashable and immutable
        for name in (
            "primary_models",
            "primary_degraded_models",
            "secondary_models",
            "secondary_degraded_models",
        ):
            value = tuple(getattr(self, name))
            if not value:
                raise ValueError(f"{name} must list at least one model id")
            object.__setattr__(self, name, value)
        _check_range("primary_temperature", self.primary_temperature, 0.0, 2.0)
        _check_range("secondary_temperature", self.secondary_temperature, 0.0, 2.0)
        _check_range("max_output_tokens", self.max_output_tokens, 256, 65536)
        _check_range("degraded_max_output_tokens", self.degraded_max_output_tokens, 256, 65536)
        _check_range("secondary_resume_chars", self.secondary_resume_chars, 500, 200_000)
        _check_range("degraded_resume_chars", self.degraded_resume_chars, 500, 200_000)
        _check_range("timeout", self.timeout, 1, 600)


@dataclass(frozen=True)
class ScoringConfig:
    shortlist_threshold: int = 70
    review_threshold: int = 50

    def __post_init__(self) -> None:
        _check_range("shortlist_threshold", self.shortlist_threshold, 0, 100)
        _check_range("review_threshold", self.review_threshold, 0, 100)
        if self.review_threshold > self.shortlist_threshold:
            raise ValueError(
                "review_threshold must not exceed shortlist_threshold "
                f"({self.review_threshold} > {self.shortlist_threshold})"
            )

    @property
    def policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            shortlist_threshold=self.shortlist_threshold,
            review_threshold=self.review_threshold,
        )


@dataclass(frozen=True)
class ExtractionConfig:
    max_chars: int = 20_000
    min_pdf_chars: int = 50
    min_docx_chars: int = 100

    def __post_init__(self) -> None:
        _check_range("max_chars", self.max_chars, 1_000, 1_000_000)
        _check_range("min_pdf_chars", self.min_pdf_chars, 0, 10_000)
        _check_range("min_docx_chars", self.min_docx_chars, 0, 10_000)


@dataclass(frozen=True)
class StoreConfig:
    db_path: str = "~/.resume-screener/screener.db"
    usage_db_path: str = "~/.resume-screener/usage.db"

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()

    @property
    def resolved_usage_db_path(self) -> Path:
        return Path(self.usage_db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


@dataclass(frozen=True)
class ProviderCredentials:
    """API keys for both providers, read once at process start."""

    anthropic_api_key: str
    google_api_key: str

    def __repr__(self) -> str:
        return "ProviderCredentials(anthropic_api_key=***, google_api_key=***)"


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        extraction=ExtractionConfig(**raw.get("extraction", {})),
        store=StoreConfig(**raw.get("store", {})),
    )


def load_credentials(environ: Mapping[str, str] | None = None) -> ProviderCredentials:
    """Read both provider keys from the environment.

    Raises:
        MissingCredentialsError: if either key is absent or blank.
    """
    env = os.environ if environ is None else environ
    anthropic_key = env.get("ANTHROPIC_API_KEY", "").strip()
    google_key = (env.get("GOOGLE_API_KEY") or env.get("GEMINI_API_KEY") or "").strip()

    missing = []
    if not anthropic_key:
        missing.append("ANTHROPIC_API_KEY")
    if not google_key:
        missing.append("GOOGLE_API_KEY")
    if missing:
        raise MissingCredentialsError(missing)

    return ProviderCredentials(anthropic_api_key=anthropic_key, google_api_key=google_key)

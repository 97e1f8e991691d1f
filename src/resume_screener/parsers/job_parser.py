"""Load job requirements from YAML or JSON files."""

import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from resume_screener.errors import ConfigError
from resume_screener.models.job import JobRequirements


def parse_description(text: str) -> str:
    """Clean and normalize job description text."""
    text = re.sub(r'\n{3,}', '\n\n', text)
    text = re.sub(r'[ \t]+', ' ', text)
    lines = [line.strip() for line in text.splitlines()]
    return '\n'.join(lines).strip()


def load_job_file(file_path: str | Path) -> JobRequirements:
    """Load a job definition file (YAML; JSON is accepted as YAML).

    Skills may be given as a list or a comma-separated string.
    """
    raw = yaml.safe_load(Path(file_path).read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Job file must contain a mapping: {file_path}")

    for key in ("required_skills", "optional_skills"):
        if isinstance(raw.get(key), str):
            raw[key] = [s.strip() for s in raw[key].split(",")]
    if isinstance(raw.get("description"), str):
        raw["description"] = parse_description(raw["description"])

    try:
        return JobRequirements(**raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid job file {file_path}: {exc}") from exc

"""Turn raw provider text into a validated ResumeAnalysis."""

from __future__ import annotations

import logging
import math
from numbers import Real

from pydantic import ValidationError

from resume_screener.errors import SchemaViolation
from resume_screener.models.analysis import (
    DEFAULT_POLICY,
    VALID_RECOMMENDATIONS,
    ParsedCandidate,
    ResumeAnalysis,
    ScoringPolicy,
)
from resume_screener.utils.json_parser import extract_json

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("skills", "education", "roles", "projects")
_TEXT_FIELDS = ("name", "email", "phone", "summary")


def parse_analysis(raw_text: str, policy: ScoringPolicy = DEFAULT_POLICY) -> ResumeAnalysis:
    """Parse an LLM response into a ResumeAnalysis.

    Raises:
        NoJsonFound: no ``{...}`` object in the text.
        MalformedJson: the object does not decode.
        SchemaViolation: ``parsed_data`` or ``match_score`` is missing or
            has the wrong type, or a nested field cannot be validated.
    """
    data = extract_json(raw_text)
    return analysis_from_dict(data, policy)


def analysis_from_dict(data: dict, policy: ScoringPolicy = DEFAULT_POLICY) -> ResumeAnalysis:
    parsed = data.get("parsed_data")
    if not isinstance(parsed, dict):
        raise SchemaViolation("parsed_data is missing or not an object")
    match_score = data.get("match_score")
    if not _is_number(match_score):
        raise SchemaViolation(f"match_score is missing or not a number: {match_score!r}")

    match_score = _clamp(match_score)
    skill_score = _score_or(data.get("skill_match_score"), match_score)
    experience_score = _score_or(data.get("experience_match_score"), match_score)

    recommendation = data.get("recommendation")
    if recommendation not in VALID_RECOMMENDATIONS:
        logger.warning("Invalid recommendation %r, coercing to Review", recommendation)
        recommendation = "Review"
    expected = policy.recommend(match_score)
    if recommendation != expected:
        logger.info(
            "Recommendation %s disagrees with score %s, using %s",
            recommendation,
            match_score,
            expected,
        )
        recommendation = expected

    try:
        return ResumeAnalysis(
            parsed_data=_candidate_from_dict(parsed),
            match_score=match_score,
            skill_match_score=skill_score,
            experience_match_score=experience_score,
            explanation=_text(data.get("explanation")),
            strengths=_string_list(data.get("strengths")),
            gaps=_string_list(data.get("gaps")),
            recommendation=recommendation,
        )
    except ValidationError as exc:
        raise SchemaViolation(f"Invalid analysis fields: {exc}") from exc


def _candidate_from_dict(parsed: dict) -> ParsedCandidate:
    fields: dict = {}
    for key in _TEXT_FIELDS:
        fields[key] = _text(parsed.get(key))
    for key in _LIST_FIELDS:
        value = parsed.get(key)
        if value is not None and not isinstance(value, list):
            raise SchemaViolation(f"parsed_data.{key} must be a list, got {type(value).__name__}")
        fields[key] = _string_list(value)
    years = parsed.get("experience_years", 0)
    if years is None:
        years = 0
    if not _is_number(years):
        raise SchemaViolation(f"parsed_data.experience_years is not a number: {years!r}")
    fields["experience_years"] = max(0, years)
    return ParsedCandidate(**fields)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _clamp(score: float) -> float:
    return min(100, max(0, score))


def _score_or(value: object, default: float) -> float:
    return _clamp(value) if _is_number(value) else default


def _text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _string_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return [str(value)]
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]

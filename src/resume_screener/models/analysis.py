"""Pydantic models for the resume analysis contract."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

Recommendation = Literal["Shortlist", "Review", "Reject"]

VALID_RECOMMENDATIONS: tuple[str, ...] = ("Shortlist", "Review", "Reject")


class ScoringPolicy(BaseModel):
    """Score bands used to triage a candidate from match_score."""

    shortlist_threshold: int = 70
    review_threshold: int = 50

    model_config = {"frozen": True}

    def recommend(self, match_score: float) -> Recommendation:
        if match_score >= self.shortlist_threshold:
            return "Shortlist"
        if match_score >= self.review_threshold:
            return "Review"
        return "Reject"

    def describe(self) -> str:
        """Human-readable bands, e.g. 'Shortlist (70+), Review (50-69), Reject (<50)'."""
        return (
            f'"Shortlist" ({self.shortlist_threshold}+), '
            f'"Review" ({self.review_threshold}-{self.shortlist_threshold - 1}), '
            f'or "Reject" (<{self.review_threshold})'
        )


DEFAULT_POLICY = ScoringPolicy()


class ParsedCandidate(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    skills: list[str] = []
    experience_years: float = Field(default=0, ge=0)
    education: list[str] = []
    roles: list[str] = []
    projects: list[str] = []
    summary: str = ""

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        unique = []
        for skill in value:
            if skill not in seen:
                seen.add(skill)
                unique.append(skill)
        return unique


class ResumeAnalysis(BaseModel):
    parsed_data: ParsedCandidate
    match_score: float = Field(ge=0, le=100)
    skill_match_score: float = Field(ge=0, le=100)
    experience_match_score: float = Field(ge=0, le=100)
    explanation: str = ""
    strengths: list[str] = []
    gaps: list[str] = []
    recommendation: Recommendation = "Review"

    def is_consistent(self, policy: ScoringPolicy = DEFAULT_POLICY) -> bool:
        """True when the recommendation agrees with match_score under policy."""
        return policy.recommend(self.match_score) == self.recommendation

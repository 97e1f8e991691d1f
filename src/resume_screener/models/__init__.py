"""Data models for the resume screening pipeline."""

from resume_screener.models.analysis import (
    DEFAULT_POLICY,
    ParsedCandidate,
    Recommendation,
    ResumeAnalysis,
    ScoringPolicy,
)
from resume_screener.models.candidate import CandidateRecord
from resume_screener.models.job import JobPosting, JobRequirements, JobStatus

__all__ = [
    "CandidateRecord",
    "DEFAULT_POLICY",
    "JobPosting",
    "JobRequirements",
    "JobStatus",
    "ParsedCandidate",
    "Recommendation",
    "ResumeAnalysis",
    "ScoringPolicy",
]

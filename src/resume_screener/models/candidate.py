"""Pydantic model for a persisted candidate analysis."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from resume_screener.models.analysis import ResumeAnalysis


class CandidateRecord(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    job_id: str
    resume_filename: str
    analysis: ResumeAnalysis
    provider: str | None = None  # None when the fallback record was used
    model: str | None = None
    degraded: bool = False
    fallback: bool = False
    processed_at: datetime = Field(default_factory=datetime.now)
    created_at: datetime = Field(default_factory=datetime.now)

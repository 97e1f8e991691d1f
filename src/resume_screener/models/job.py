"""Pydantic models for job postings."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

JobStatus = Literal["active", "closed", "draft"]


class JobRequirements(BaseModel):
    """What a resume is scored against. Skill order is priority order."""

    title: str
    description: str = ""
    required_skills: list[str] = []
    optional_skills: list[str] = []
    experience_min: int = Field(default=0, ge=0)
    experience_max: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @field_validator("required_skills", "optional_skills")
    @classmethod
    def _strip_blank_skills(cls, value: list[str]) -> list[str]:
        return [s.strip() for s in value if s and s.strip()]

    @model_validator(mode="after")
    def _check_experience_bounds(self) -> JobRequirements:
        if self.experience_min > self.experience_max:
            raise ValueError(
                f"experience_min ({self.experience_min}) must not exceed "
                f"experience_max ({self.experience_max})"
            )
        return self


class JobPosting(JobRequirements):
    """A stored job with its processing counters."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = "active"
    total_resumes: int = 0
    processed_resumes: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def to_requirements(self) -> JobRequirements:
        return JobRequirements(**self.model_dump(include=set(JobRequirements.model_fields)))

"""Usage logging data models."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class UsageLog(BaseModel):
    """Single usage log entry for a batch analysis run."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    mode: str = "batch_analysis"  # "batch_analysis" | "single_analysis"
    job_id: str | None = None
    job_title: str | None = None
    files_total: int = 0
    files_succeeded: int = 0
    fallback_count: int = 0
    degraded_count: int = 0
    elapsed_seconds: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    estimated_cost_usd: float = 0.0
    success: bool = True
    error_message: str | None = None

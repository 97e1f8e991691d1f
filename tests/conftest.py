"""Shared test fixtures."""

from __future__ import annotations

import json

import pytest

from resume_screener.clients.llm_client import GenerationOptions, LLMResponse, ProviderClient
from resume_screener.errors import ProviderUnavailable
from resume_screener.models.analysis import ParsedCandidate, ResumeAnalysis
from resume_screener.models.job import JobRequirements
from resume_screener.store.candidate_store import CandidateStore


class FakeProvider(ProviderClient):
    """Provider that replays scripted responses and records every call.

    Each scripted item is either response text or an exception to raise.
    Once the script runs out every call raises ProviderUnavailable.
    """

    def __init__(self, name: str, responses: list | None = None):
        super().__init__()
        self.name = name
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str, GenerationOptions]] = []

    async def call(self, prompt: str, model: str, options: GenerationOptions) -> LLMResponse:
        self.calls.append((prompt, model, options))
        if not self.responses:
            raise ProviderUnavailable("service down", provider=self.name, model=model)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        self._record_usage(model, 100, 50)
        return LLMResponse(text=item, input_tokens=100, output_tokens=50, model=model)

    @property
    def models_called(self) -> list[str]:
        return [model for _, model, _ in self.calls]


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def sample_job() -> JobRequirements:
    return JobRequirements(
        title="Senior Frontend Developer",
        description="Build the customer dashboard in React and TypeScript.",
        required_skills=["React", "TypeScript", "CSS", "JavaScript"],
        optional_skills=["Next.js", "GraphQL"],
        experience_min=4,
        experience_max=8,
    )


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane.doe@example.com | +1 555 0100

Frontend Engineer with 6 years of experience building web applications.

Experience:
- Acme Corp (2021 - present) - Senior Frontend Engineer
  - Led migration of the billing dashboard to React and TypeScript
  - Built a CSS design system used by 12 product teams
- Widget Inc (2019 - 2021) - Frontend Developer
  - Developed JavaScript single-page applications

Education:
- B.Sc. Computer Science - State University

Skills: React, TypeScript, CSS, JavaScript, Next.js, Jest
"""


@pytest.fixture
def analysis_payload() -> dict:
    return {
        "parsed_data": {
            "name": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "+1 555 0100",
            "skills": ["React", "TypeScript", "CSS", "JavaScript", "Next.js"],
            "experience_years": 6,
            "education": ["B.Sc. Computer Science - State University"],
            "roles": ["Senior Frontend Engineer at Acme Corp"],
            "projects": ["Billing dashboard migration"],
            "summary": "Frontend engineer focused on React.",
        },
        "match_score": 88,
        "skill_match_score": 95,
        "experience_match_score": 90,
        "explanation": "Covers every required skill with 6 years of experience.",
        "strengths": ["All required skills", "Design system experience"],
        "gaps": ["No GraphQL"],
        "recommendation": "Shortlist",
    }


@pytest.fixture
def analysis_json(analysis_payload) -> str:
    return json.dumps(analysis_payload)


@pytest.fixture
def sample_analysis() -> ResumeAnalysis:
    return ResumeAnalysis(
        parsed_data=ParsedCandidate(
            name="Jane Doe",
            email="jane.doe@example.com",
            skills=["React", "TypeScript"],
            experience_years=6,
        ),
        match_score=82,
        skill_match_score=90,
        experience_match_score=75,
        explanation="Strong match.",
        strengths=["React"],
        gaps=[],
        recommendation="Shortlist",
    )


@pytest.fixture
def store(tmp_path) -> CandidateStore:
    return CandidateStore(db_path=tmp_path / "screener.db")

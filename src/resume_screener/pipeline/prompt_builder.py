"""Prompt construction for resume-vs-job analysis."""

from __future__ import annotations

from enum import Enum

from resume_screener.models.analysis import DEFAULT_POLICY, ScoringPolicy
from resume_screener.models.job import JobRequirements


class PromptVariant(str, Enum):
    FULL = "full"
    COMPACT = "compact"


COMPACT_SKILL_LIMIT = 5

FULL_SYSTEM_PROMPT = (
    "You are an expert HR analyst. You compare resumes against job requirements "
    "and answer with a single JSON object that follows the requested schema exactly."
)

COMPACT_SYSTEM_PROMPT = "You are an HR analyst. Return valid JSON only. Be concise."

SCHEMA_EXAMPLE = """\
{
  "parsed_data": {
    "name": "Full Name from resume",
    "email": "email@example.com",
    "phone": "phone number or empty string",
    "skills": ["skill1", "skill2", "skill3"],
    "experience_years": 5,
    "education": ["Degree - University"],
    "roles": ["Job Title at Company"],
    "projects": ["Notable project"],
    "summary": "Brief professional summary"
  },
  "match_score": 85,
  "skill_match_score": 90,
  "experience_match_score": 80,
  "explanation": "Detailed explanation of why this candidate matches or doesn't match",
  "strengths": ["Key strength 1", "Key strength 2"],
  "gaps": ["Missing skill or gap"],
  "recommendation": "Shortlist"
}"""

COMPACT_SCHEMA_EXAMPLE = (
    '{"parsed_data":{"name":"","email":"","phone":"","skills":[],"experience_years":0,'
    '"education":[],"roles":[],"projects":[],"summary":""},"match_score":0,'
    '"skill_match_score":0,"experience_match_score":0,"explanation":"",'
    '"strengths":[],"gaps":[],"recommendation":"Review"}'
)


def system_prompt(variant: PromptVariant) -> str:
    return FULL_SYSTEM_PROMPT if variant == PromptVariant.FULL else COMPACT_SYSTEM_PROMPT


def build_prompt(
    resume_text: str,
    job: JobRequirements,
    variant: PromptVariant = PromptVariant.FULL,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> str:
    """Build the analysis prompt for one resume and one job.

    FULL embeds the job description, every skill and a detailed scoring
    guideline. COMPACT keeps the top-priority skills and a one-line schema
    so the prompt fits tighter token budgets.
    """
    if variant == PromptVariant.COMPACT:
        return _build_compact(resume_text, job, policy)
    return _build_full(resume_text, job, policy)


def _join(skills: list[str]) -> str:
    return ", ".join(skills) if skills else "None specified"


def _build_full(resume_text: str, job: JobRequirements, policy: ScoringPolicy) -> str:
    description = job.description.strip() or "Not provided"
    return f"""Analyze this resume against the job requirements.

JOB: {job.title}
DESCRIPTION: {description}
REQUIRED SKILLS (in priority order): {_join(job.required_skills)}
OPTIONAL SKILLS: {_join(job.optional_skills)}
EXPERIENCE NEEDED: {job.experience_min}-{job.experience_max} years

RESUME:
{resume_text}

Analyze the candidate and return ONLY a JSON object with this exact structure:
{SCHEMA_EXAMPLE}

SCORING RULES:
- match_score: Overall fit (0-100)
- skill_match_score: Share of the required skills the resume demonstrates (0-100). \
A candidate with every required skill scores 80 or higher; optional skills add a bonus \
but never compensate for missing required skills.
- experience_match_score: 80-100 when experience_years is inside \
{job.experience_min}-{job.experience_max}, lower the further it falls outside (0-100)
- recommendation: {policy.describe()}

Return ONLY the JSON object, no other text."""


def _build_compact(resume_text: str, job: JobRequirements, policy: ScoringPolicy) -> str:
    required = job.required_skills[:COMPACT_SKILL_LIMIT]
    optional = job.optional_skills[:COMPACT_SKILL_LIMIT]
    return f"""Job: {job.title}
Required: {_join(required)}
Optional: {_join(optional)}
Experience: {job.experience_min}-{job.experience_max}y

Resume:
{resume_text}

Scores 0-100. recommendation: {policy.describe()}.
Return JSON:
{COMPACT_SCHEMA_EXAMPLE}"""

"""Fallback orchestrator: primary provider, degraded retry, secondary provider, placeholder."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from resume_screener.clients.llm_client import GenerationOptions, ProviderClient
from resume_screener.config import LLMConfig
from resume_screener.errors import (
    FailureKind,
    ModelNotFound,
    ProviderError,
    ResponseParseError,
)
from resume_screener.models.analysis import (
    DEFAULT_POLICY,
    ParsedCandidate,
    ResumeAnalysis,
    ScoringPolicy,
)
from resume_screener.models.job import JobRequirements
from resume_screener.pipeline.prompt_builder import PromptVariant, build_prompt, system_prompt
from resume_screener.pipeline.response_parser import parse_analysis

logger = logging.getLogger(__name__)

TRUNCATED_SUFFIX = "\n[Truncated]"


class AnalysisState(str, Enum):
    TRY_PRIMARY = "try_primary"
    TRY_PRIMARY_DEGRADED = "try_primary_degraded"
    TRY_SECONDARY = "try_secondary"
    TRY_SECONDARY_DEGRADED = "try_secondary_degraded"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class AttemptPlan:
    """Parameters for one orchestrator state."""

    state: AnalysisState
    client: ProviderClient
    models: tuple[str, ...]
    variant: PromptVariant
    resume_chars: int | None  # None sends the full resume text
    options: GenerationOptions

    @property
    def degraded(self) -> bool:
        return self.variant == PromptVariant.COMPACT


@dataclass
class AttemptRecord:
    state: AnalysisState
    provider: str
    model: str
    success: bool
    error_kind: FailureKind | None = None
    error: str = ""


@dataclass
class AnalysisResult:
    """An analysis plus how it was obtained."""

    analysis: ResumeAnalysis
    state: AnalysisState
    provider: str | None = None
    model: str | None = None
    attempts: list[AttemptRecord] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def fallback(self) -> bool:
        return self.state == AnalysisState.FALLBACK

    @property
    def degraded(self) -> bool:
        return self.state in (
            AnalysisState.TRY_PRIMARY_DEGRADED,
            AnalysisState.TRY_SECONDARY_DEGRADED,
        )


def build_plans(
    primary: ProviderClient,
    secondary: ProviderClient,
    config: LLMConfig | None = None,
) -> list[AttemptPlan]:
    """The four provider states in the order they are tried."""
    config = config or LLMConfig()
    return [
        AttemptPlan(
            state=AnalysisState.TRY_PRIMARY,
            client=primary,
            models=config.primary_models,
            variant=PromptVariant.FULL,
            resume_chars=None,
            options=GenerationOptions(
                temperature=config.primary_temperature,
                max_tokens=config.max_output_tokens,
                system=system_prompt(PromptVariant.FULL),
            ),
        ),
        AttemptPlan(
            state=AnalysisState.TRY_PRIMARY_DEGRADED,
            client=primary,
            models=config.primary_degraded_models,
            variant=PromptVariant.COMPACT,
            resume_chars=config.degraded_resume_chars,
            options=GenerationOptions(
                temperature=config.primary_temperature,
                max_tokens=config.degraded_max_output_tokens,
                system=system_prompt(PromptVariant.COMPACT),
            ),
        ),
        AttemptPlan(
            state=AnalysisState.TRY_SECONDARY,
            client=secondary,
            models=config.secondary_models,
            variant=PromptVariant.FULL,
            resume_chars=config.secondary_resume_chars,
            options=GenerationOptions(
                temperature=config.secondary_temperature,
                max_tokens=config.max_output_tokens,
                system=system_prompt(PromptVariant.FULL),
                json_mode=True,
            ),
        ),
        AttemptPlan(
            state=AnalysisState.TRY_SECONDARY_DEGRADED,
            client=secondary,
            models=config.secondary_degraded_models,
            variant=PromptVariant.COMPACT,
            resume_chars=config.degraded_resume_chars,
            options=GenerationOptions(
                temperature=config.secondary_temperature,
                max_tokens=config.degraded_max_output_tokens,
                system=system_prompt(PromptVariant.COMPACT),
                json_mode=True,
            ),
        ),
    ]


def truncate_resume(resume_text: str, limit: int | None) -> str:
    if limit is None or len(resume_text) <= limit:
        return resume_text
    return resume_text[:limit] + TRUNCATED_SUFFIX


def fallback_analysis(reason: str = "") -> ResumeAnalysis:
    """The fixed safe record used when every provider attempt failed."""
    explanation = "Unable to complete automatic analysis. Manual review recommended."
    if reason:
        explanation = f"{explanation} Last error: {reason}"
    return ResumeAnalysis(
        parsed_data=ParsedCandidate(
            name="Candidate (Analysis Failed)",
            skills=["See resume for details"],
            education=["See resume"],
            roles=["See resume"],
            summary="Automatic analysis failed. Please review manually.",
        ),
        match_score=50,
        skill_match_score=50,
        experience_match_score=50,
        explanation=explanation,
        strengths=["Manual review required"],
        gaps=["Automatic analysis unavailable"],
        recommendation="Review",
    )


class ResumeAnalyzer:
    """Scores a resume against a job, falling back across providers.

    States run strictly in order and are never revisited:
    primary, primary degraded, secondary, secondary degraded, then the
    placeholder record. Provider and parse failures never escape.
    """

    def __init__(
        self,
        primary: ProviderClient,
        secondary: ProviderClient,
        *,
        llm_config: LLMConfig | None = None,
        policy: ScoringPolicy = DEFAULT_POLICY,
        plans: list[AttemptPlan] | None = None,
    ):
        self.primary = primary
        self.secondary = secondary
        self.policy = policy
        self.plans = plans if plans is not None else build_plans(primary, secondary, llm_config)

    async def analyze(self, resume_text: str, job: JobRequirements) -> ResumeAnalysis:
        result = await self.analyze_detailed(resume_text, job)
        return result.analysis

    async def analyze_detailed(self, resume_text: str, job: JobRequirements) -> AnalysisResult:
        start = time.monotonic()
        logger.info("Analyzing resume for %r: %d characters", job.title, len(resume_text))
        attempts: list[AttemptRecord] = []

        for plan in self.plans:
            analysis, model = await self._run_state(plan, resume_text, job, attempts)
            if analysis is not None:
                logger.info(
                    "Analysis complete via %s/%s: score=%s recommendation=%s",
                    plan.client.name,
                    model,
                    analysis.match_score,
                    analysis.recommendation,
                )
                return AnalysisResult(
                    analysis=analysis,
                    state=plan.state,
                    provider=plan.client.name,
                    model=model,
                    attempts=attempts,
                    elapsed_seconds=time.monotonic() - start,
                )

        reason = attempts[-1].error if attempts else "no provider attempts configured"
        logger.warning("All provider attempts failed, using fallback analysis: %s", reason)
        return AnalysisResult(
            analysis=fallback_analysis(reason),
            state=AnalysisState.FALLBACK,
            attempts=attempts,
            elapsed_seconds=time.monotonic() - start,
        )

    async def _run_state(
        self,
        plan: AttemptPlan,
        resume_text: str,
        job: JobRequirements,
        attempts: list[AttemptRecord],
    ) -> tuple[ResumeAnalysis | None, str | None]:
        prompt = build_prompt(
            truncate_resume(resume_text, plan.resume_chars), job, plan.variant, self.policy
        )
        for model in plan.models:
            try:
                response = await plan.client.call(prompt, model, plan.options)
                analysis = parse_analysis(response.text, self.policy)
            except ModelNotFound as exc:
                self._record_failure(attempts, plan, model, exc)
                continue
            except (ProviderError, ResponseParseError) as exc:
                self._record_failure(attempts, plan, model, exc)
                return None, None
            attempts.append(
                AttemptRecord(state=plan.state, provider=plan.client.name, model=model, success=True)
            )
            return analysis, model
        return None, None

    @staticmethod
    def _record_failure(
        attempts: list[AttemptRecord],
        plan: AttemptPlan,
        model: str,
        exc: ProviderError | ResponseParseError,
    ) -> None:
        logger.warning(
            "%s attempt failed (%s/%s): %s: %s",
            plan.state.value,
            plan.client.name,
            model,
            type(exc).__name__,
            exc,
        )
        attempts.append(
            AttemptRecord(
                state=plan.state,
                provider=plan.client.name,
                model=model,
                success=False,
                error_kind=exc.kind,
                error=f"{type(exc).__name__}: {exc}",
            )
        )

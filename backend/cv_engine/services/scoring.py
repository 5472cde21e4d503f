"""
Score assembly: the public evaluate operation.

Parse and evaluation run concurrently and are joined with every outcome
inspected on its own, so one failing branch never hides the other. The result
is always a well-formed ScoreResult, except when the evaluation was rate
limited, which is raised to the caller.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..config import Settings
from ..errors import EvaluationTimeoutError, RateLimitError
from ..schemas.evaluation import EvaluationVerdict
from ..schemas.job import JobProfile
from ..schemas.resume import ParsedResume, UsageRecord
from ..schemas.score import (
    AtsFormatDetail,
    DetailedScoreBreakdown,
    EvaluationMetadata,
    ExperienceQualityDetail,
    ExtractedContact,
    LanguageClarityDetail,
    ProjectsImpactDetail,
    RiskFlag,
    RoleFitDetail,
    ScoreBreakdown,
    ScoreResult,
    SkillsQualityDetail,
)
from ..schemas.usage import UsageEntry
from .contact import extract_contact
from .evaluator import ANALYSIS_PENDING, coerce_score, evaluate_resume, is_rate_limit
from .experience import calculate_experience_years
from .generation import GenerationClient
from .resume_parser import FALLBACK_MODEL, build_fallback_resume, parse_resume
from .usage import UsageLogger

logger = logging.getLogger(__name__)

DEFAULT_ATS_SCORE = 80
LANGUAGE_CLARITY_SCORE = 100
PROJECTS_IMPACT_SCORE = 0


def clamp_score(value) -> float:
    """Finite number in [0, 100]; strings like "78/100" are read, junk becomes 0."""
    return min(100.0, max(0.0, coerce_score(value)))


def degraded_verdict(error: BaseException) -> EvaluationVerdict:
    message = str(error) or type(error).__name__
    return EvaluationVerdict(
        gaps=[ANALYSIS_PENDING, f"Eval Error: {message}"],
        summary=f"Could not complete evaluation: {message}",
    )


def gaps_to_risk_flags(gaps: List[str]) -> List[RiskFlag]:
    # Gaps are free text; every one is reported with the same severity and type
    return [RiskFlag(message=gap, severity="medium", type="other") for gap in gaps if gap]


def build_breakdown(verdict: EvaluationVerdict, parsed: ParsedResume) -> ScoreBreakdown:
    return ScoreBreakdown(
        role_fit=clamp_score(verdict.role_fit_score),
        skills_quality=clamp_score(verdict.tech_skills_score),
        experience_quality=clamp_score(verdict.overall_score),
        projects_impact=PROJECTS_IMPACT_SCORE,
        ats_format=clamp_score(parsed.general_score or DEFAULT_ATS_SCORE),
        language_clarity=LANGUAGE_CLARITY_SCORE,
    )


def mirror_detailed_breakdown(breakdown: ScoreBreakdown) -> DetailedScoreBreakdown:
    """Expand each category into its signals, each set to the category score."""
    role_fit = breakdown.role_fit
    skills = breakdown.skills_quality
    experience = breakdown.experience_quality
    projects = breakdown.projects_impact
    language = breakdown.language_clarity
    ats = breakdown.ats_format
    return DetailedScoreBreakdown(
        role_fit=RoleFitDetail(score=role_fit, keyword_match=role_fit, seniority_match=role_fit),
        skills_quality=SkillsQualityDetail(score=skills, coverage=skills, depth=skills, recency=skills),
        experience_quality=ExperienceQualityDetail(
            score=experience, relevance=experience, duration=experience, consistency=experience,
        ),
        projects_impact=ProjectsImpactDetail(score=projects, presence=projects, details=projects, results=projects),
        language_clarity=LanguageClarityDetail(score=language, grammar=language, clarity=language),
        ats_format=AtsFormatDetail(score=ats, sections=ats, readability=ats, layout=ats),
    )


def combine_usage(parsed: ParsedResume, verdict: EvaluationVerdict) -> UsageRecord:
    eval_usage = verdict.usage or UsageRecord()
    model_name = "unknown"
    if parsed.usage.model_name not in ("unknown", FALLBACK_MODEL):
        model_name = parsed.usage.model_name
    elif verdict.usage is not None:
        model_name = verdict.usage.model_name
    return UsageRecord(
        input_tokens=parsed.usage.input_tokens + eval_usage.input_tokens,
        output_tokens=parsed.usage.output_tokens + eval_usage.output_tokens,
        model_name=model_name,
    )


class ScoreEngine:
    """
    Evaluates a resume against a job profile.

    All collaborators are injected: settings, the generation client and an
    optional usage logger.
    """

    def __init__(
        self,
        settings: Settings,
        generator: GenerationClient,
        usage_logger: Optional[UsageLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.generator = generator
        self.usage_logger = usage_logger
        self.clock = clock

    async def _run_tasks(self, text: str, job: JobProfile, timeout: Optional[float]):
        branches = asyncio.gather(
            parse_resume(text, self.generator, self.settings),
            evaluate_resume(text, job, self.generator, self.settings),
            return_exceptions=True,
        )
        if timeout is None:
            return await branches
        try:
            return await asyncio.wait_for(branches, timeout=timeout)
        except asyncio.TimeoutError as e:
            # wait_for cancelled both branches, including pending backoff sleeps
            raise EvaluationTimeoutError(
                f"Evaluation did not finish within {timeout}s (parse and evaluation cancelled)"
            ) from e

    async def _log_usage(self, usage: UsageRecord, metadata: Optional[EvaluationMetadata]):
        if self.usage_logger is None or metadata is None:
            return
        if usage.input_tokens == 0 and usage.output_tokens == 0:
            return
        entry = UsageEntry(
            requester_id=metadata.requester_id,
            subject_id=metadata.subject_id,
            model_name=usage.model_name,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            operation_type="cv_scan",
        )
        try:
            await asyncio.wait_for(
                self.usage_logger.log_usage(entry),
                timeout=self.settings.usage_log_timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"Failed to log AI usage for {metadata.subject_id}: {e}")

    async def evaluate(
        self,
        raw_text: str,
        job: JobProfile,
        metadata: Optional[EvaluationMetadata] = None,
        timeout: Optional[float] = None,
    ) -> ScoreResult:
        """
        Score a resume against a job profile.

        Args:
            raw_text: Resume text
            job: Job profile to match against
            metadata: Requester/subject ids for usage logging
            timeout: Overall deadline in seconds (default: settings.evaluation_timeout_seconds)

        Raises:
            RateLimitError: the evaluation was rate limited; nothing was scored
            EvaluationTimeoutError: the deadline expired before both tasks finished
        """
        text = raw_text or ""
        if timeout is None:
            timeout = self.settings.evaluation_timeout_seconds

        parse_outcome, eval_outcome = await self._run_tasks(text, job, timeout)

        if isinstance(parse_outcome, BaseException):
            logger.error(f"Parse task failed: {parse_outcome!r}")
            parsed = build_fallback_resume(text)
        else:
            parsed = parse_outcome

        if isinstance(eval_outcome, BaseException):
            if is_rate_limit(eval_outcome):
                logger.warning(f"Evaluation rate limited, no score produced: {eval_outcome}")
                if isinstance(eval_outcome, RateLimitError):
                    raise eval_outcome
                raise RateLimitError(str(eval_outcome)) from eval_outcome
            logger.error(f"Eval task failed: {eval_outcome!r}")
            verdict = degraded_verdict(eval_outcome)
        else:
            verdict = eval_outcome

        if parsed.structured_experience:
            recalculated = calculate_experience_years(parsed.structured_experience, now=self.clock())
            if recalculated > 0:
                parsed.total_experience_years = recalculated

        fallback_contact = extract_contact(text)
        parsed.email = parsed.email or fallback_contact.email
        parsed.phone = parsed.phone or fallback_contact.phone
        parsed.profile_url = parsed.profile_url or fallback_contact.profile_url

        breakdown = build_breakdown(verdict, parsed)
        usage = combine_usage(parsed, verdict)

        result = ScoreResult(
            score=clamp_score(verdict.overall_score),
            breakdown=breakdown,
            detailed_breakdown=mirror_detailed_breakdown(breakdown),
            risk_flags=gaps_to_risk_flags(verdict.gaps),
            matched_skills=list(verdict.skills_analysis.direct_matches),
            inferred_skills=[m.job_requirement for m in verdict.skills_analysis.inferred_matches if m.job_requirement],
            relevant_experience_years=parsed.total_experience_years,
            explanation=[verdict.summary] if verdict.summary else [],
            extracted_contact=ExtractedContact(
                name=parsed.name,
                email=parsed.email,
                phone=parsed.phone,
                profile_url=parsed.profile_url,
            ),
            skills_analysis=verdict.skills_analysis,
            usage=usage,
        )

        await self._log_usage(usage, metadata)
        return result

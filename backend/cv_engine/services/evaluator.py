"""
Job-fit evaluation with Gemini.

Scores come back in many shapes ("85", 85, "85/100", "85%"); they are coerced
to numbers here. A failed evaluation degrades to a zero-score verdict, except
for rate limiting, which is re-raised so the caller never stores a score for a
resume that was not actually evaluated.
"""
import logging
import math
import re
from typing import Any, List

from ..config import Settings
from ..errors import RateLimitError
from ..schemas.evaluation import EvaluationVerdict, InferredMatch, SkillsAnalysis
from ..schemas.job import JobProfile
from .generation import ErrorKind, GenerationClient, classify_error
from .json_extract import extract_json

logger = logging.getLogger(__name__)

ANALYSIS_PENDING = "Analysis Pending"
SCORE_PATTERN = re.compile(r"\d+(?:\.\d+)?")

EVALUATION_PROMPT = """
You are a Technical Recruiter. Evaluate this Candidate for the Job.

**Job:** {title}
**Description:** {description}
**Required Skills:** {required_skills}
**Nice-to-have Skills:** {optional_skills}
**Min Exp:** {min_years} years
**Min Education:** {education_level}

**Candidate CV:**
{resume_text}

**Output JSON only:**
{{
  "overallScore": number (0-100),
  "roleFitScore": number (0-100),
  "techSkillsScore": number (0-100),
  "keyStrengths": ["str"],
  "gaps": ["str"],
  "summary": "Brief verdict + advice on certifications.",
  "skillsAnalysis": {{
    "directMatches": ["str"],
    "inferredMatches": [{{ "jobRequirement": "str", "candidateSkill": "str", "reason": "str" }}],
    "missing": ["str"]
  }}
}}
"""


def coerce_score(value: Any) -> float:
    """Leading number of a score value; 0 for anything non-numeric."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        match = SCORE_PATTERN.search(value)
        return float(match.group(0)) if match else 0.0
    return 0.0


def _pick(data: dict, *keys):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _strings(value) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _inferred_matches(value) -> List[InferredMatch]:
    if not isinstance(value, list):
        return []
    matches = []
    for entry in value:
        if isinstance(entry, dict):
            matches.append(InferredMatch(
                job_requirement=str(_pick(entry, "jobRequirement", "job_requirement", "requirement") or ""),
                candidate_skill=str(_pick(entry, "candidateSkill", "candidate_skill", "skill") or ""),
                reason=str(_pick(entry, "reason", "justification") or ""),
            ))
        elif isinstance(entry, str) and entry.strip():
            matches.append(InferredMatch(job_requirement=entry.strip(), candidate_skill=entry.strip()))
    return matches


def normalize_verdict(data: dict) -> EvaluationVerdict:
    """Build a verdict from loosely-shaped model output."""
    data = data if isinstance(data, dict) else {}
    analysis = _pick(data, "skillsAnalysis", "skills_analysis")
    analysis = analysis if isinstance(analysis, dict) else {}

    return EvaluationVerdict(
        overall_score=coerce_score(_pick(data, "overallScore", "overall_score", "score")),
        role_fit_score=coerce_score(_pick(data, "roleFitScore", "role_fit_score")),
        tech_skills_score=coerce_score(_pick(data, "techSkillsScore", "tech_skills_score", "skillsScore")),
        key_strengths=_strings(_pick(data, "keyStrengths", "key_strengths", "strengths")),
        gaps=_strings(_pick(data, "gaps", "weaknesses")),
        summary=str(_pick(data, "summary", "verdict") or ""),
        skills_analysis=SkillsAnalysis(
            direct_matches=_strings(_pick(analysis, "directMatches", "direct_matches")),
            inferred_matches=_inferred_matches(_pick(analysis, "inferredMatches", "inferred_matches")),
            missing=_strings(_pick(analysis, "missing", "missingSkills")),
        ),
    )


def failed_verdict(reason: str) -> EvaluationVerdict:
    """Terminal verdict used when the evaluation could not run."""
    return EvaluationVerdict(
        gaps=[ANALYSIS_PENDING],
        summary=f"AI Evaluation failed: {reason}",
    )


def is_rate_limit(error: BaseException) -> bool:
    return isinstance(error, RateLimitError) or classify_error(error) is ErrorKind.RATE_LIMITED


async def evaluate_resume(text: str, job: JobProfile, generator: GenerationClient, settings: Settings) -> EvaluationVerdict:
    """
    Ask Gemini for a job-fit verdict.

    Raises:
        RateLimitError: the service is rate limiting; must reach the caller
    """
    prompt = EVALUATION_PROMPT.format(
        title=job.title or "Unknown Role",
        description=(job.description or "Not provided")[:2000],
        required_skills=", ".join(job.required_skills) or "Not specified",
        optional_skills=", ".join(job.optional_skills) or "None",
        min_years=job.min_years_exp,
        education_level=job.education_level.value,
        resume_text=(text or "")[:settings.evaluation_text_limit],
    )

    try:
        generation = await generator.generate(prompt)
    except Exception as e:
        if is_rate_limit(e):
            logger.warning(f"Evaluation rate limited, propagating: {e}")
            if isinstance(e, RateLimitError):
                raise
            raise RateLimitError(str(e)) from e
        logger.error(f"AI evaluation failed: {e}")
        return failed_verdict(str(e))

    data = extract_json(generation.text, None)
    if data is None:
        verdict = EvaluationVerdict(gaps=["AI Error"], summary="Evaluation failed.")
    else:
        verdict = normalize_verdict(data)
    verdict.usage = generation.usage
    return verdict

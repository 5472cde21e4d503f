"""
Resume Parser Service using Gemini for structured data extraction.
Turns raw resume text into a ParsedResume; falls back to regex extraction
when the AI call fails so the evaluation can still proceed.
"""
import logging
import math
from typing import Any, List, Optional

from ..config import Settings
from ..schemas.resume import ExperienceItem, ParsedResume, UsageRecord
from .contact import extract_contact
from .generation import GenerationClient
from .json_extract import extract_json

logger = logging.getLogger(__name__)

DEFAULT_GENERAL_SCORE = 80
FALLBACK_SUMMARY = "AI Parsing Failed - Raw Text Only"
FALLBACK_MODEL = "fallback-regex"


# ============================================================================
# Resume Parsing Prompt
# ============================================================================

RESUME_PARSER_PROMPT = """
You are an expert CV Parser. Extract structured data from the Resume text.

**Resume Text:**
{resume_text}

**Instructions:**
1. **Contact:** Name, Email, Phone, LinkedIn profile URL.
2. **Skills:** Technical & Soft skills.
3. **Experience:** Total years (number). Structured list of roles (keep descriptions concise).
   Copy start and end dates exactly as written (e.g. "Jan 2020", "2019", "Present").
   Set isCurrent to true only for roles that are still ongoing.
4. **Education/Certs:** List all. Also list courses and spoken languages.
5. **ATS Score:** 0-100, how well the resume is formatted for applicant tracking systems.

**Output JSON only:**
{{
  "name": "string", "email": "string", "phone": "string", "linkedin": "string",
  "summary": "string", "skills": ["str"],
  "totalExperienceYears": number,
  "structuredExperience": [{{"role": "str", "company": "str", "startDate": "str", "endDate": "str", "description": "str", "isCurrent": bool}}],
  "education": ["str"], "certifications": ["str"], "courses": ["str"], "languages": ["str"],
  "generalScore": number
}}
"""


# ============================================================================
# Tolerant field helpers
# ============================================================================

def _safe_get(obj, *keys, default=None):
    """Safely traverse nested dict/object."""
    for key in keys:
        if isinstance(obj, dict):
            obj = obj.get(key)
        else:
            return default
        if obj is None:
            return default
    return obj if obj is not None else default


def _first(data: dict, *keys):
    """First non-empty value among alternative key spellings."""
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        text = str(value).strip()
        return text or None
    return None


def _as_text_list(value) -> List[str]:
    """Accept a list of strings/objects or a single delimited string."""
    if value is None:
        return []
    if isinstance(value, str):
        items = [part.strip() for part in value.replace("\n", ",").split(",")]
        return [item for item in items if item]
    if not isinstance(value, list):
        return []
    items = []
    for entry in value:
        if isinstance(entry, dict):
            entry = _first(entry, "name", "title", "degree", "language", "value")
        text = _as_text(entry)
        if text:
            items.append(text)
    return items


def _as_number(value, default: float = 0) -> float:
    """Finite number from a loosely typed value; `default` otherwise."""
    if isinstance(value, bool):
        return default
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().split()[0].rstrip("+%"))
        else:
            return default
    except (ValueError, IndexError, OverflowError):
        return default
    # json.loads accepts 1e999, Infinity and NaN
    return number if math.isfinite(number) else default


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "current", "present")
    return bool(value) if isinstance(value, (int, float)) else False


def _normalize_experience(entries: Any) -> List[ExperienceItem]:
    if not isinstance(entries, list):
        return []
    items = []
    for exp in entries:
        if not isinstance(exp, dict):
            continue
        dates = exp.get("dates") if isinstance(exp.get("dates"), dict) else {}
        items.append(ExperienceItem(
            role=_as_text(_first(exp, "role", "title", "position")) or "",
            company=_as_text(_first(exp, "company", "employer", "organization")) or "",
            start_date=_as_text(_first(exp, "startDate", "start_date", "start") or _safe_get(dates, "start")),
            end_date=_as_text(_first(exp, "endDate", "end_date", "end") or _safe_get(dates, "end")),
            description=_as_text(_first(exp, "description", "summary", "responsibilities")) or "",
            is_current=_as_bool(_first(exp, "isCurrent", "is_current", "current")),
        ))
    return items


def normalize_parsed_output(data: dict, text: str, usage: Optional[UsageRecord] = None) -> ParsedResume:
    """
    Map loosely-shaped model output onto ParsedResume.
    Missing or renamed fields get defaults instead of failing validation.
    """
    data = data if isinstance(data, dict) else {}
    contact = data.get("contact") if isinstance(data.get("contact"), dict) else {}

    courses = _first(data, "courses")
    if isinstance(courses, list):
        courses = "\n".join(_as_text_list(courses))

    general_score = _as_number(_first(data, "generalScore", "general_score", "atsScore"), 0)
    if general_score <= 0:
        general_score = DEFAULT_GENERAL_SCORE

    return ParsedResume(
        full_text=text,
        name=_as_text(_first(data, "name", "fullName", "full_name") or contact.get("name")),
        email=_as_text(_first(data, "email") or contact.get("email")),
        phone=_as_text(_first(data, "phone") or contact.get("phone")),
        profile_url=_as_text(_first(data, "linkedin", "profileUrl", "profile_url", "linkedin_url") or contact.get("linkedin")),
        summary=_as_text(_first(data, "summary", "professionalSummary")) or "",
        skills=_as_text_list(_first(data, "skills")),
        structured_experience=_normalize_experience(_first(data, "structuredExperience", "structured_experience", "experience")),
        total_experience_years=max(0.0, _as_number(_first(data, "totalExperienceYears", "total_experience_years"), 0)),
        education=_as_text_list(_first(data, "education")),
        certifications=_as_text_list(_first(data, "certifications")),
        courses=_as_text(courses) or "",
        languages=_as_text_list(_first(data, "languages")),
        general_score=int(round(min(100.0, general_score))),
        usage=usage or UsageRecord(),
    )


def build_fallback_resume(text: str) -> ParsedResume:
    """Minimal resume from regex extraction only, marked as an AI parsing failure."""
    contact = extract_contact(text)
    return ParsedResume(
        full_text=text,
        email=contact.email,
        phone=contact.phone,
        profile_url=contact.profile_url,
        summary=FALLBACK_SUMMARY,
        general_score=0,
        usage=UsageRecord(model_name=FALLBACK_MODEL),
        ai_parsing_failed=True,
    )


# ============================================================================
# Core Functions
# ============================================================================

async def parse_resume(text: str, generator: GenerationClient, settings: Settings) -> ParsedResume:
    """
    Parse resume text into structured data with Gemini.

    Args:
        text: Raw resume text
        generator: Generation client with model fallback
        settings: Prompt budgets

    Returns:
        ParsedResume; a regex-only fallback when the generation call fails.
        Malformed JSON yields defaults, not the fallback.
    """
    prompt = RESUME_PARSER_PROMPT.format(resume_text=(text or "")[:settings.parse_text_limit])

    try:
        generation = await generator.generate(prompt)
    except Exception as e:
        logger.warning(f"AI parse failed, using regex fallback: {e}")
        return build_fallback_resume(text or "")

    parsed = extract_json(generation.text, {})
    if not parsed:
        logger.warning(f"Parse response from {generation.model_name} had no usable JSON")
    return normalize_parsed_output(parsed, text or "", usage=generation.usage)

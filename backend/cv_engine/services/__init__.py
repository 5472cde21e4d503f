from .dates import (
    normalize_date_text,
    parse_date_point,
)
from .experience import (
    build_intervals,
    merge_intervals,
    calculate_experience_years,
)
from .contact import extract_contact
from .json_extract import extract_json
from .generation import (
    GenerationClient,
    GenerationResult,
    classify_error,
)
from .resume_parser import (
    parse_resume,
    normalize_parsed_output,
    build_fallback_resume,
)
from .evaluator import (
    evaluate_resume,
    coerce_score,
)
from .scoring import ScoreEngine
from .batch import BatchScorer
from .usage import (
    UsageLogger,
    SqlUsageLogger,
    estimate_cost,
)

__all__ = [
    # Dates & experience
    "normalize_date_text",
    "parse_date_point",
    "build_intervals",
    "merge_intervals",
    "calculate_experience_years",
    # Extraction
    "extract_contact",
    "extract_json",
    # Generation
    "GenerationClient",
    "GenerationResult",
    "classify_error",
    # Tasks
    "parse_resume",
    "normalize_parsed_output",
    "build_fallback_resume",
    "evaluate_resume",
    "coerce_score",
    # Engine
    "ScoreEngine",
    "BatchScorer",
    # Usage
    "UsageLogger",
    "SqlUsageLogger",
    "estimate_cost",
]

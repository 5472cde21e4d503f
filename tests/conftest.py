"""
Pytest configuration and shared fixtures.
"""

import inspect
import json
import pytest
from types import SimpleNamespace
from typing import Any, Callable, Dict, List

from cv_engine.config import Settings
from cv_engine.schemas.job import EducationLevel, JobProfile
from cv_engine.services.generation import GenerationClient


class FakeAPIError(Exception):
    """Stands in for google.genai.errors.APIError (carries an HTTP status code)."""

    def __init__(self, code: int, message: str):
        super().__init__(f"{code} {message}")
        self.code = code


class FakeResponse:
    def __init__(self, text: str, prompt_tokens: int = 100, output_tokens: int = 50):
        self.text = text
        self.usage_metadata = SimpleNamespace(
            prompt_token_count=prompt_tokens,
            candidates_token_count=output_tokens,
        )


class FakeModels:
    def __init__(self, handler: Callable[[str, str], Any]):
        self.handler = handler
        self.calls: List[tuple] = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append((model, contents))
        result = self.handler(model, contents)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, str):
            return FakeResponse(result)
        return result


class FakeGenaiClient:
    """In-process double exposing the async generate_content surface of genai.Client."""

    def __init__(self, handler: Callable[[str, str], Any]):
        self.models = FakeModels(handler)
        self.aio = SimpleNamespace(models=self.models)

    @property
    def calls(self) -> List[tuple]:
        return self.models.calls


def is_parse_prompt(prompt: str) -> bool:
    return "expert CV Parser" in prompt


def routed(parse: Any, evaluate: Any) -> Callable[[str, str], Any]:
    """Handler answering parse and evaluation prompts differently.

    Each answer may be a string, an exception, or a callable taking the model name.
    """
    def handler(model, prompt):
        answer = parse if is_parse_prompt(prompt) else evaluate
        return answer(model) if callable(answer) else answer
    return handler


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    """Settings with a dummy key and every delay set to zero."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_models="gemini-2.0-flash,gemini-2.0-flash-lite,gemini-flash-latest",
        generation_backoff_base_seconds=0,
        batch_jitter_seconds=0,
        batch_jitter_random_seconds=0,
        batch_cooldown_seconds=0,
        evaluation_timeout_seconds=None,
    )


@pytest.fixture
def job() -> JobProfile:
    return JobProfile(
        title="Backend Engineer",
        description="Build and operate Python services.",
        required_skills=["Python", "PostgreSQL", "AWS"],
        optional_skills=["Kubernetes"],
        min_years_exp=3,
        education_level=EducationLevel.BACHELOR,
    )


@pytest.fixture
def resume_text() -> str:
    return (
        "Jane Doe\n"
        "reach me at jane.doe@example.com | +1 (555) 123-4567\n"
        "linkedin.com/in/jane-doe\n"
        "Experience\n"
        "Senior Engineer, Acme - Jan 2020 to Dec 2021\n"
        "Engineer, Globex - Jun 2021 to Jun 2022\n"
        "Skills: Python, PostgreSQL, Docker\n"
    )


@pytest.fixture
def parse_payload() -> Dict[str, Any]:
    return {
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "phone": "",
        "linkedin": "",
        "summary": "Backend engineer.",
        "skills": ["Python", "PostgreSQL", "Docker"],
        "totalExperienceYears": 3.5,
        "structuredExperience": [
            {"role": "Senior Engineer", "company": "Acme", "startDate": "Jan 2020", "endDate": "Dec 2021", "isCurrent": False},
            {"role": "Engineer", "company": "Globex", "startDate": "Jun 2021", "endDate": "Jun 2022", "isCurrent": False},
        ],
        "education": ["BSc Computer Science"],
        "certifications": [],
        "courses": [],
        "languages": ["English"],
        "generalScore": 72,
    }


@pytest.fixture
def eval_payload() -> Dict[str, Any]:
    return {
        "overallScore": 78,
        "roleFitScore": 80,
        "techSkillsScore": 70,
        "keyStrengths": ["Python"],
        "gaps": ["No AWS experience"],
        "summary": "Solid backend profile.",
        "skillsAnalysis": {
            "directMatches": ["Python", "PostgreSQL"],
            "inferredMatches": [{"jobRequirement": "AWS", "candidateSkill": "Docker", "reason": "Cloud tooling"}],
            "missing": ["Kubernetes"],
        },
    }


@pytest.fixture
def make_generator(settings):
    """Factory: GenerationClient backed by a FakeGenaiClient."""
    def factory(handler, sleep=None, **overrides):
        active = settings.model_copy(update=overrides) if overrides else settings
        fake = FakeGenaiClient(handler)
        kwargs = {"sleep": sleep} if sleep is not None else {}
        return GenerationClient(active, client=fake, **kwargs), fake
    return factory


def as_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload)

"""
Tests for the job-fit evaluation task.
"""

import asyncio
import math
import pytest

from conftest import FakeAPIError, as_json
from cv_engine.errors import RateLimitError
from cv_engine.services.evaluator import ANALYSIS_PENDING, coerce_score, evaluate_resume, normalize_verdict


class TestCoerceScore:
    """Test score coercion from loosely typed values."""

    @pytest.mark.parametrize("value,expected", [
        (85, 85.0),
        (72.5, 72.5),
        ("85", 85.0),
        ("78/100", 78.0),
        ("90%", 90.0),
        ("score: 64", 64.0),
    ])
    def test_numeric_values(self, value, expected):
        assert coerce_score(value) == expected

    @pytest.mark.parametrize("value", [None, "n/a", "", True, [], {}, math.nan, math.inf])
    def test_junk_is_zero(self, value):
        assert coerce_score(value) == 0.0


class TestEvaluateResume:
    """Test the evaluation task and its failure asymmetry."""

    def test_verdict_from_model(self, make_generator, settings, job, resume_text, eval_payload):
        generator, fake = make_generator(lambda model, prompt: as_json(eval_payload))

        verdict = asyncio.run(evaluate_resume(resume_text, job, generator, settings))

        assert verdict.overall_score == 78
        assert verdict.role_fit_score == 80
        assert verdict.tech_skills_score == 70
        assert verdict.gaps == ["No AWS experience"]
        assert verdict.skills_analysis.direct_matches == ["Python", "PostgreSQL"]
        assert verdict.skills_analysis.inferred_matches[0].job_requirement == "AWS"
        assert verdict.usage.input_tokens == 100
        prompt = fake.calls[0][1]
        assert "Backend Engineer" in prompt
        assert "Python, PostgreSQL, AWS" in prompt
        assert "bachelor" in prompt

    def test_string_score(self, make_generator, settings, job, resume_text, eval_payload):
        eval_payload["overallScore"] = "78/100"
        generator, _ = make_generator(lambda model, prompt: as_json(eval_payload))

        verdict = asyncio.run(evaluate_resume(resume_text, job, generator, settings))

        assert verdict.overall_score == 78

    def test_rate_limit_propagates(self, make_generator, settings, job, resume_text):
        generator, _ = make_generator(lambda model, prompt: FakeAPIError(429, "Too Many Requests"))

        with pytest.raises(RateLimitError):
            asyncio.run(evaluate_resume(resume_text, job, generator, settings))

    def test_other_failure_degrades(self, make_generator, settings, job, resume_text):
        generator, _ = make_generator(lambda model, prompt: RuntimeError("backend exploded"))

        verdict = asyncio.run(evaluate_resume(resume_text, job, generator, settings))

        assert verdict.overall_score == 0
        assert verdict.gaps == [ANALYSIS_PENDING]
        assert verdict.summary.startswith("AI Evaluation failed:")
        assert "backend exploded" in verdict.summary

    def test_unparseable_output(self, make_generator, settings, job, resume_text):
        generator, _ = make_generator(lambda model, prompt: "I think they are great!")

        verdict = asyncio.run(evaluate_resume(resume_text, job, generator, settings))

        assert verdict.overall_score == 0
        assert verdict.gaps == ["AI Error"]
        assert verdict.summary == "Evaluation failed."
        assert verdict.usage is not None


class TestNormalizeVerdict:
    """Test tolerant mapping of verdict output."""

    def test_missing_fields(self):
        verdict = normalize_verdict({})
        assert verdict.overall_score == 0
        assert verdict.gaps == []
        assert verdict.skills_analysis.missing == []

    def test_snake_case_keys(self):
        verdict = normalize_verdict({"overall_score": "55", "skills_analysis": {"direct_matches": ["SQL"]}})
        assert verdict.overall_score == 55
        assert verdict.skills_analysis.direct_matches == ["SQL"]

"""
Tests for batch scoring.
"""

import asyncio
import pytest
from datetime import datetime

from conftest import RecordingSleep
from cv_engine.errors import RateLimitError
from cv_engine.schemas.batch import BatchItem
from cv_engine.schemas.score import ScoreResult
from cv_engine.services.batch import BatchScorer


class StubEngine:
    """ScoreEngine stand-in answering per subject text."""

    def __init__(self, behaviour):
        self.behaviour = behaviour
        self.calls = []

    async def evaluate(self, raw_text, job, metadata=None, timeout=None):
        self.calls.append((raw_text, metadata))
        outcome = self.behaviour.get(raw_text, 50)
        if isinstance(outcome, BaseException):
            raise outcome
        return ScoreResult(score=outcome)


def items(*texts):
    return [BatchItem(subject_id=f"cv-{i}", resume_text=text) for i, text in enumerate(texts)]


class TestScoreBatch:
    """Test chunked batch scoring."""

    def test_all_success(self, settings, job):
        engine = StubEngine({"a": 70, "b": 80})
        scorer = BatchScorer(engine, settings, sleep=RecordingSleep())

        report = asyncio.run(scorer.score_batch(items("a", "b"), job, requester_id="user-1"))

        assert report.success_count == 2
        assert report.fail_count == 0
        assert [o.score for o in report.outcomes] == [70, 80]
        assert engine.calls[0][1].requester_id == "user-1"
        assert engine.calls[0][1].subject_id == "cv-0"

    def test_mixed_outcomes_keep_order(self, settings, job):
        engine = StubEngine({
            "ok": 90,
            "limited": RateLimitError(),
            "broken": RuntimeError("unexpected"),
        })
        scorer = BatchScorer(engine, settings, sleep=RecordingSleep())

        report = asyncio.run(scorer.score_batch(items("ok", "limited", "  ", "broken", "ok"), job))

        assert [o.status for o in report.outcomes] == ["success", "rate_limited", "skipped", "failed", "success"]
        assert report.success_count == 2
        assert report.fail_count == 2
        assert report.outcomes[1].score is None
        assert "Rate Limited (429)" in report.outcomes[1].error
        assert report.outcomes[3].error == "unexpected"
        assert len(engine.calls) == 4

    def test_cooldown_between_chunks(self, settings, job):
        sleep = RecordingSleep()
        chunked = settings.model_copy(update={"batch_max_concurrent": 2, "batch_cooldown_seconds": 2.0})
        scorer = BatchScorer(StubEngine({}), chunked, sleep=sleep)

        asyncio.run(scorer.score_batch(items("a", "b", "c", "d", "e"), job))

        # 3 chunks, cooldown after the first two only
        assert sleep.delays == [2.0, 2.0]

    def test_jitter_staggers_slots(self, settings, job):
        sleep = RecordingSleep()
        jittered = settings.model_copy(update={
            "batch_jitter_seconds": 0.3,
            "batch_jitter_random_seconds": 0,
            "batch_cooldown_seconds": 0,
        })
        scorer = BatchScorer(StubEngine({}), jittered, sleep=sleep)

        asyncio.run(scorer.score_batch(items("a", "b", "c"), job))

        assert sorted(sleep.delays) == pytest.approx([0.3, 0.6])

    def test_progress_reported(self, settings, job):
        progress = []
        chunked = settings.model_copy(update={"batch_max_concurrent": 2})
        scorer = BatchScorer(StubEngine({}), chunked, sleep=RecordingSleep())

        asyncio.run(scorer.score_batch(
            items("a", "b", "c"), job,
            on_progress=lambda current, total, message: progress.append((current, total, message)),
        ))

        assert (2, 3, "Cooling down (Rate Limit Protection)...") in progress
        assert sorted(p[0] for p in progress if p[2].startswith("Analyzing")) == [1, 2, 3]

    def test_empty_batch(self, settings, job):
        report = asyncio.run(BatchScorer(StubEngine({}), settings).score_batch([], job))

        assert report.success_count == 0
        assert report.outcomes == []


class TestBatchAccounting:
    """Test how outcomes are counted."""

    def test_empty_text_is_skipped_not_failed(self, settings, job):
        engine = StubEngine({})
        scorer = BatchScorer(engine, settings, sleep=RecordingSleep())

        report = asyncio.run(scorer.score_batch(items("", "   ", "text"), job))

        assert [o.status for o in report.outcomes] == ["skipped", "skipped", "success"]
        assert report.success_count == 1
        assert report.fail_count == 0
        assert report.outcomes[0].error == "No text content available"
        assert len(engine.calls) == 1

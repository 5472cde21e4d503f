"""
Batch scoring of many resumes against one job profile.

Items run in small concurrent chunks with staggered starts and a cooldown
between chunks, which keeps a large batch under the Gemini rate limits.
"""
import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional

from ..config import Settings
from ..errors import RateLimitError
from ..schemas.batch import BatchItem, BatchOutcome, BatchReport
from ..schemas.job import JobProfile
from ..schemas.score import EvaluationMetadata
from .scoring import ScoreEngine

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class BatchScorer:
    def __init__(
        self,
        engine: ScoreEngine,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.settings = settings
        self._sleep = sleep
        self._rng = rng or random.Random()

    def _jitter(self, slot: int) -> float:
        return slot * self.settings.batch_jitter_seconds + self._rng.uniform(0, self.settings.batch_jitter_random_seconds)

    async def _score_item(
        self,
        item: BatchItem,
        slot: int,
        position: int,
        total: int,
        job: JobProfile,
        requester_id: Optional[str],
        on_progress: Optional[ProgressCallback],
    ) -> BatchOutcome:
        delay = self._jitter(slot)
        if delay > 0:
            await self._sleep(delay)

        if on_progress:
            on_progress(position, total, f"Analyzing CV ID: {item.subject_id[:6]}...")

        if not (item.resume_text or "").strip():
            logger.info(f"Skipping {item.subject_id}: no text content available")
            return BatchOutcome(subject_id=item.subject_id, status="skipped", error="No text content available")

        metadata = EvaluationMetadata(requester_id=requester_id, subject_id=item.subject_id)
        try:
            result = await self.engine.evaluate(item.resume_text, job, metadata=metadata)
        except RateLimitError as e:
            logger.warning(f"Rate limited while scoring {item.subject_id}: {e}")
            return BatchOutcome(subject_id=item.subject_id, status="rate_limited", error=str(e))
        except Exception as e:
            logger.error(f"Error processing {item.subject_id}: {e}")
            return BatchOutcome(subject_id=item.subject_id, status="failed", error=str(e))

        return BatchOutcome(subject_id=item.subject_id, status="success", score=result.score, result=result)

    async def score_batch(
        self,
        items: List[BatchItem],
        job: JobProfile,
        requester_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Score every item; one failure never stops the batch.

        Outcomes keep the input order. Skipped items count as neither
        success nor failure.
        """
        total = len(items)
        chunk_size = max(1, self.settings.batch_max_concurrent)
        outcomes: List[BatchOutcome] = []

        for start in range(0, total, chunk_size):
            chunk = items[start:start + chunk_size]
            outcomes.extend(await asyncio.gather(*[
                self._score_item(item, slot, start + slot + 1, total, job, requester_id, on_progress)
                for slot, item in enumerate(chunk)
            ]))

            if start + chunk_size < total:
                done = min(start + chunk_size, total)
                logger.info(f"Batch progress {done}/{total}, cooling down")
                if on_progress:
                    on_progress(done, total, "Cooling down (Rate Limit Protection)...")
                await self._sleep(self.settings.batch_cooldown_seconds)

        report = BatchReport(
            success_count=sum(1 for o in outcomes if o.status == "success"),
            fail_count=sum(1 for o in outcomes if o.status in ("failed", "rate_limited")),
            outcomes=outcomes,
        )
        logger.info(f"Batch finished: {report.success_count} scored, {report.fail_count} failed of {total}")
        return report

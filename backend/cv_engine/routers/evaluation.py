from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from ..config import get_settings
from ..database import create_session_maker, get_db_engine
from ..errors import EvaluationTimeoutError, RateLimitError
from ..schemas.batch import BatchEvaluateRequest, BatchReport
from ..schemas.score import EvaluateRequest, EvaluationMetadata, ScoreResult
from ..services.batch import BatchScorer
from ..services.generation import GenerationClient
from ..services.scoring import ScoreEngine
from ..services.usage import SqlUsageLogger

router = APIRouter(prefix="/api/evaluations", tags=["Evaluations"])


@lru_cache()
def get_score_engine() -> ScoreEngine:
    """Engine wired from process settings; overridden in tests"""
    settings = get_settings()
    return ScoreEngine(
        settings,
        GenerationClient(settings),
        usage_logger=SqlUsageLogger(create_session_maker(get_db_engine()), settings),
    )


@router.post("", response_model=ScoreResult)
async def evaluate_resume(
    request: EvaluateRequest,
    engine: ScoreEngine = Depends(get_score_engine),
):
    """Score one resume against a job profile"""
    metadata = None
    if request.requester_id or request.subject_id:
        metadata = EvaluationMetadata(requester_id=request.requester_id, subject_id=request.subject_id)

    try:
        return await engine.evaluate(request.resume_text, request.job, metadata=metadata)
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))
    except EvaluationTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))


@router.post("/batch", response_model=BatchReport)
async def evaluate_batch(
    request: BatchEvaluateRequest,
    engine: ScoreEngine = Depends(get_score_engine),
):
    """Score many resumes against one job profile; failures are reported per item"""
    scorer = BatchScorer(engine, engine.settings)
    return await scorer.score_batch(request.items, request.job, requester_id=request.requester_id)

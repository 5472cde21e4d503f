from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from .job import JobProfile
from .score import ScoreResult


class BatchItem(BaseModel):
    subject_id: str
    resume_text: str = ""


class BatchOutcome(BaseModel):
    subject_id: str
    status: Literal["success", "failed", "rate_limited", "skipped"]
    score: Optional[float] = None
    result: Optional[ScoreResult] = None
    error: Optional[str] = None


class BatchReport(BaseModel):
    success_count: int = 0
    fail_count: int = 0
    outcomes: List[BatchOutcome] = Field(default_factory=list)


class BatchEvaluateRequest(BaseModel):
    job: JobProfile
    items: List[BatchItem] = Field(default_factory=list)
    requester_id: Optional[str] = None

from typing import List, Optional
from pydantic import BaseModel, Field

from .resume import UsageRecord


class InferredMatch(BaseModel):
    job_requirement: str = ""
    candidate_skill: str = ""
    reason: str = ""


class SkillsAnalysis(BaseModel):
    direct_matches: List[str] = Field(default_factory=list)
    inferred_matches: List[InferredMatch] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)


class EvaluationVerdict(BaseModel):
    """Job-fit verdict returned by the evaluation task"""
    overall_score: float = 0
    role_fit_score: float = 0
    tech_skills_score: float = 0
    key_strengths: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    summary: str = ""
    skills_analysis: SkillsAnalysis = Field(default_factory=SkillsAnalysis)
    usage: Optional[UsageRecord] = None

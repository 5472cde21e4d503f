"""
Public result contract of the evaluation engine
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from .evaluation import SkillsAnalysis
from .job import JobProfile
from .resume import UsageRecord


RiskType = Literal["gap", "job_hopping", "missing_contact", "missing_education", "missing_skills", "formatting", "other"]
RiskSeverity = Literal["low", "medium", "high"]


class RiskFlag(BaseModel):
    message: str
    severity: RiskSeverity = "medium"
    type: RiskType = "other"


class ScoreBreakdown(BaseModel):
    role_fit: float = 0
    skills_quality: float = 0
    experience_quality: float = 0
    projects_impact: float = 0
    ats_format: float = 0
    language_clarity: float = 0


# Each category expands into its composing signals. Signals currently mirror
# the category score; they are not computed independently.

class RoleFitDetail(BaseModel):
    score: float = 0
    keyword_match: float = 0
    seniority_match: float = 0


class SkillsQualityDetail(BaseModel):
    score: float = 0
    coverage: float = 0
    depth: float = 0
    recency: float = 0


class ExperienceQualityDetail(BaseModel):
    score: float = 0
    relevance: float = 0
    duration: float = 0
    consistency: float = 0


class ProjectsImpactDetail(BaseModel):
    score: float = 0
    presence: float = 0
    details: float = 0
    results: float = 0


class LanguageClarityDetail(BaseModel):
    score: float = 0
    grammar: float = 0
    clarity: float = 0


class AtsFormatDetail(BaseModel):
    score: float = 0
    sections: float = 0
    readability: float = 0
    layout: float = 0


class DetailedScoreBreakdown(BaseModel):
    role_fit: RoleFitDetail = Field(default_factory=RoleFitDetail)
    skills_quality: SkillsQualityDetail = Field(default_factory=SkillsQualityDetail)
    experience_quality: ExperienceQualityDetail = Field(default_factory=ExperienceQualityDetail)
    projects_impact: ProjectsImpactDetail = Field(default_factory=ProjectsImpactDetail)
    language_clarity: LanguageClarityDetail = Field(default_factory=LanguageClarityDetail)
    ats_format: AtsFormatDetail = Field(default_factory=AtsFormatDetail)


class ExtractedContact(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    profile_url: Optional[str] = None


class ScoreResult(BaseModel):
    score: float = Field(0, ge=0, le=100)
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    detailed_breakdown: DetailedScoreBreakdown = Field(default_factory=DetailedScoreBreakdown)
    risk_flags: List[RiskFlag] = Field(default_factory=list)
    matched_skills: List[str] = Field(default_factory=list)
    inferred_skills: List[str] = Field(default_factory=list)
    relevant_experience_years: float = 0
    explanation: List[str] = Field(default_factory=list)
    extracted_contact: ExtractedContact = Field(default_factory=ExtractedContact)
    skills_analysis: SkillsAnalysis = Field(default_factory=SkillsAnalysis)
    usage: Optional[UsageRecord] = None


class EvaluationMetadata(BaseModel):
    """Who asked for the evaluation and about whom; used for usage logging."""
    requester_id: Optional[str] = None
    subject_id: Optional[str] = None


class EvaluateRequest(BaseModel):
    resume_text: str = ""
    job: JobProfile
    requester_id: Optional[str] = None
    subject_id: Optional[str] = None

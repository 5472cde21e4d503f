"""
Resume schemas produced by the parse task
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class ExperienceItem(BaseModel):
    role: str = ""
    company: str = ""
    start_date: Optional[str] = None  # raw text, e.g. "Jan 2020" or "2019 - 2021"
    end_date: Optional[str] = None
    description: str = ""
    is_current: bool = False


class Interval(BaseModel):
    """Parsed employment span; never persisted."""
    start: datetime
    end: datetime


class UsageRecord(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    model_name: str = "unknown"


class ParsedResume(BaseModel):
    """Structured resume, created fresh for every evaluation"""
    full_text: str = ""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    profile_url: Optional[str] = None
    summary: str = ""
    skills: List[str] = Field(default_factory=list)
    structured_experience: List[ExperienceItem] = Field(default_factory=list)
    total_experience_years: float = 0
    education: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    courses: str = ""
    languages: List[str] = Field(default_factory=list)
    general_score: int = Field(80, ge=0, le=100)  # ATS formatting proxy
    usage: UsageRecord = Field(default_factory=UsageRecord)
    ai_parsing_failed: bool = False

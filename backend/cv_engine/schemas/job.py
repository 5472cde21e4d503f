from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class EducationLevel(str, Enum):
    NONE = "none"
    HIGH_SCHOOL = "high_school"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    PHD = "phd"


class JobProfile(BaseModel):
    """Hiring requirement a resume is scored against. Owned by the caller."""
    title: str = ""
    description: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list)
    optional_skills: List[str] = Field(default_factory=list)
    min_years_exp: float = Field(0, ge=0)
    education_level: EducationLevel = EducationLevel.NONE

    class Config:
        frozen = True

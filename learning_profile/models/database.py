"""
Database models and table definitions
"""

from datetime import datetime, timezone
from typing import Annotated, Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from uuid import uuid4

from learning_profile.utils.constants import (
    QuizType,
    RespondentType,
    RiskType,
    Severity,
    RiskTimeline,
    SkillCategory,
    DEFAULT_AGE_GROUP,
    DEFAULT_PERSONALITY_LABEL,
    TOTAL_QUESTION_SLOTS,
    MIN_SCORE,
    MAX_SCORE,
)

QuestionSlot = Annotated[int, Field(ge=1, le=TOTAL_QUESTION_SLOTS)]
LikertScore = Annotated[int, Field(ge=MIN_SCORE, le=MAX_SCORE)]


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def empty_scores() -> Dict[str, Optional[float]]:
    """Category map with no evidence yet"""
    return {category.value: None for category in SkillCategory}


class AssessmentRecord(BaseModel):
    """One submission from one respondent; never edited after creation"""
    model_config = ConfigDict(from_attributes=True, extra="ignore", str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=_new_id)
    profile_id: Optional[str] = None
    child_name: str
    quiz_type: QuizType
    respondent_type: RespondentType
    respondent_name: Optional[str] = None
    respondent_id: Optional[str] = None
    age_group: str = DEFAULT_AGE_GROUP
    precise_age_months: Optional[int] = None
    responses: Dict[QuestionSlot, LikertScore]
    preferences: Dict[str, Any] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)
    scores: Dict[str, float] = Field(default_factory=dict)
    use_clp2_scoring: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class Profile(BaseModel):
    """Consolidated learning profile for one child"""
    model_config = ConfigDict(from_attributes=True, extra="ignore", str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    child_name: str
    grade_level: Optional[str] = None
    age_group: str = DEFAULT_AGE_GROUP
    precise_age_months: Optional[int] = None
    classroom_id: Optional[str] = None
    assessment_records: List[AssessmentRecord] = Field(default_factory=list)
    consolidated_scores: Dict[str, Optional[float]] = Field(default_factory=empty_scores)
    confidence_percentage: float = 0.0
    completeness_percentage: float = 0.0
    total_assessments: int = 0
    parent_assessments: int = 0
    teacher_assessments: int = 0
    personality_label: str = DEFAULT_PERSONALITY_LABEL
    strengths: List[str] = Field(default_factory=list)
    growth_areas: List[str] = Field(default_factory=list)
    sharing_token: Optional[str] = None
    version: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class RiskFactor(BaseModel):
    """Stored classroom risk factor for a student"""
    model_config = ConfigDict(from_attributes=True, extra="ignore", str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    profile_id: str
    classroom_id: str
    risk_type: RiskType
    severity: Severity = Severity.MEDIUM
    description: str = ""
    indicators: List[str] = Field(default_factory=list)
    intervention_strategies: List[str] = Field(default_factory=list)
    timeline: RiskTimeline = RiskTimeline.SHORT_TERM
    status: str = "active"
    identified_date: datetime = Field(default_factory=_utcnow)
    next_review_date: Optional[datetime] = None


class TeacherAccount(BaseModel):
    """Teacher account as seen by session resolution"""
    model_config = ConfigDict(from_attributes=True, extra="ignore", str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    email: str
    name: str
    user_type: str = "teacher"
    school: Optional[str] = None
    grade_level: Optional[str] = None
    is_active: bool = True
    is_verified: bool = True

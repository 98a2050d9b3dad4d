"""
Pydantic schemas for request/response validation
"""

from pydantic import AliasChoices, BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any

# Request fields stay optional here: the assessment validator owns the
# "required fields" and enum checks so their messages reach the client intact.


# ============================================
# Progressive Profile Schemas
# ============================================

class ProgressiveProfileRequest(BaseModel):
    """Schema for submitting one assessment to a (new or existing) profile"""
    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True
    )

    child_name: Optional[str] = Field(default=None, max_length=200)
    existing_profile_id: Optional[str] = None
    profile_id: Optional[str] = None
    age_group: Optional[str] = None
    precise_age_months: Optional[int] = Field(default=None, ge=0, le=240)
    grade_level: Optional[str] = Field(default=None, max_length=50)
    quiz_type: Optional[str] = None
    respondent_type: Optional[str] = None
    respondent_name: Optional[str] = Field(default=None, max_length=200)
    respondent_id: Optional[str] = None
    responses: Optional[Dict[str, Any]] = None
    preferences: Optional[Dict[str, Any]] = None
    school_context: Optional[Dict[str, Any]] = None
    classroom_id: Optional[str] = None
    use_clp2_scoring: bool = True

    def target_profile_id(self) -> Optional[str]:
        """Profile the submission is aimed at, if any"""
        return self.existing_profile_id or self.profile_id


class ContributionSummary(BaseModel):
    """What a single assessment added to its profile"""
    weight: float
    confidence_boost: int
    categories_covered: List[str]
    new_confidence: Optional[float] = None
    new_completeness: Optional[float] = None


class ConsolidationAnalysis(BaseModel):
    """Evidence coverage summary for a profile"""
    completeness_score: int
    data_sources: List[Dict[str, Any]]
    missing_contexts: List[str]
    confidence_level: str
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


# ============================================
# Classroom Schemas
# ============================================

class RiskFactorCreate(BaseModel):
    """Schema for a single risk factor submitted by a teacher"""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    risk_type: str = Field(..., validation_alias=AliasChoices("risk_type", "type"), pattern=r"^(learning_style_mismatch|low_engagement|social_isolation|academic_struggle)$")
    severity: str = Field(default="medium", pattern=r"^(low|medium|high)$")
    description: str = Field(default="", max_length=1000)
    indicators: List[str] = Field(default_factory=list)
    intervention_strategies: List[str] = Field(default_factory=list)
    timeline: str = Field(default="short_term", pattern=r"^(immediate|short_term|long_term)$")


class AtRiskRequest(BaseModel):
    """Schema for recording risk factors against a student"""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    student_id: Optional[str] = None
    risk_factors: Optional[List[RiskFactorCreate]] = None


# ============================================
# Session Schemas
# ============================================

class SessionActionRequest(BaseModel):
    """Schema for session actions"""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    action: Optional[str] = None

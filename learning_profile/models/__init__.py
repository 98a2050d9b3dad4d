"""
Models package - Database models and schemas
"""

from learning_profile.models.database import (
    Profile,
    AssessmentRecord,
    RiskFactor,
    TeacherAccount
)

from learning_profile.models.schemas import (
    ProgressiveProfileRequest,
    ContributionSummary,
    ConsolidationAnalysis,
    RiskFactorCreate,
    AtRiskRequest,
    SessionActionRequest
)

__all__ = [
    # Database Models
    "Profile",
    "AssessmentRecord",
    "RiskFactor",
    "TeacherAccount",
    # Schemas
    "ProgressiveProfileRequest",
    "ContributionSummary",
    "ConsolidationAnalysis",
    "RiskFactorCreate",
    "AtRiskRequest",
    "SessionActionRequest"
]

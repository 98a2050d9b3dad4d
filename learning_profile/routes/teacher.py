"""
Teacher classroom analytics endpoints
"""

from fastapi import APIRouter, Depends

from learning_profile.models.schemas import AtRiskRequest
from learning_profile.services.classroom_service import ClassroomAnalytics
from learning_profile.utils.dependencies import get_classroom_analytics

router = APIRouter(prefix="/api/teacher", tags=["Teacher"])


@router.get("/classroom/{classroom_id}/overview")
def classroom_overview(
    classroom_id: str,
    analytics: ClassroomAnalytics = Depends(get_classroom_analytics)
):
    """
    Classroom dashboard data

    Returns average category scores, personality label distribution,
    support counts and a summary row per student.
    """
    return analytics.overview(classroom_id)


@router.get("/classroom/{classroom_id}/at-risk")
def classroom_at_risk(
    classroom_id: str,
    analytics: ClassroomAnalytics = Depends(get_classroom_analytics)
):
    """At-risk students with intervention plans, highest priority first"""
    return analytics.at_risk(classroom_id)


@router.post("/classroom/{classroom_id}/at-risk")
def record_at_risk(
    classroom_id: str,
    request: AtRiskRequest,
    analytics: ClassroomAnalytics = Depends(get_classroom_analytics)
):
    """Record teacher-observed risk factors for a student"""
    factors = analytics.record_risk_factors(classroom_id, request)
    return {
        "success": True,
        "risk_factors": [factor.model_dump(mode="json") for factor in factors]
    }

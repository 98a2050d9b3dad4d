"""
Progressive profile API: submit assessments and read consolidated profiles
"""

from fastapi import APIRouter, Depends, Query
from typing import Any, Dict, Optional

from learning_profile.models.database import AssessmentRecord
from learning_profile.models.schemas import ProgressiveProfileRequest
from learning_profile.services.analysis_service import (
    analyze_consolidation,
    consolidation_recommendations,
    contextual_recommendations,
    next_assessment_recommendations,
)
from learning_profile.services.consolidation_service import ProfileConsolidator, contribution_summary
from learning_profile.services.projection_service import view_projector
from learning_profile.utils.constants import ERROR_MESSAGES, QUIZ_QUESTION_SLOTS
from learning_profile.utils.dependencies import get_consolidator
from learning_profile.utils.error_handler import ValidationError
from learning_profile.utils.helpers import build_share_url

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


def _assessment_payload(record: AssessmentRecord) -> Dict[str, Any]:
    payload = record.model_dump(mode="json")
    payload["question_count"] = len(QUIZ_QUESTION_SLOTS[record.quiz_type])
    return payload


def _submission(request: ProgressiveProfileRequest) -> Dict[str, Any]:
    return request.model_dump(exclude={"child_name", "existing_profile_id", "profile_id"})


@router.post("/progressive")
def submit_progressive_assessment(
    request: ProgressiveProfileRequest,
    consolidator: ProfileConsolidator = Depends(get_consolidator)
):
    """
    Submit one assessment, creating the profile on first submission

    - **child_name**: Child the assessment is about
    - **existing_profile_id**: Profile to extend (omit to create a new profile)
    - **quiz_type**: parent_home, teacher_classroom or general
    - **respondent_type**: parent or teacher
    - **responses**: Question number (1-28) to answer
    """
    result = consolidator.submit_assessment(
        request.child_name,
        _submission(request),
        request.target_profile_id()
    )
    profile, record = result.profile, result.record

    summary = contribution_summary(record, consolidator.weights)
    summary.new_confidence = profile.confidence_percentage
    summary.new_completeness = profile.completeness_percentage

    profile_view = view_projector.project(profile, "consolidated")
    profile_view["quiz_type"] = record.quiz_type.value
    profile_view["respondent_type"] = record.respondent_type.value

    return {
        "profile": profile_view,
        "assessment": _assessment_payload(record),
        "is_new_profile": result.is_new_profile,
        "previous_assessments": profile.total_assessments - 1,
        "warnings": result.warnings,
        "contribution_summary": summary.model_dump(),
        "share_url": f"{build_share_url(profile.id)}?context={record.respondent_type.value}",
    }


@router.get("/progressive")
def get_progressive_profile(
    profile_id: Optional[str] = Query(default=None, alias="profileId"),
    child_name: Optional[str] = Query(default=None, alias="childName"),
    context: Optional[str] = Query(default=None),
    consolidator: ProfileConsolidator = Depends(get_consolidator)
):
    """
    Get a profile rendered for a parent, teacher or consolidated view

    - **profileId**: Profile to render
    - **childName**: Used when no profileId is given; the most recently updated match wins
    - **context**: parent, teacher or consolidated (default)
    """
    if profile_id:
        profile = consolidator.get_profile(profile_id)
    elif child_name and child_name.strip():
        profile = consolidator.get_profile_by_child_name(child_name)
    else:
        raise ValidationError(ERROR_MESSAGES["PROFILE_LOOKUP_REQUIRED"])

    return {"profile": view_projector.project(profile, context)}


@router.get("/clp2-consolidate")
def get_consolidation_status(
    profile_id: Optional[str] = Query(default=None),
    consolidator: ProfileConsolidator = Depends(get_consolidator)
):
    """Consolidation analysis: which perspectives a profile has and what to add next"""
    if not profile_id:
        raise ValidationError(ERROR_MESSAGES["PROFILE_ID_REQUIRED"])

    profile = consolidator.get_profile(profile_id)
    analysis = analyze_consolidation(profile)

    return {
        "profile": view_projector.project(profile, "consolidated"),
        "consolidation_analysis": analysis.model_dump(),
        "recommendations": consolidation_recommendations(analysis),
        "next_assessment_recommendations": next_assessment_recommendations(profile),
    }


@router.post("/clp2-consolidate")
def consolidate_assessment(
    request: ProgressiveProfileRequest,
    consolidator: ProfileConsolidator = Depends(get_consolidator)
):
    """Submit an assessment and return the consolidation block with contextual recommendations"""
    result = consolidator.submit_assessment(
        request.child_name,
        _submission(request),
        request.target_profile_id()
    )
    profile, record = result.profile, result.record

    return {
        "profile": view_projector.project(profile, "consolidated"),
        "assessment": _assessment_payload(record),
        "consolidation": {
            "is_new_profile": result.is_new_profile,
            "previous_assessments": profile.total_assessments - 1,
            "data_sources": profile.total_assessments,
            "next_recommendations": next_assessment_recommendations(profile),
        },
        "warnings": result.warnings,
        "share_url": f"{build_share_url(profile.id)}?context=clp2",
        "recommendations": contextual_recommendations(profile),
    }

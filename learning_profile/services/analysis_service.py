"""
Consolidation status analysis and follow-up recommendations
"""

from typing import Any, Dict, List

from learning_profile.models.database import Profile
from learning_profile.models.schemas import ConsolidationAnalysis
from learning_profile.services.scoring_service import strengths_and_growth


def confidence_level(confidence_percentage: float) -> str:
    if confidence_percentage >= 80:
        return "high"
    if confidence_percentage >= 60:
        return "medium"
    return "low"


def analyze_consolidation(profile: Profile) -> ConsolidationAnalysis:
    """Summarize which perspectives a profile has and what it still lacks"""
    parent_sources = profile.parent_assessments
    teacher_sources = profile.teacher_assessments

    completeness_score = min(
        100,
        (40 if parent_sources > 0 else 0)
        + (40 if teacher_sources > 0 else 0)
        + profile.total_assessments * 5
    )
    level = confidence_level(profile.confidence_percentage)

    missing_contexts = []
    if parent_sources == 0:
        missing_contexts.append("parent_home")
    if teacher_sources == 0:
        missing_contexts.append("teacher_classroom")

    recommendations = []
    if missing_contexts:
        recommendations.append(f"Add {' and '.join(missing_contexts)} assessment(s)")
    if completeness_score < 80:
        recommendations.append("Consider additional assessment perspectives")
    if level == "low":
        recommendations.append("Profile would benefit from more data sources")

    return ConsolidationAnalysis(
        completeness_score=completeness_score,
        confidence_level=level,
        data_sources=[
            {"type": "parent", "count": parent_sources},
            {"type": "teacher", "count": teacher_sources},
        ],
        missing_contexts=missing_contexts,
        strengths=list(profile.strengths),
        recommendations=recommendations,
    )


def consolidation_recommendations(analysis: ConsolidationAnalysis) -> List[str]:
    recommendations = []
    if analysis.confidence_level == "low":
        recommendations.append("Add more assessment perspectives to increase profile confidence")
    if "parent_home" in analysis.missing_contexts:
        recommendations.append("Parent assessment would add valuable home behavior insights")
    if "teacher_classroom" in analysis.missing_contexts:
        recommendations.append("Teacher assessment would add professional classroom observations")
    if analysis.completeness_score < 70:
        recommendations.append("Profile is still developing - additional assessments recommended")
    return recommendations


def next_assessment_recommendations(profile: Profile) -> List[str]:
    """What to collect next for this profile"""
    recommendations = []
    if profile.parent_assessments == 0:
        recommendations.append("Consider adding a parent assessment for home behavior insights")
    if profile.teacher_assessments == 0:
        recommendations.append("Consider adding a teacher assessment for classroom behavior insights")
    if profile.total_assessments == 1:
        recommendations.append("Additional assessments will increase profile confidence and accuracy")
    if profile.completeness_percentage < 80:
        recommendations.append("Complete assessment or add context-specific assessments for fuller profile")
    return recommendations


def contextual_recommendations(profile: Profile) -> Dict[str, Any]:
    """Home, classroom and general suggestions keyed off the top strength and growth area"""
    strengths, growth_areas = strengths_and_growth(profile.consolidated_scores)
    strength = strengths[0] if strengths else None
    growth = growth_areas[0] if growth_areas else None

    return {
        "home_activities": [
            f"Leverage {strength or 'their interests'} through engaging home activities",
            f"Support {growth or 'development'} with low-pressure home practice",
            "Create consistent learning routines that match their learning style",
        ],
        "classroom_strategies": [
            f"Utilize {strength or 'their strengths'} in group activities and projects",
            f"Provide scaffolding for {growth or 'growing skills'} in classroom settings",
            "Consider seating and grouping that supports their learning profile",
        ],
        "general_support": [
            "Celebrate progress and effort over perfection",
            "Provide multiple ways to demonstrate understanding",
            "Maintain open communication between home and school",
        ],
    }

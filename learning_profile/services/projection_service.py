"""
Context-specific rendering of consolidated profiles for parents, teachers and summaries
"""

from typing import Any, Dict, List, Optional

from learning_profile.models.database import Profile
from learning_profile.services.scoring_service import round_scores
from learning_profile.utils.constants import (
    ERROR_MESSAGES,
    GROWTH_THRESHOLD,
    STRENGTH_THRESHOLD,
    ViewContext,
)
from learning_profile.utils.error_handler import ValidationError


HOME_SUPPORT = {
    "Communication": "At home, ask open-ended questions at dinner and give your child time to explain their ideas to the family.",
    "Collaboration": "Play cooperative family board games where everyone works toward a shared goal.",
    "Content": "Explore a topic your child is curious about together at home through books, videos and short outings.",
    "Critical Thinking": "Try simple puzzles and 'what would happen if' questions during everyday family routines.",
    "Creative Innovation": "Set up a creative corner at home with open-ended materials and let your child build without instructions.",
    "Confidence": "Celebrate effort at home and give your child small family jobs they can complete on their own.",
    "Literacy": "Read together every day at home and let your child retell the story in their own words.",
    "Math": "Count, measure and compare while cooking or shopping as a family to make numbers part of daily life.",
}

HOME_STRENGTH = {
    "Communication": "Invite your child to tell family stories or lead a family show-and-tell to keep their voice growing.",
    "Collaboration": "Give your child chances to help siblings or friends with family projects at home.",
    "Content": "Feed their love of learning with library visits and family conversations about new facts.",
    "Critical Thinking": "Let your child help solve real family problems, like planning a trip or fixing a schedule.",
    "Creative Innovation": "Encourage creative projects at home such as art, building or inventing games for the family.",
    "Confidence": "Let your child take the lead on a family activity or teach a relative something new.",
    "Literacy": "Encourage your child to write notes, lists or stories for the family.",
    "Math": "Challenge your child with creative number games and let them keep score during family game night.",
}

CLASSROOM_SUPPORT = {
    "Communication": "Provide structured speaking opportunities with sentence starters and extra wait time as communication support.",
    "Collaboration": "Use scaffolding for group work with clear roles in small, supportive partner groupings.",
    "Content": "Pre-teach key vocabulary and connect new content to prior knowledge as scaffolding.",
    "Critical Thinking": "Model thinking aloud and provide graphic organizers as scaffolding for reasoning tasks.",
    "Creative Innovation": "Offer open-ended choice boards with examples to support creative risk-taking.",
    "Confidence": "Provide early success opportunities and specific praise as targeted support for participation.",
    "Literacy": "Plan small-group literacy intervention with guided reading and phonics practice.",
    "Math": "Use manipulatives and visual models in small-group math intervention sessions.",
}

CLASSROOM_STRENGTH = {
    "Communication": "Leverage strong communication by assigning discussion leader or presenter roles.",
    "Collaboration": "Leverage collaboration skills by pairing the student as a peer helper in group projects.",
    "Content": "Leverage content knowledge with extension tasks and independent research projects.",
    "Critical Thinking": "Leverage critical thinking with open-ended problems and debate activities.",
    "Creative Innovation": "Leverage creativity through project-based learning and design challenges.",
    "Confidence": "Leverage confidence by offering leadership roles in classroom routines.",
    "Literacy": "Leverage literacy strengths with advanced texts and peer reading partnerships.",
    "Math": "Leverage math strengths with enrichment problems and math center leadership.",
}

GENERAL_TIPS = {
    ViewContext.PARENT: "Keep learning at home playful and consistent, and share what you notice with your child's teacher.",
    ViewContext.TEACHER: "Share classroom observations with the family and revisit this profile after the next assessment.",
}

TEXT_BANKS = {
    ViewContext.PARENT: (HOME_SUPPORT, HOME_STRENGTH),
    ViewContext.TEACHER: (CLASSROOM_SUPPORT, CLASSROOM_STRENGTH),
}


def parse_context(context: Optional[str]) -> ViewContext:
    """Resolve a context name; missing means consolidated"""
    if not context:
        return ViewContext.CONSOLIDATED
    try:
        return ViewContext(context.strip().lower())
    except ValueError:
        raise ValidationError(
            ERROR_MESSAGES["INVALID_CONTEXT"].format(context=context),
            details={"allowed": [c.value for c in ViewContext]}
        )


def recommendations_for(scores: Dict[str, Optional[float]], context: ViewContext) -> List[str]:
    """
    Deterministic recommendation list for a viewer.

    Growth areas (below 3.0) come first, lowest score first, then strengths
    (4.0 and above), highest first. Ties keep category order. A general tip
    always closes the list.
    """
    support_bank, strength_bank = TEXT_BANKS[context]
    present = [(category, value) for category, value in scores.items() if value is not None]

    growth = sorted((item for item in present if item[1] < GROWTH_THRESHOLD), key=lambda item: item[1])
    strong = sorted((item for item in present if item[1] >= STRENGTH_THRESHOLD), key=lambda item: -item[1])

    recommendations = [support_bank[category] for category, _ in growth if category in support_bank]
    recommendations += [strength_bank[category] for category, _ in strong if category in strength_bank]
    recommendations.append(GENERAL_TIPS[context])
    return recommendations


class ContextualViewProjector:
    """Render a profile for a particular viewer"""

    def project(self, profile: Profile, context: Optional[str] = None) -> Dict[str, Any]:
        view = parse_context(context)
        scores = round_scores(profile.consolidated_scores)

        projected: Dict[str, Any] = {
            "id": profile.id,
            "child_name": profile.child_name,
            "grade_level": profile.grade_level,
            "age_group": profile.age_group,
            "precise_age_months": profile.precise_age_months,
            "classroom_id": profile.classroom_id,
            "personality_label": profile.personality_label,
            "consolidated_scores": scores,
            "confidence_percentage": profile.confidence_percentage,
            "completeness_percentage": profile.completeness_percentage,
            "total_assessments": profile.total_assessments,
            "parent_assessments": profile.parent_assessments,
            "teacher_assessments": profile.teacher_assessments,
            "strengths": list(profile.strengths),
            "growth_areas": list(profile.growth_areas),
            "sharing_token": profile.sharing_token,
            "scoring_version": "CLP 2.0",
            "view_context": view.value,
            "created_at": profile.created_at.isoformat(),
            "updated_at": profile.updated_at.isoformat(),
        }

        if view == ViewContext.CONSOLIDATED:
            projected["recommendations"] = []
            projected["assessment_counts"] = {
                "parent": profile.parent_assessments,
                "teacher": profile.teacher_assessments,
                "total": profile.total_assessments,
            }
        else:
            projected["recommendations"] = recommendations_for(profile.consolidated_scores, view)
        return projected


# Global projector instance
view_projector = ContextualViewProjector()

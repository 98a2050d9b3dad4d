import pytest

from learning_profile.models.database import Profile
from learning_profile.services.consolidation_service import recompute_profile
from learning_profile.services.projection_service import (
    ContextualViewProjector,
    parse_context,
    recommendations_for,
)
from learning_profile.utils.constants import ViewContext
from learning_profile.utils.error_handler import ValidationError

from conftest import make_record

projector = ContextualViewProjector()


@pytest.fixture
def profile():
    responses = {slot: 3 for slot in range(1, 25)}
    # Math low, Creative Innovation high
    responses.update({13: 5, 14: 5, 15: 4, 22: 2, 23: 2, 24: 1})
    parent = make_record("general", responses=responses)
    teacher = make_record("teacher_classroom")
    return recompute_profile(Profile(child_name="Ava"), [parent, teacher])


def test_missing_context_means_consolidated():
    assert parse_context(None) is ViewContext.CONSOLIDATED
    assert parse_context("") is ViewContext.CONSOLIDATED
    assert parse_context(" Teacher ") is ViewContext.TEACHER


def test_unknown_context_is_rejected(profile):
    with pytest.raises(ValidationError, match="invalid context: principal"):
        projector.project(profile, "principal")


def test_parent_view_speaks_to_home(profile):
    view = projector.project(profile, "parent")

    assert view["view_context"] == "parent"
    assert view["recommendations"]
    assert any("home" in text.lower() or "family" in text.lower() for text in view["recommendations"])


def test_teacher_view_speaks_to_classroom(profile):
    view = projector.project(profile, "teacher")
    keywords = ("support", "scaffolding", "intervention", "leverage")

    assert view["view_context"] == "teacher"
    assert any(word in text.lower() for text in view["recommendations"] for word in keywords)


def test_growth_areas_lead_recommendations(profile):
    recommendations = projector.project(profile, "teacher")["recommendations"]

    assert "math" in recommendations[0].lower()
    assert "creativ" in recommendations[1].lower()


def test_consolidated_view_has_counts_and_no_recommendations(profile):
    view = projector.project(profile)

    assert view["view_context"] == "consolidated"
    assert view["recommendations"] == []
    assert view["assessment_counts"] == {"parent": 1, "teacher": 1, "total": 2}
    assert view["scoring_version"] == "CLP 2.0"


def test_scores_are_rounded_for_display(profile):
    view = projector.project(profile, "parent")

    assert view["consolidated_scores"]["Creative Innovation"] == round(
        profile.consolidated_scores["Creative Innovation"], 1
    )


def test_projection_is_deterministic(profile):
    assert projector.project(profile, "parent") == projector.project(profile, "parent")
    assert projector.project(profile, "teacher") == projector.project(profile, "teacher")


def test_recommendations_always_end_with_general_tip():
    scores = {"Communication": 3.5, "Math": None}

    assert len(recommendations_for(scores, ViewContext.PARENT)) == 1
    assert len(recommendations_for(scores, ViewContext.TEACHER)) == 1

import pytest

from learning_profile.services.consolidation_service import (
    ProfileConsolidator,
    classroom_from_submission,
    contribution_summary,
)
from learning_profile.utils.constants import SPARSE_DATA_WARNING
from learning_profile.utils.error_handler import ConflictError, NotFoundError, ValidationError

from conftest import PARENT_SLOTS, answers, make_record


@pytest.fixture
def consolidator(store):
    return ProfileConsolidator(store)


def _submit(consolidator, payload, profile_id=None):
    return consolidator.submit_assessment(payload["child_name"], payload, profile_id)


def test_first_submission_creates_profile(consolidator, parent_payload):
    result = _submit(consolidator, parent_payload)

    assert result.is_new_profile is True
    assert result.profile.version == 1
    assert result.profile.total_assessments == 1
    assert result.profile.parent_assessments == 1
    assert result.profile.teacher_assessments == 0
    assert result.profile.sharing_token
    assert result.record.profile_id == result.profile.id
    assert result.warnings == []


def test_single_parent_assessment_has_moderate_confidence(consolidator, parent_payload):
    profile = _submit(consolidator, parent_payload).profile

    assert profile.completeness_percentage == pytest.approx(50.0)
    assert 25 <= profile.confidence_percentage <= 50


def test_adding_teacher_perspective_raises_confidence(consolidator, parent_payload, teacher_payload):
    first = _submit(consolidator, parent_payload).profile
    second = _submit(consolidator, teacher_payload, first.id)

    assert second.is_new_profile is False
    assert second.profile.id == first.id
    assert second.profile.confidence_percentage > 60
    assert second.profile.confidence_percentage > first.confidence_percentage
    assert second.profile.completeness_percentage > first.completeness_percentage


def test_third_consistent_assessment_pushes_confidence_higher(consolidator, parent_payload, teacher_payload):
    profile = _submit(consolidator, parent_payload).profile
    profile = _submit(consolidator, teacher_payload, profile.id).profile
    profile = _submit(consolidator, parent_payload, profile.id).profile

    assert profile.total_assessments == 3
    assert profile.confidence_percentage > 75


def test_counts_and_metrics_stay_consistent(consolidator, parent_payload, teacher_payload):
    profile_id = None
    completeness_seen = []

    for payload in (parent_payload, teacher_payload, parent_payload, teacher_payload):
        profile = _submit(consolidator, payload, profile_id).profile
        profile_id = profile.id
        completeness_seen.append(profile.completeness_percentage)

        assert profile.parent_assessments + profile.teacher_assessments == profile.total_assessments
        assert profile.total_assessments == len(profile.assessment_records)
        assert 0 <= profile.completeness_percentage <= 100
        assert 0 <= profile.confidence_percentage <= 100

    assert completeness_seen == sorted(completeness_seen)


def test_low_math_answers_stay_below_three(consolidator, parent_payload):
    parent_payload["responses"] = {**answers(PARENT_SLOTS, 4), "22": 2, "23": 3, "24": 2}

    profile = _submit(consolidator, parent_payload).profile

    assert profile.consolidated_scores["Math"] < 3.0
    assert "Math" in profile.growth_areas


def test_high_creative_answers_stay_above_four(consolidator, parent_payload):
    parent_payload["responses"] = {**answers(PARENT_SLOTS, 3), "13": 5, "14": 4}

    profile = _submit(consolidator, parent_payload).profile

    assert profile.consolidated_scores["Creative Innovation"] > 4.0
    assert "Creative Innovation" in profile.strengths


def test_single_answer_is_flagged_as_sparse(consolidator, parent_payload):
    parent_payload["responses"] = {"1": 4}

    result = _submit(consolidator, parent_payload)

    assert result.profile.confidence_percentage < 30
    assert SPARSE_DATA_WARNING in result.warnings
    assert result.profile.consolidated_scores["Communication"] == 4.0
    assert result.profile.consolidated_scores["Math"] is None


def test_unknown_profile_is_not_found(consolidator, parent_payload):
    with pytest.raises(NotFoundError):
        _submit(consolidator, parent_payload, "does-not-exist")


def test_invalid_submission_writes_nothing(consolidator, store, parent_payload):
    parent_payload["responses"] = {"1": 9}

    with pytest.raises(ValidationError):
        _submit(consolidator, parent_payload)

    assert store.health()["profiles"] == 0


def test_stale_write_is_rejected(consolidator, store, parent_payload, teacher_payload):
    profile = _submit(consolidator, parent_payload).profile
    stale = store.get_profile(profile.id)

    _submit(consolidator, teacher_payload, profile.id)

    with pytest.raises(ConflictError):
        store.save_profile(stale, make_record("general"), stale.version)

    assert store.get_profile(profile.id).total_assessments == 2


def test_classroom_is_taken_from_school_context(consolidator, parent_payload):
    parent_payload["school_context"] = {"classroom_id": "room-7"}

    profile = _submit(consolidator, parent_payload).profile

    assert profile.classroom_id == "room-7"


def test_classroom_from_submission_prefers_explicit_id():
    assert classroom_from_submission({"classroom_id": "a", "school_context": {"classroom": "b"}}) == "a"
    assert classroom_from_submission({"school_context": {"classroom": "b"}}) == "b"
    assert classroom_from_submission({}) is None


def test_precise_age_sets_age_group(consolidator, parent_payload):
    del parent_payload["age_group"]
    parent_payload["precise_age_months"] = 50

    profile = _submit(consolidator, parent_payload).profile

    assert profile.age_group == "4-5"
    assert profile.precise_age_months == 50


def test_contribution_summary_lists_covered_categories():
    record = make_record("teacher_classroom")

    summary = contribution_summary(record)

    assert summary.confidence_boost == 40
    assert summary.weight == pytest.approx(0.8)
    assert summary.new_confidence is None
    assert summary.categories_covered == [
        "Communication", "Collaboration", "Content", "Critical Thinking", "Literacy", "Math"
    ]


def test_age_group_follows_new_precise_age(consolidator, parent_payload, teacher_payload):
    profile = _submit(consolidator, parent_payload).profile
    assert profile.age_group == "5+"

    del teacher_payload["age_group"]
    teacher_payload["precise_age_months"] = 30
    profile = _submit(consolidator, teacher_payload, profile.id).profile

    assert profile.precise_age_months == 30
    assert profile.age_group == "3-4"


def test_age_group_kept_when_submission_has_no_age(consolidator, parent_payload, teacher_payload):
    parent_payload["age_group"] = "4-5"
    profile = _submit(consolidator, parent_payload).profile

    del teacher_payload["age_group"]
    profile = _submit(consolidator, teacher_payload, profile.id).profile

    assert profile.age_group == "4-5"

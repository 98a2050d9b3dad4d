"""
Progressive profile consolidation: append one assessment and recompute the profile
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from learning_profile.models.database import AssessmentRecord, Profile
from learning_profile.models.schemas import ContributionSummary
from learning_profile.services.data_source import DataSource
from learning_profile.services.scoring_service import (
    ConfidenceParameters,
    ConsolidationWeights,
    completeness,
    confidence,
    consolidate,
    personality_label,
    record_category_scores,
    strengths_and_growth,
)
from learning_profile.utils.constants import (
    RespondentType,
    SkillCategory,
    QUIZ_CONFIDENCE_BOOST,
)
from learning_profile.utils.error_handler import NotFoundError
from learning_profile.utils.helpers import generate_sharing_token, utcnow
from learning_profile.utils.logger import logger
from learning_profile.utils.validation import AssessmentValidator, assessment_validator


class SubmissionResult(NamedTuple):
    profile: Profile
    record: AssessmentRecord
    is_new_profile: bool
    warnings: List[str]


def classroom_from_submission(submission: Dict[str, Any]) -> Optional[str]:
    """Classroom id given directly or inside the school context"""
    if submission.get("classroom_id"):
        return str(submission["classroom_id"])
    school_context = submission.get("school_context") or {}
    classroom = school_context.get("classroom_id") or school_context.get("classroom")
    return str(classroom) if classroom else None


def recompute_profile(
    profile: Profile,
    records: Sequence[AssessmentRecord],
    weights: Optional[ConsolidationWeights] = None,
    confidence_params: Optional[ConfidenceParameters] = None
) -> Profile:
    """Return a copy of ``profile`` whose derived fields reflect ``records``"""
    scores = consolidate(records, weights)
    completeness_percentage = completeness(records)
    strengths, growth_areas = strengths_and_growth(scores)
    parent_count = sum(1 for r in records if r.respondent_type == RespondentType.PARENT)
    teacher_count = sum(1 for r in records if r.respondent_type == RespondentType.TEACHER)

    return profile.model_copy(update={
        "assessment_records": list(records),
        "consolidated_scores": scores,
        "completeness_percentage": round(completeness_percentage, 2),
        "confidence_percentage": round(confidence(records, completeness_percentage, confidence_params), 2),
        "total_assessments": len(records),
        "parent_assessments": parent_count,
        "teacher_assessments": teacher_count,
        "personality_label": personality_label(scores),
        "strengths": strengths,
        "growth_areas": growth_areas,
        "updated_at": utcnow(),
    })


def contribution_summary(
    record: AssessmentRecord,
    weights: Optional[ConsolidationWeights] = None
) -> ContributionSummary:
    """Weight, confidence boost and categories a single record contributed"""
    weights = weights or ConsolidationWeights.from_settings()
    covered = set(record_category_scores(record.responses))
    return ContributionSummary(
        weight=weights.for_quiz(record.quiz_type),
        confidence_boost=QUIZ_CONFIDENCE_BOOST[record.quiz_type],
        categories_covered=[c.value for c in SkillCategory if c.value in covered],
    )


class ProfileConsolidator:
    """Accepts assessments and keeps each child's consolidated profile current"""

    def __init__(
        self,
        data_source: DataSource,
        validator: Optional[AssessmentValidator] = None,
        weights: Optional[ConsolidationWeights] = None,
        confidence_params: Optional[ConfidenceParameters] = None
    ):
        self.data_source = data_source
        self.validator = validator or assessment_validator
        self.weights = weights or ConsolidationWeights.from_settings()
        self.confidence_params = confidence_params or ConfidenceParameters.from_settings()

    def get_profile(self, profile_id: str, fresh: bool = False) -> Profile:
        profile = self.data_source.get_profile(profile_id, fresh=fresh)
        if profile is None:
            raise NotFoundError("Profile", profile_id)
        return profile

    def get_profile_by_child_name(self, child_name: str) -> Profile:
        profile = self.data_source.find_profile_by_child_name(child_name)
        if profile is None:
            raise NotFoundError("Profile", child_name)
        return profile

    def get_shared_profile(self, token: str) -> Profile:
        profile = self.data_source.get_profile_by_share_token(token)
        if profile is None:
            raise NotFoundError("Shared profile", token)
        return profile

    def submit_assessment(
        self,
        child_name: Optional[str],
        submission: Dict[str, Any],
        existing_profile_id: Optional[str] = None
    ) -> SubmissionResult:
        """
        Validate a submission, append it to its profile and persist both.

        Args:
            child_name: Child the assessment is about
            submission: Raw submission fields (quiz_type, respondent_type, responses, ...)
            existing_profile_id: Profile to extend; a new profile is created when omitted

        Returns:
            SubmissionResult with the stored profile, the new record, whether the
            profile was created and any non-fatal warnings

        Raises:
            ValidationError: Submission is malformed (nothing is written)
            NotFoundError: existing_profile_id does not exist
            ConflictError: The profile changed while this submission was processed
        """
        fields, warnings = self.validator.validate({**submission, "child_name": child_name})

        if existing_profile_id:
            profile = self.get_profile(existing_profile_id, fresh=True)
            is_new_profile = False
            if not profile.classroom_id:
                profile.classroom_id = classroom_from_submission(submission)
            if fields["precise_age_months"] is not None:
                profile.precise_age_months = fields["precise_age_months"]
            if submission.get("age_group") or fields["precise_age_months"] is not None:
                profile.age_group = fields["age_group"]
        else:
            profile = Profile(
                child_name=fields["child_name"],
                grade_level=submission.get("grade_level"),
                age_group=fields["age_group"],
                precise_age_months=fields["precise_age_months"],
                classroom_id=classroom_from_submission(submission),
                sharing_token=generate_sharing_token(),
            )
            is_new_profile = True

        expected_version = profile.version
        record = AssessmentRecord(
            profile_id=profile.id,
            scores={k: round(v, 2) for k, v in record_category_scores(fields["responses"]).items()},
            **fields
        )

        updated = recompute_profile(
            profile,
            [*profile.assessment_records, record],
            self.weights,
            self.confidence_params
        )
        stored = self.data_source.save_profile(updated, record, expected_version)

        logger.info(
            f"Consolidated {record.quiz_type.value} assessment into profile "
            f"({stored.total_assessments} total, confidence {stored.confidence_percentage})",
            extra={"profile_id": stored.id}
        )
        return SubmissionResult(stored, record, is_new_profile, warnings)

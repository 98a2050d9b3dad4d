"""
Assessment submission validation
"""

from typing import Dict, Any, List, Optional, Tuple

from learning_profile.utils.constants import (
    QuizType,
    RespondentType,
    AGE_GROUPS,
    DEFAULT_AGE_GROUP,
    ERROR_MESSAGES,
    MIN_SCORE,
    MAX_SCORE,
    PREFERENCE_QUESTION_MAP,
    QUIZ_QUESTION_SLOTS,
    SKILL_QUESTION_MAP,
    SPARSE_DATA_WARNING,
    TOTAL_QUESTION_SLOTS,
)
from learning_profile.utils.error_handler import ValidationError


def age_group_from_months(months: int) -> str:
    """Map a precise age in months onto the scoring age bracket"""
    if months < 42:
        return "3-4"
    if months < 60:
        return "4-5"
    return "5+"


def _coerce_slot(key: Any) -> int:
    try:
        slot = int(str(key).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"invalid question slot: {key}", details={"slot": str(key)})
    if not 1 <= slot <= TOTAL_QUESTION_SLOTS:
        raise ValidationError(f"invalid question slot: {key}", details={"slot": str(key)})
    return slot


def _coerce_score(value: Any) -> Optional[int]:
    """Return the Likert value, or None when the answer is not numeric at all"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


class AssessmentValidator:
    """Structural and semantic checks run before any consolidation work"""

    @staticmethod
    def validate_required(payload: Dict[str, Any]) -> None:
        child_name = payload.get("child_name")
        if (
            not isinstance(child_name, str)
            or not child_name.strip()
            or not payload.get("quiz_type")
            or not payload.get("respondent_type")
            or not payload.get("responses")
        ):
            raise ValidationError(ERROR_MESSAGES["MISSING_FIELDS"])

    @staticmethod
    def validate_enums(payload: Dict[str, Any]) -> Tuple[QuizType, RespondentType]:
        quiz_type = payload["quiz_type"]
        if quiz_type not in {q.value for q in QuizType}:
            raise ValidationError(
                ERROR_MESSAGES["INVALID_QUIZ_TYPE"].format(quiz_type=quiz_type),
                details={"allowed": [q.value for q in QuizType]}
            )

        respondent_type = payload["respondent_type"]
        if respondent_type not in {r.value for r in RespondentType}:
            raise ValidationError(
                ERROR_MESSAGES["INVALID_RESPONDENT_TYPE"].format(respondent_type=respondent_type),
                details={"allowed": [r.value for r in RespondentType]}
            )

        return QuizType(quiz_type), RespondentType(respondent_type)

    @staticmethod
    def resolve_age_group(age_group: Optional[str], precise_age_months: Optional[int]) -> str:
        if age_group:
            if age_group not in AGE_GROUPS:
                raise ValidationError(
                    ERROR_MESSAGES["INVALID_AGE_GROUP"].format(age_group=age_group),
                    details={"allowed": list(AGE_GROUPS)}
                )
            return age_group
        if precise_age_months is not None:
            return age_group_from_months(precise_age_months)
        return DEFAULT_AGE_GROUP

    @staticmethod
    def split_responses(raw: Dict[Any, Any]) -> Tuple[Dict[int, int], Dict[str, Any]]:
        """
        Separate scored Likert answers from categorical preference answers.

        Numeric answers keep their slot. Non-numeric answers are only legal
        on the preference slots and are stored under the preference name.
        """
        responses: Dict[int, int] = {}
        preferences: Dict[str, Any] = {}

        for key, value in raw.items():
            slot = _coerce_slot(key)
            score = _coerce_score(value)

            if score is None:
                if slot in PREFERENCE_QUESTION_MAP:
                    preferences[PREFERENCE_QUESTION_MAP[slot].value] = value
                    continue
                raise ValidationError(
                    f"invalid response for question {slot}: expected an integer between {MIN_SCORE} and {MAX_SCORE}",
                    details={"slot": slot}
                )

            if not MIN_SCORE <= score <= MAX_SCORE:
                raise ValidationError(
                    f"invalid response for question {slot}: expected an integer between {MIN_SCORE} and {MAX_SCORE}",
                    details={"slot": slot, "value": score}
                )
            responses[slot] = score

        return responses, preferences

    @staticmethod
    def sparse_data_warnings(quiz_type: QuizType, responses: Dict[int, int]) -> List[str]:
        expected = len(QUIZ_QUESTION_SLOTS[quiz_type])
        answered = sum(1 for slot in responses if slot in SKILL_QUESTION_MAP)
        if answered * 2 < expected:
            return [SPARSE_DATA_WARNING]
        return []

    def validate(self, payload: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        """
        Validate a raw submission.

        Args:
            payload: Submission fields as received from the client

        Returns:
            Tuple of (normalized record fields, non-fatal warnings)

        Raises:
            ValidationError: If any required field is missing or malformed
        """
        self.validate_required(payload)
        quiz_type, respondent_type = self.validate_enums(payload)

        age_group = self.resolve_age_group(
            payload.get("age_group"),
            payload.get("precise_age_months")
        )

        if not isinstance(payload["responses"], dict):
            raise ValidationError("responses must be an object keyed by question number")
        responses, moved_preferences = self.split_responses(payload["responses"])
        if not any(slot in SKILL_QUESTION_MAP for slot in responses):
            raise ValidationError(ERROR_MESSAGES["NO_SCORED_RESPONSES"])

        preferences = dict(payload.get("preferences") or {})
        preferences.update(moved_preferences)

        record_fields = {
            "child_name": payload["child_name"].strip(),
            "quiz_type": quiz_type,
            "respondent_type": respondent_type,
            "respondent_name": payload.get("respondent_name"),
            "respondent_id": payload.get("respondent_id"),
            "age_group": age_group,
            "precise_age_months": payload.get("precise_age_months"),
            "responses": responses,
            "preferences": preferences,
            "context": dict(payload.get("school_context") or {}),
            "use_clp2_scoring": payload.get("use_clp2_scoring") is not False,
        }

        return record_fields, self.sparse_data_warnings(quiz_type, responses)


# Global validator instance
assessment_validator = AssessmentValidator()

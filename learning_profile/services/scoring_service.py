"""
Pure scoring functions used to consolidate assessment records into a profile.

Nothing in this module touches storage. Every function takes the full list of
records for a profile and recomputes its result from scratch, so the same
records always give the same scores.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple
from pydantic import BaseModel, ConfigDict

from learning_profile.config import settings
from learning_profile.models.database import AssessmentRecord
from learning_profile.utils.constants import (
    QuizType,
    RespondentType,
    SkillCategory,
    DEFAULT_PERSONALITY_LABEL,
    GROWTH_THRESHOLD,
    MAX_SCORE,
    MIN_SCORE,
    PERSONALITY_LABELS,
    PREFERENCE_SLOT_BY_NAME,
    SKILL_QUESTION_MAP,
    STRENGTH_THRESHOLD,
    TOTAL_QUESTION_SLOTS,
)


class ConsolidationWeights(BaseModel):
    """Tunable weights for merging records"""
    model_config = ConfigDict(frozen=True)

    parent_home: float = 0.6
    teacher_classroom: float = 0.8
    general: float = 1.0
    repeat_decay: float = 0.75

    @classmethod
    def from_settings(cls) -> "ConsolidationWeights":
        return cls(
            parent_home=settings.QUIZ_WEIGHT_PARENT_HOME,
            teacher_classroom=settings.QUIZ_WEIGHT_TEACHER_CLASSROOM,
            general=settings.QUIZ_WEIGHT_GENERAL,
            repeat_decay=settings.REPEAT_DECAY,
        )

    def for_quiz(self, quiz_type: QuizType) -> float:
        return getattr(self, quiz_type.value)


class ConfidenceParameters(BaseModel):
    """Tunable parameters of the confidence model"""
    model_config = ConfigDict(frozen=True)

    volume_ceiling: float = 55.0
    volume_decay: float = 0.6
    diversity_bonus: float = 20.0
    completeness_factor: float = 0.3
    consistency_bonus: float = 15.0

    @classmethod
    def from_settings(cls) -> "ConfidenceParameters":
        return cls(
            volume_ceiling=settings.CONFIDENCE_VOLUME_CEILING,
            volume_decay=settings.CONFIDENCE_VOLUME_DECAY,
            diversity_bonus=settings.CONFIDENCE_DIVERSITY_BONUS,
            completeness_factor=settings.CONFIDENCE_COMPLETENESS_FACTOR,
            consistency_bonus=settings.CONFIDENCE_CONSISTENCY_BONUS,
        )


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def record_category_scores(responses: Dict[int, int]) -> Dict[str, float]:
    """Mean Likert score per category for a single record (answered categories only)"""
    buckets: Dict[str, List[int]] = {}
    for slot, score in responses.items():
        category = SKILL_QUESTION_MAP.get(slot)
        if category is not None:
            buckets.setdefault(category.value, []).append(score)
    return {category: sum(values) / len(values) for category, values in buckets.items()}


def record_weights(
    records: Sequence[AssessmentRecord],
    weights: Optional[ConsolidationWeights] = None
) -> List[float]:
    """
    Per-record weight: the quiz-type weight, decayed for every earlier record
    of the same quiz type.
    """
    weights = weights or ConsolidationWeights.from_settings()
    seen: Dict[QuizType, int] = {}
    result = []
    for record in records:
        repeats = seen.get(record.quiz_type, 0)
        result.append(weights.for_quiz(record.quiz_type) * (weights.repeat_decay ** repeats))
        seen[record.quiz_type] = repeats + 1
    return result


def consolidate(
    records: Sequence[AssessmentRecord],
    weights: Optional[ConsolidationWeights] = None
) -> Dict[str, Optional[float]]:
    """
    Merge every record into one score per category.

    Each scored response counts once, carrying its record's weight, so a
    record with more answers in a category pulls the mean further. Categories
    without any evidence are None. Values keep full precision.

    Args:
        records: All records of the profile, oldest first
        weights: Weight set (defaults to configured weights)

    Returns:
        Mapping of every skill category to a float in [1, 5] or None
    """
    totals: Dict[str, float] = {category.value: 0.0 for category in SkillCategory}
    mass: Dict[str, float] = {category.value: 0.0 for category in SkillCategory}

    for record, weight in zip(records, record_weights(records, weights)):
        for slot, score in record.responses.items():
            category = SKILL_QUESTION_MAP.get(slot)
            if category is None:
                continue
            totals[category.value] += weight * score
            mass[category.value] += weight

    scores: Dict[str, Optional[float]] = {}
    for category in SkillCategory:
        key = category.value
        if mass[key] > 0:
            scores[key] = _clamp(totals[key] / mass[key], MIN_SCORE, MAX_SCORE)
        else:
            scores[key] = None
    return scores


def answered_slots(record: AssessmentRecord) -> Set[int]:
    """Question slots a record answered, preference answers included"""
    slots = set(record.responses.keys())
    for name in record.preferences:
        slot = PREFERENCE_SLOT_BY_NAME.get(name)
        if slot is not None:
            slots.add(slot)
    return slots


def completeness(records: Sequence[AssessmentRecord]) -> float:
    """Percentage of the 28 question slots answered across all records"""
    covered: Set[int] = set()
    for record in records:
        covered |= answered_slots(record)
    return min(100.0, len(covered) / TOTAL_QUESTION_SLOTS * 100.0)


def agreement(records: Sequence[AssessmentRecord]) -> float:
    """
    How closely records agree, in [0, 1].

    Uses categories seen by at least two records; the spread of a category
    is max - min of the per-record means. Zero when nothing overlaps.
    """
    per_category: Dict[str, List[float]] = {}
    for record in records:
        for category, score in record_category_scores(record.responses).items():
            per_category.setdefault(category, []).append(score)

    spreads = [max(values) - min(values) for values in per_category.values() if len(values) >= 2]
    if not spreads:
        return 0.0
    mean_spread = sum(spreads) / len(spreads)
    return _clamp(1.0 - mean_spread / (MAX_SCORE - MIN_SCORE), 0.0, 1.0)


def confidence(
    records: Sequence[AssessmentRecord],
    completeness_percentage: float,
    params: Optional[ConfidenceParameters] = None
) -> float:
    """
    Confidence percentage from volume, respondent diversity, completeness
    and cross-record agreement. Clamped to [0, 100].
    """
    params = params or ConfidenceParameters.from_settings()
    if not records:
        return 0.0

    volume = params.volume_ceiling * (1 - params.volume_decay ** len(records))

    respondents = {record.respondent_type for record in records}
    diverse = RespondentType.PARENT in respondents and RespondentType.TEACHER in respondents
    diversity = params.diversity_bonus if diverse else 0.0

    coverage = params.completeness_factor * completeness_percentage
    consistency = params.consistency_bonus * agreement(records)

    return _clamp(volume + diversity + coverage + consistency, 0.0, 100.0)


def _ranked(scores: Dict[str, Optional[float]]) -> List[Tuple[str, float]]:
    """Scored categories, highest first; ties keep category order"""
    present = [(category, value) for category, value in scores.items() if value is not None]
    return sorted(present, key=lambda item: item[1], reverse=True)


def personality_label(scores: Dict[str, Optional[float]]) -> str:
    """Label derived from the two strongest categories"""
    ranked = _ranked(scores)
    if len(ranked) < 2:
        return DEFAULT_PERSONALITY_LABEL
    primary, secondary = ranked[0][0], ranked[1][0]
    return (
        PERSONALITY_LABELS.get((primary, secondary))
        or PERSONALITY_LABELS.get((secondary, primary))
        or DEFAULT_PERSONALITY_LABEL
    )


def strengths_and_growth(scores: Dict[str, Optional[float]]) -> Tuple[List[str], List[str]]:
    """
    Strengths are categories at or above 4.0, growth areas below 3.0.
    Without any strength, fall back to the top two and bottom two.
    """
    ranked = _ranked(scores)
    strengths = [category for category, value in ranked if value >= STRENGTH_THRESHOLD]
    growth = [category for category, value in reversed(ranked) if value < GROWTH_THRESHOLD]

    if not strengths:
        return [c for c, _ in ranked[:2]], [c for c, _ in ranked[-2:]]
    return strengths, growth


def round_scores(scores: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
    """Round scores to one decimal for display"""
    return {
        category: round(value, 1) if value is not None else None
        for category, value in scores.items()
    }

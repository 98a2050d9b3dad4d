"""
Classroom analytics: overview statistics and at-risk student analysis
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from learning_profile.models.database import Profile, RiskFactor
from learning_profile.models.schemas import AtRiskRequest
from learning_profile.services.data_source import DataSource
from learning_profile.services.scoring_service import round_scores
from learning_profile.utils.constants import (
    ERROR_MESSAGES,
    GROWTH_THRESHOLD,
    RISK_HIGH_THRESHOLD,
    RISK_MEDIUM_THRESHOLD,
    RiskTimeline,
    RiskType,
    Severity,
    SkillCategory,
)
from learning_profile.utils.error_handler import NotFoundError, ValidationError
from learning_profile.utils.helpers import utcnow
from learning_profile.utils.logger import logger

SEVERITY_WEIGHT = {Severity.HIGH: 3, Severity.MEDIUM: 2, Severity.LOW: 1}

CATEGORY_RISK_TYPE = {
    SkillCategory.COMMUNICATION.value: RiskType.SOCIAL_ISOLATION,
    SkillCategory.COLLABORATION.value: RiskType.SOCIAL_ISOLATION,
    SkillCategory.CONFIDENCE.value: RiskType.LOW_ENGAGEMENT,
    SkillCategory.CREATIVE_INNOVATION.value: RiskType.LEARNING_STYLE_MISMATCH,
    SkillCategory.CONTENT.value: RiskType.ACADEMIC_STRUGGLE,
    SkillCategory.CRITICAL_THINKING.value: RiskType.ACADEMIC_STRUGGLE,
    SkillCategory.LITERACY.value: RiskType.ACADEMIC_STRUGGLE,
    SkillCategory.MATH.value: RiskType.ACADEMIC_STRUGGLE,
}


def _action(action_id: str, action: str, timeline: str, resources: List[str],
            indicators: List[str], person: str = "teacher") -> Dict[str, Any]:
    return {
        "id": action_id,
        "action": action,
        "timeline": timeline,
        "resources_needed": resources,
        "success_indicators": indicators,
        "person_responsible": person,
    }


IMMEDIATE_ACTIONS = {
    RiskType.LEARNING_STYLE_MISMATCH: (
        "Implement learning style accommodations in next lesson", "1-2 days",
        ["Differentiated materials", "Alternative activity options"],
        ["Increased engagement", "Better task completion"]),
    RiskType.LOW_ENGAGEMENT: (
        "One-on-one check-in to understand barriers", "1 day",
        ["5-10 minutes of teacher time"],
        ["Student opens up about challenges", "Identifies specific needs"]),
    RiskType.SOCIAL_ISOLATION: (
        "Facilitate structured peer interaction", "1-2 days",
        ["Partner activity", "Social skills support"],
        ["Positive peer interaction", "Student participation"]),
    RiskType.ACADEMIC_STRUGGLE: (
        "Provide additional scaffolding for current concepts", "1-3 days",
        ["Simplified materials", "Visual aids", "Extra practice"],
        ["Improved understanding", "Confidence increase"]),
}

SHORT_TERM_STRATEGIES = {
    RiskType.LEARNING_STYLE_MISMATCH: (
        "Develop personalized learning approach based on style preferences", "1-2 weeks",
        ["Learning style resources", "Differentiated assignments"],
        ["Sustained engagement", "Improved performance"], "teacher"),
    RiskType.LOW_ENGAGEMENT: (
        "Implement choice-based learning opportunities", "2-3 weeks",
        ["Multiple activity options", "Student choice boards"],
        ["Increased initiative", "Better attendance"], "teacher"),
    RiskType.SOCIAL_ISOLATION: (
        "Structured social skills development program", "2-4 weeks",
        ["Social skills curriculum", "Peer buddy system"],
        ["Friendship formation", "Group participation"], "counselor"),
    RiskType.ACADEMIC_STRUGGLE: (
        "Intensive skill-building intervention", "3-4 weeks",
        ["Targeted materials", "Additional practice time"],
        ["Skill mastery", "Grade improvement"], "teacher"),
}

RISK_METRICS = {
    RiskType.LEARNING_STYLE_MISMATCH: ["Better performance on preferred activity types", "Reduced frustration with assignments"],
    RiskType.LOW_ENGAGEMENT: ["Voluntary participation in discussions", "Sustained attention during lessons"],
    RiskType.SOCIAL_ISOLATION: ["Initiates interactions with peers", "Participates in group activities"],
    RiskType.ACADEMIC_STRUGGLE: ["Improvement in specific skill areas", "Increased confidence in academic tasks"],
}

BASE_ESCALATION_TRIGGERS = [
    "No improvement after 2 weeks of targeted intervention",
    "Regression in key behavioral or academic areas",
    "New concerning behaviors or risk factors emerge",
    "Student expresses increased frustration or distress",
    "Parent reports concerns about home behavior",
]


def derived_risk_factors(profile: Profile) -> List[RiskFactor]:
    """
    Risk factors implied by low consolidated scores: below 2.5 is medium,
    below 2.0 is high. One factor per risk type, keeping the most severe.
    """
    by_type: Dict[RiskType, RiskFactor] = {}
    for category, score in profile.consolidated_scores.items():
        if score is None or score >= RISK_MEDIUM_THRESHOLD:
            continue
        risk_type = CATEGORY_RISK_TYPE[category]
        severity = Severity.HIGH if score < RISK_HIGH_THRESHOLD else Severity.MEDIUM
        existing = by_type.get(risk_type)
        if existing is not None and SEVERITY_WEIGHT[existing.severity] >= SEVERITY_WEIGHT[severity]:
            continue
        by_type[risk_type] = RiskFactor(
            id=f"derived-{profile.id}-{risk_type.value}",
            profile_id=profile.id,
            classroom_id=profile.classroom_id or "",
            risk_type=risk_type,
            severity=severity,
            description=f"{category} score of {score:.1f} is below the expected range",
            indicators=[f"Consolidated {category} score {score:.1f}"],
            timeline=RiskTimeline.IMMEDIATE if severity == Severity.HIGH else RiskTimeline.SHORT_TERM,
        )
    return list(by_type.values())


def merge_risk_factors(stored: List[RiskFactor], derived: List[RiskFactor]) -> List[RiskFactor]:
    """Stored factors win over score-derived ones of the same type"""
    stored_types = {factor.risk_type for factor in stored}
    return stored + [factor for factor in derived if factor.risk_type not in stored_types]


def overall_risk_level(factors: List[RiskFactor]) -> str:
    if any(f.severity == Severity.HIGH for f in factors):
        return "high"
    if any(f.severity == Severity.MEDIUM for f in factors):
        return "medium"
    return "low"


def intervention_priority(factors: List[RiskFactor]) -> int:
    """1-10 scale: severity points per factor plus one each for style mismatch and isolation"""
    priority = sum(SEVERITY_WEIGHT[f.severity] for f in factors)
    types = {f.risk_type for f in factors}
    if RiskType.LEARNING_STYLE_MISMATCH in types:
        priority += 1
    if RiskType.SOCIAL_ISOLATION in types:
        priority += 1
    return min(priority, 10)


def check_in_frequency(risk_level: str, factors: List[RiskFactor]) -> str:
    if risk_level == "high":
        return "daily"
    if risk_level == "medium":
        return "weekly"
    if any(f.timeline == RiskTimeline.IMMEDIATE for f in factors):
        return "daily"
    return "bi_weekly"


def next_review_days(severity: Severity, timeline: RiskTimeline) -> int:
    if severity == Severity.HIGH:
        return 7
    if timeline == RiskTimeline.IMMEDIATE:
        return 3
    return 14


def immediate_actions(factors: List[RiskFactor]) -> List[Dict[str, Any]]:
    actions = [
        _action(f"immediate-{f.id}", *IMMEDIATE_ACTIONS[f.risk_type])
        for f in factors if f.severity == Severity.HIGH
    ]
    return actions[:3]


def short_term_strategies(factors: List[RiskFactor]) -> List[Dict[str, Any]]:
    return [_action(f"short-term-{f.id}", *SHORT_TERM_STRATEGIES[f.risk_type]) for f in factors]


def long_term_support(student_id: str, factors: List[RiskFactor]) -> List[Dict[str, Any]]:
    support = [
        _action(f"long-term-monitoring-{student_id}", "Ongoing progress monitoring and data collection",
                "Ongoing", ["Progress tracking tools", "Regular assessment"],
                ["Sustained improvement", "Data-driven decisions"]),
        _action(f"long-term-parent-{student_id}", "Regular parent communication and home-school collaboration",
                "Ongoing", ["Communication schedule", "Progress reports"],
                ["Parent engagement", "Consistent support"]),
    ]
    if any(f.risk_type == RiskType.ACADEMIC_STRUGGLE for f in factors):
        support.append(
            _action(f"long-term-academic-{student_id}", "Support skill generalization across subjects",
                    "6+ weeks", ["Cross-curricular materials", "Collaboration with other teachers"],
                    ["Skills transfer", "Independent application"])
        )
    return support


def success_metrics(factors: List[RiskFactor]) -> List[str]:
    metrics = ["Increased classroom engagement", "Improved task completion rate", "Positive peer interactions"]
    for factor in factors:
        for metric in RISK_METRICS[factor.risk_type]:
            if metric not in metrics:
                metrics.append(metric)
    return metrics


def escalation_triggers(risk_level: str) -> List[str]:
    triggers = list(BASE_ESCALATION_TRIGGERS)
    if risk_level == "high":
        triggers.append("Immediate safety or wellbeing concerns")
        triggers.append("Significant disruption to learning environment")
    return triggers


def _factor_summary(factor: RiskFactor) -> Dict[str, Any]:
    return {
        "id": factor.id,
        "type": factor.risk_type.value,
        "severity": factor.severity.value,
        "description": factor.description,
        "indicators": list(factor.indicators),
        "intervention_strategies": list(factor.intervention_strategies),
        "timeline": factor.timeline.value,
    }


class ClassroomAnalytics:
    """Read and aggregate classroom data from a data source"""

    def __init__(self, data_source: DataSource):
        self.data_source = data_source

    def _student_factors(self, classroom_id: str, profiles: List[Profile]) -> Dict[str, List[RiskFactor]]:
        stored = self.data_source.list_risk_factors(classroom_id)
        result = {}
        for profile in profiles:
            own = [f for f in stored if f.profile_id == profile.id]
            result[profile.id] = merge_risk_factors(own, derived_risk_factors(profile))
        return result

    def at_risk(self, classroom_id: str, profiles: Optional[List[Profile]] = None) -> List[Dict[str, Any]]:
        """Per-student risk analysis, highest intervention priority first"""
        if profiles is None:
            profiles = self.data_source.list_classroom_profiles(classroom_id)
        factors_by_student = self._student_factors(classroom_id, profiles)

        analysis = []
        for profile in profiles:
            factors = factors_by_student[profile.id]
            if not factors:
                continue
            level = overall_risk_level(factors)
            ranked = sorted(factors, key=lambda f: SEVERITY_WEIGHT[f.severity], reverse=True)
            analysis.append({
                "student_id": profile.id,
                "student_name": profile.child_name,
                "risk_level": level,
                "primary_risk_factors": [_factor_summary(f) for f in ranked[:3]],
                "intervention_priority": intervention_priority(factors),
                "immediate_actions": immediate_actions(factors),
                "short_term_strategies": short_term_strategies(factors),
                "long_term_support": long_term_support(profile.id, factors),
                "check_in_frequency": check_in_frequency(level, factors),
                "success_metrics": success_metrics(factors),
                "escalation_triggers": escalation_triggers(level),
            })

        analysis.sort(key=lambda item: item["intervention_priority"], reverse=True)
        return analysis

    def overview(self, classroom_id: str) -> Dict[str, Any]:
        """Classroom-wide averages, label distribution and per-student summaries"""
        profiles = self.data_source.list_classroom_profiles(classroom_id)
        if not profiles:
            raise NotFoundError("Classroom", classroom_id)

        average_scores: Dict[str, Optional[float]] = {}
        for category in SkillCategory:
            values = [
                p.consolidated_scores.get(category.value)
                for p in profiles
                if p.consolidated_scores.get(category.value) is not None
            ]
            average_scores[category.value] = round(sum(values) / len(values), 1) if values else None

        label_distribution: Dict[str, int] = {}
        for profile in profiles:
            label_distribution[profile.personality_label] = label_distribution.get(profile.personality_label, 0) + 1

        risk_levels = {item["student_id"]: item["risk_level"] for item in self.at_risk(classroom_id, profiles)}
        needs_support = [
            p for p in profiles
            if p.id in risk_levels
            or any(v is not None and v < GROWTH_THRESHOLD for v in p.consolidated_scores.values())
        ]

        total = len(profiles)
        return {
            "classroom_id": classroom_id,
            "total_students": total,
            "average_scores": average_scores,
            "personality_distribution": label_distribution,
            "average_confidence": round(sum(p.confidence_percentage for p in profiles) / total, 1),
            "average_completeness": round(sum(p.completeness_percentage for p in profiles) / total, 1),
            "students_needing_support": len(needs_support),
            "at_risk_students": sum(1 for level in risk_levels.values() if level == "high"),
            "moderate_risk_students": sum(1 for level in risk_levels.values() if level == "medium"),
            "students": [
                {
                    "id": p.id,
                    "name": p.child_name,
                    "personality_label": p.personality_label,
                    "consolidated_scores": round_scores(p.consolidated_scores),
                    "confidence_percentage": p.confidence_percentage,
                    "strengths": list(p.strengths),
                    "growth_areas": list(p.growth_areas),
                    "risk_level": risk_levels.get(p.id),
                }
                for p in sorted(profiles, key=lambda p: p.child_name.lower())
            ],
        }

    def record_risk_factors(self, classroom_id: str, request: AtRiskRequest) -> List[RiskFactor]:
        """Store teacher-reported risk factors against a student in the classroom"""
        if not request.student_id or not request.risk_factors:
            raise ValidationError(ERROR_MESSAGES["MISSING_RISK_FIELDS"])

        profile = self.data_source.get_profile(request.student_id)
        if profile is None or profile.classroom_id != classroom_id:
            raise NotFoundError("Student", request.student_id)

        now = utcnow()
        factors = []
        for item in request.risk_factors:
            severity = Severity(item.severity)
            timeline = RiskTimeline(item.timeline)
            factors.append(RiskFactor(
                profile_id=profile.id,
                classroom_id=classroom_id,
                risk_type=RiskType(item.risk_type),
                severity=severity,
                description=item.description,
                indicators=item.indicators,
                intervention_strategies=item.intervention_strategies,
                timeline=timeline,
                identified_date=now,
                next_review_date=now + timedelta(days=next_review_days(severity, timeline)),
            ))

        stored = self.data_source.add_risk_factors(factors)
        logger.info(
            f"Recorded {len(stored)} risk factor(s) for student {profile.id}",
            extra={"classroom_id": classroom_id, "profile_id": profile.id}
        )
        return stored

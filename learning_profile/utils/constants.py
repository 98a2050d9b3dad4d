"""
Application constants and enums
"""

from enum import Enum
from typing import Dict, Tuple


class SkillCategory(str, Enum):
    """Scored skill categories (6Cs plus academic skills)"""
    COMMUNICATION = "Communication"
    COLLABORATION = "Collaboration"
    CONTENT = "Content"
    CRITICAL_THINKING = "Critical Thinking"
    CREATIVE_INNOVATION = "Creative Innovation"
    CONFIDENCE = "Confidence"
    LITERACY = "Literacy"
    MATH = "Math"


class PreferenceSlot(str, Enum):
    """Unscored learning preference questions"""
    ENGAGEMENT = "Engagement"
    MODALITY = "Modality"
    SOCIAL = "Social"
    INTERESTS = "Interests"


class QuizType(str, Enum):
    """Quiz type enumeration"""
    PARENT_HOME = "parent_home"
    TEACHER_CLASSROOM = "teacher_classroom"
    GENERAL = "general"


class RespondentType(str, Enum):
    """Respondent type enumeration"""
    PARENT = "parent"
    TEACHER = "teacher"


class ViewContext(str, Enum):
    """Consumer context used when rendering a profile"""
    PARENT = "parent"
    TEACHER = "teacher"
    CONSOLIDATED = "consolidated"


class RiskType(str, Enum):
    """Classroom risk factor types"""
    LEARNING_STYLE_MISMATCH = "learning_style_mismatch"
    LOW_ENGAGEMENT = "low_engagement"
    SOCIAL_ISOLATION = "social_isolation"
    ACADEMIC_STRUGGLE = "academic_struggle"


class Severity(str, Enum):
    """Risk severity enumeration"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskTimeline(str, Enum):
    """How soon a risk factor should be addressed"""
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


AGE_GROUPS = ("3-4", "4-5", "5+", "5-6", "6-8", "8-10", "10+")
DEFAULT_AGE_GROUP = "5+"

TOTAL_QUESTION_SLOTS = 28
MIN_SCORE = 1
MAX_SCORE = 5

# Slots 1-24: three questions per skill category, in category order
SKILL_QUESTION_MAP: Dict[int, SkillCategory] = {
    slot: category
    for index, category in enumerate(SkillCategory)
    for slot in range(index * 3 + 1, index * 3 + 4)
}

# Slots 25-28 hold learning preferences
PREFERENCE_QUESTION_MAP: Dict[int, PreferenceSlot] = {
    25: PreferenceSlot.ENGAGEMENT,
    26: PreferenceSlot.MODALITY,
    27: PreferenceSlot.SOCIAL,
    28: PreferenceSlot.INTERESTS,
}
PREFERENCE_SLOT_BY_NAME: Dict[str, int] = {
    slot_name.value: slot for slot, slot_name in PREFERENCE_QUESTION_MAP.items()
}

# Scored slots asked by each quiz type
QUIZ_QUESTION_SLOTS: Dict[QuizType, Tuple[int, ...]] = {
    QuizType.PARENT_HOME: (1, 2, 4, 7, 11, 13, 14, 16, 17, 19, 20, 21, 22, 23, 24),
    QuizType.TEACHER_CLASSROOM: (1, 3, 4, 5, 8, 9, 10, 12, 19, 21, 22, 24),
    QuizType.GENERAL: tuple(range(1, 25)),
}

QUIZ_CONFIDENCE_BOOST: Dict[QuizType, int] = {
    QuizType.PARENT_HOME: 30,
    QuizType.TEACHER_CLASSROOM: 40,
    QuizType.GENERAL: 50,
}

# Display thresholds on the 1-5 scale
STRENGTH_THRESHOLD = 4.0
GROWTH_THRESHOLD = 3.0

# Score thresholds used for classroom risk detection
RISK_MEDIUM_THRESHOLD = 2.5
RISK_HIGH_THRESHOLD = 2.0

SPARSE_DATA_WARNING = "Incomplete assessment data may affect accuracy"

# Personality label for the top two categories (order-insensitive lookup)
PERSONALITY_LABELS: Dict[Tuple[str, str], str] = {
    ("Communication", "Collaboration"): "Social Communicator",
    ("Communication", "Creative Innovation"): "Creative Storyteller",
    ("Communication", "Confidence"): "Confident Leader",
    ("Communication", "Content"): "Knowledge Communicator",
    ("Communication", "Critical Thinking"): "Thoughtful Communicator",
    ("Communication", "Literacy"): "Language Leader",
    ("Communication", "Math"): "Mathematical Communicator",
    ("Collaboration", "Creative Innovation"): "Creative Collaborator",
    ("Collaboration", "Confidence"): "Natural Leader",
    ("Collaboration", "Content"): "Team Scholar",
    ("Collaboration", "Critical Thinking"): "Strategic Partner",
    ("Collaboration", "Literacy"): "Reading Partner",
    ("Collaboration", "Math"): "Math Team Player",
    ("Creative Innovation", "Critical Thinking"): "Creative Problem Solver",
    ("Creative Innovation", "Confidence"): "Fearless Creator",
    ("Creative Innovation", "Content"): "Innovative Learner",
    ("Creative Innovation", "Literacy"): "Creative Writer",
    ("Creative Innovation", "Math"): "Mathematical Innovator",
    ("Critical Thinking", "Content"): "Analytical Scholar",
    ("Critical Thinking", "Confidence"): "Bold Analyst",
    ("Critical Thinking", "Literacy"): "Critical Reader",
    ("Critical Thinking", "Math"): "Mathematical Thinker",
    ("Confidence", "Content"): "Confident Scholar",
    ("Confidence", "Literacy"): "Reading Champion",
    ("Confidence", "Math"): "Math Confident",
    ("Literacy", "Math"): "Academic All-Star",
    ("Content", "Literacy"): "Knowledge Reader",
    ("Content", "Math"): "Mathematical Scholar",
}
DEFAULT_PERSONALITY_LABEL = "Unique Learner"

# Error Messages
ERROR_MESSAGES = {
    "MISSING_FIELDS": "Missing required fields: child_name, quiz_type, respondent_type, responses",
    "NO_SCORED_RESPONSES": "Missing required fields: responses must answer at least one scored question (1-24)",
    "INVALID_QUIZ_TYPE": "invalid quiz type: {quiz_type}",
    "INVALID_RESPONDENT_TYPE": "invalid respondent type: {respondent_type}",
    "INVALID_AGE_GROUP": "invalid age group: {age_group}",
    "INVALID_CONTEXT": "invalid context: {context}",
    "PROFILE_ID_REQUIRED": "Profile ID required",
    "PROFILE_LOOKUP_REQUIRED": "Profile ID or child name required",
    "PROFILE_CHANGED": "Profile was modified by another submission; please resubmit",
    "MISSING_RISK_FIELDS": "Missing required fields: student_id, risk_factors",
}

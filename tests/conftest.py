import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from learning_profile.main import create_app  # noqa: E402
from learning_profile.models.database import AssessmentRecord  # noqa: E402
from learning_profile.services.memory_store import InMemoryFallbackStore  # noqa: E402
from learning_profile.utils.constants import QUIZ_QUESTION_SLOTS, QuizType, RespondentType  # noqa: E402


PARENT_SLOTS = QUIZ_QUESTION_SLOTS[QuizType.PARENT_HOME]
TEACHER_SLOTS = QUIZ_QUESTION_SLOTS[QuizType.TEACHER_CLASSROOM]


def answers(slots, value=4):
    """Same Likert value for every slot, keyed the way JSON clients send them"""
    return {str(slot): value for slot in slots}


def make_record(quiz_type="parent_home", respondent_type=None, responses=None, **kwargs):
    quiz = QuizType(quiz_type)
    if respondent_type is None:
        respondent_type = "teacher" if quiz == QuizType.TEACHER_CLASSROOM else "parent"
    return AssessmentRecord(
        child_name=kwargs.pop("child_name", "Ava"),
        quiz_type=quiz,
        respondent_type=RespondentType(respondent_type),
        responses=responses if responses is not None else {slot: 4 for slot in QUIZ_QUESTION_SLOTS[quiz]},
        **kwargs
    )


@pytest.fixture
def store():
    return InMemoryFallbackStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


@pytest.fixture
def parent_payload():
    # 14 of the 15 parent questions
    return {
        "child_name": "Ava",
        "age_group": "5+",
        "quiz_type": "parent_home",
        "respondent_type": "parent",
        "responses": answers(PARENT_SLOTS[:14]),
    }


@pytest.fixture
def teacher_payload():
    return {
        "child_name": "Ava",
        "age_group": "5+",
        "quiz_type": "teacher_classroom",
        "respondent_type": "teacher",
        "responses": answers(TEACHER_SLOTS),
    }

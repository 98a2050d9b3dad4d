"""
Thread-safe in-memory data source for local development and tests
"""

from typing import Dict, List, Optional
from threading import Lock

from learning_profile.models.database import AssessmentRecord, Profile, RiskFactor, TeacherAccount
from learning_profile.services.data_source import DataSource
from learning_profile.utils.constants import ERROR_MESSAGES
from learning_profile.utils.error_handler import ConflictError
from learning_profile.utils.logger import logger


class InMemoryFallbackStore(DataSource):
    """Dictionary-backed store; every read returns a private copy"""

    name = "memory"

    def __init__(self):
        self._profiles: Dict[str, Profile] = {}
        self._risk_factors: List[RiskFactor] = []
        self._teachers: Dict[str, TeacherAccount] = {}
        self._lock = Lock()

    def get_profile(self, profile_id: str, fresh: bool = False) -> Optional[Profile]:
        with self._lock:
            profile = self._profiles.get(profile_id)
            return profile.model_copy(deep=True) if profile else None

    def get_profile_by_share_token(self, token: str) -> Optional[Profile]:
        with self._lock:
            for profile in self._profiles.values():
                if profile.sharing_token and profile.sharing_token == token:
                    return profile.model_copy(deep=True)
        return None

    def find_profile_by_child_name(self, child_name: str) -> Optional[Profile]:
        with self._lock:
            matches = [p for p in self._profiles.values() if p.child_name == child_name.strip()]
            if not matches:
                return None
            return max(matches, key=lambda p: p.updated_at).model_copy(deep=True)

    def save_profile(self, profile: Profile, record: AssessmentRecord, expected_version: int) -> Profile:
        with self._lock:
            current = self._profiles.get(profile.id)
            current_version = current.version if current else 0

            if (current is None and expected_version != 0) or (current is not None and current_version != expected_version):
                logger.warning(
                    f"Version conflict on profile {profile.id}: expected {expected_version}, found {current_version}",
                    extra={"profile_id": profile.id}
                )
                raise ConflictError(
                    ERROR_MESSAGES["PROFILE_CHANGED"],
                    details={"profile_id": profile.id, "expected_version": expected_version}
                )

            stored = profile.model_copy(update={"version": expected_version + 1}, deep=True)
            self._profiles[stored.id] = stored
            return stored.model_copy(deep=True)

    def list_classroom_profiles(self, classroom_id: str) -> List[Profile]:
        with self._lock:
            return [
                profile.model_copy(deep=True)
                for profile in self._profiles.values()
                if profile.classroom_id == classroom_id
            ]

    def list_risk_factors(self, classroom_id: str, status: str = "active") -> List[RiskFactor]:
        with self._lock:
            return [
                factor.model_copy()
                for factor in self._risk_factors
                if factor.classroom_id == classroom_id and factor.status == status
            ]

    def add_risk_factors(self, factors: List[RiskFactor]) -> List[RiskFactor]:
        with self._lock:
            self._risk_factors.extend(factor.model_copy() for factor in factors)
        return factors

    def get_teacher_by_email(self, email: str) -> Optional[TeacherAccount]:
        with self._lock:
            teacher = self._teachers.get(email.strip().lower())
            return teacher.model_copy() if teacher else None

    def add_teacher(self, teacher: TeacherAccount) -> TeacherAccount:
        with self._lock:
            self._teachers[teacher.email.strip().lower()] = teacher.model_copy()
        return teacher

    def health(self):
        with self._lock:
            profiles = len(self._profiles)
        return {"status": "ok", "source": self.name, "profiles": profiles}

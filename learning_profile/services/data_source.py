"""
Storage interface shared by the Supabase store and the in-memory fallback
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from learning_profile.config import settings
from learning_profile.models.database import AssessmentRecord, Profile, RiskFactor, TeacherAccount
from learning_profile.utils.logger import logger


class DataSource(ABC):
    """Persistence operations used by the services"""

    name: str = "abstract"

    @abstractmethod
    def get_profile(self, profile_id: str, fresh: bool = False) -> Optional[Profile]:
        """
        Load a profile with all of its assessment records.

        ``fresh`` bypasses any read cache.
        """

    @abstractmethod
    def get_profile_by_share_token(self, token: str) -> Optional[Profile]:
        """Profile addressed by a read-only sharing link"""

    @abstractmethod
    def find_profile_by_child_name(self, child_name: str) -> Optional[Profile]:
        """Most recently updated profile for a child name (exact match)"""

    @abstractmethod
    def save_profile(self, profile: Profile, record: AssessmentRecord, expected_version: int) -> Profile:
        """
        Persist a profile together with its newly appended record.

        The write only happens if the stored version still equals
        ``expected_version`` (0 for a profile that must not exist yet);
        otherwise ``ConflictError`` is raised and nothing is written.
        Returns the stored profile carrying its new version.
        """

    @abstractmethod
    def list_classroom_profiles(self, classroom_id: str) -> List[Profile]:
        """All profiles attached to a classroom"""

    @abstractmethod
    def list_risk_factors(self, classroom_id: str, status: str = "active") -> List[RiskFactor]:
        """Stored risk factors for a classroom"""

    @abstractmethod
    def add_risk_factors(self, factors: List[RiskFactor]) -> List[RiskFactor]:
        """Store new risk factors"""

    @abstractmethod
    def get_teacher_by_email(self, email: str) -> Optional[TeacherAccount]:
        """Look up a teacher account by (case-insensitive) email"""

    @abstractmethod
    def add_teacher(self, teacher: TeacherAccount) -> TeacherAccount:
        """Create or replace a teacher account"""

    def health(self) -> Dict[str, Any]:
        return {"status": "ok", "source": self.name}

    async def cleanup(self) -> None:
        """Periodic housekeeping hook"""
        return None


def create_data_source(source: Optional[str] = None) -> DataSource:
    """
    Build the configured data source.

    ``supabase`` falls back to the in-memory store, with a warning, when
    the Supabase credentials are missing or placeholders.
    """
    from learning_profile.services.memory_store import InMemoryFallbackStore

    source = (source or settings.DATA_SOURCE).lower()

    if source == "supabase":
        if settings.supabase_configured:
            from learning_profile.services.supabase_service import SupabaseStore
            logger.info("Using Supabase data source")
            return SupabaseStore()
        logger.warning(
            "[WARN] DATA_SOURCE=supabase but Supabase credentials are missing or placeholders. "
            "Falling back to the in-memory store."
        )

    logger.info("Using in-memory data source")
    return InMemoryFallbackStore()

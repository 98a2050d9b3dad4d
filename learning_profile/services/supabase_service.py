"""
Supabase-backed data source for profiles, assessment records, risk factors and teachers
"""

from supabase import create_client, Client
from typing import Optional, Dict, Any, List

from learning_profile.config import settings
from learning_profile.models.database import AssessmentRecord, Profile, RiskFactor, TeacherAccount
from learning_profile.services.data_source import DataSource
from learning_profile.utils.cache import Cache, profile_cache_key
from learning_profile.utils.constants import ERROR_MESSAGES
from learning_profile.utils.error_handler import ConflictError, InternalError
from learning_profile.utils.logger import logger

PROFILES_TABLE = "consolidated_profiles"
RECORDS_TABLE = "assessment_results"
RISK_FACTORS_TABLE = "student_risk_factors"
TEACHERS_TABLE = "teachers"


def _profile_row(profile: Profile) -> Dict[str, Any]:
    return profile.model_dump(mode="json", exclude={"assessment_records"})


def _record_row(record: AssessmentRecord) -> Dict[str, Any]:
    row = record.model_dump(mode="json")
    row["responses"] = {str(slot): score for slot, score in record.responses.items()}
    return row


class SupabaseStore(DataSource):
    """Data source over the Supabase client"""

    name = "supabase"

    def __init__(self, client: Optional[Client] = None, cache: Optional[Cache] = None):
        """
        Initialize the store

        Args:
            client: Pre-built Supabase client (built from settings when omitted)
            cache: Profile read cache (defaults to PROFILE_CACHE_TTL_SECONDS)
        """
        self.client: Optional[Client] = client
        self.cache = cache or Cache(default_ttl=settings.PROFILE_CACHE_TTL_SECONDS)
        if self.client is None:
            self._initialize_client()

    def _initialize_client(self):
        """Initialize Supabase client with configuration"""
        if not settings.supabase_configured:
            logger.error("[WARN] Supabase credentials missing or placeholders. Configure SUPABASE_URL and SUPABASE_KEY in .env file.")
            return

        if not settings.SUPABASE_URL.startswith("https://"):
            logger.error(f"[WARN] Invalid SUPABASE_URL format. Must start with 'https://'. Got: {settings.SUPABASE_URL[:50]}")
            return

        key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY
        try:
            self.client = create_client(settings.SUPABASE_URL, key)
        except Exception as e:
            logger.error(f"[WARN] Failed to initialize Supabase client: {str(e)}")
            self.client = None

    def _ensure_client(self) -> Client:
        """Return the client or fail with an internal error"""
        if self.client is None:
            self._initialize_client()
        if self.client is None:
            raise InternalError("Database service unavailable")
        return self.client

    # ============================================
    # Profile Operations
    # ============================================

    def _load_records(self, profile_ids: List[str]) -> Dict[str, List[AssessmentRecord]]:
        """Fetch records for several profiles in one query, oldest first"""
        if not profile_ids:
            return {}
        client = self._ensure_client()
        response = client.table(RECORDS_TABLE)\
            .select("*")\
            .in_("profile_id", profile_ids)\
            .order("created_at")\
            .execute()

        grouped: Dict[str, List[AssessmentRecord]] = {pid: [] for pid in profile_ids}
        for row in (response.data or []):
            grouped.setdefault(row["profile_id"], []).append(AssessmentRecord.model_validate(row))
        return grouped

    def get_profile(self, profile_id: str, fresh: bool = False) -> Optional[Profile]:
        """Get profile by ID, served from cache unless ``fresh`` is set"""
        cache_key = profile_cache_key(profile_id)
        if not fresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached.model_copy(deep=True)

        client = self._ensure_client()
        try:
            response = client.table(PROFILES_TABLE).select("*").eq("id", profile_id).limit(1).execute()
            if not response.data:
                return None
            records = self._load_records([profile_id])[profile_id]
        except Exception as e:
            logger.error(f"Error getting profile: {str(e)}", extra={"profile_id": profile_id})
            raise InternalError("Failed to load profile")

        profile = Profile.model_validate({**response.data[0], "assessment_records": records})
        if not fresh:
            self.cache.set(cache_key, profile)
        return profile.model_copy(deep=True)

    def _find_profile(self, column: str, value: str) -> Optional[Profile]:
        """Most recently updated profile whose ``column`` equals ``value``"""
        client = self._ensure_client()
        try:
            response = client.table(PROFILES_TABLE)\
                .select("*")\
                .eq(column, value)\
                .order("updated_at", desc=True)\
                .limit(1)\
                .execute()
            if not response.data:
                return None
            row = response.data[0]
            records = self._load_records([row["id"]])[row["id"]]
        except Exception as e:
            logger.error(f"Error finding profile by {column}: {str(e)}")
            raise InternalError("Failed to load profile")

        return Profile.model_validate({**row, "assessment_records": records})

    def get_profile_by_share_token(self, token: str) -> Optional[Profile]:
        return self._find_profile("sharing_token", token)

    def find_profile_by_child_name(self, child_name: str) -> Optional[Profile]:
        return self._find_profile("child_name", child_name.strip())

    def _compensate(self, client: Client, table: str, row_id: str) -> None:
        """Remove a row written by a step whose follow-up failed"""
        try:
            client.table(table).delete().eq("id", row_id).execute()
        except Exception as e:
            logger.error(f"Failed to remove orphan row {row_id} from {table}: {str(e)}")

    def save_profile(self, profile: Profile, record: AssessmentRecord, expected_version: int) -> Profile:
        """
        Conditional write of profile plus record.

        New profiles insert the profile row first, then the record. Existing
        profiles insert the record first, then update the profile row only
        where ``version`` still matches. A failed second step removes the
        first step's row. The cached profile is dropped once the writes end,
        whatever their outcome.
        """
        client = self._ensure_client()
        stored = profile.model_copy(update={"version": expected_version + 1}, deep=True)
        try:
            if expected_version == 0:
                self._insert_new_profile(client, stored, record)
            else:
                self._append_record(client, stored, record, expected_version)
        finally:
            self.cache.delete(profile_cache_key(profile.id))
        return stored

    def _insert_new_profile(self, client: Client, stored: Profile, record: AssessmentRecord) -> None:
        try:
            client.table(PROFILES_TABLE).insert(_profile_row(stored)).execute()
        except Exception as e:
            if "duplicate" in str(e).lower():
                raise ConflictError(ERROR_MESSAGES["PROFILE_CHANGED"], details={"profile_id": stored.id})
            logger.error(f"Error creating profile: {str(e)}", extra={"profile_id": stored.id})
            raise InternalError("Failed to save profile")

        try:
            client.table(RECORDS_TABLE).insert(_record_row(record)).execute()
        except Exception as e:
            logger.error(f"Error saving assessment record: {str(e)}", extra={"profile_id": stored.id})
            self._compensate(client, PROFILES_TABLE, stored.id)
            raise InternalError("Failed to save assessment")

    def _append_record(self, client: Client, stored: Profile, record: AssessmentRecord, expected_version: int) -> None:
        try:
            client.table(RECORDS_TABLE).insert(_record_row(record)).execute()
        except Exception as e:
            logger.error(f"Error saving assessment record: {str(e)}", extra={"profile_id": stored.id})
            raise InternalError("Failed to save assessment")

        try:
            response = client.table(PROFILES_TABLE)\
                .update(_profile_row(stored))\
                .eq("id", stored.id)\
                .eq("version", expected_version)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile: {str(e)}", extra={"profile_id": stored.id})
            self._compensate(client, RECORDS_TABLE, record.id)
            raise InternalError("Failed to save profile")

        if not response.data:
            self._compensate(client, RECORDS_TABLE, record.id)
            logger.warning(
                f"Version conflict on profile {stored.id}: expected {expected_version}",
                extra={"profile_id": stored.id}
            )
            raise ConflictError(
                ERROR_MESSAGES["PROFILE_CHANGED"],
                details={"profile_id": stored.id, "expected_version": expected_version}
            )

    def list_classroom_profiles(self, classroom_id: str) -> List[Profile]:
        client = self._ensure_client()
        try:
            response = client.table(PROFILES_TABLE).select("*").eq("classroom_id", classroom_id).execute()
            rows = response.data or []
            records = self._load_records([row["id"] for row in rows])
        except Exception as e:
            logger.error(f"Error listing classroom profiles: {str(e)}", extra={"classroom_id": classroom_id})
            raise InternalError("Failed to load classroom")

        return [
            Profile.model_validate({**row, "assessment_records": records.get(row["id"], [])})
            for row in rows
        ]

    # ============================================
    # Risk Factor Operations
    # ============================================

    def list_risk_factors(self, classroom_id: str, status: str = "active") -> List[RiskFactor]:
        client = self._ensure_client()
        try:
            response = client.table(RISK_FACTORS_TABLE)\
                .select("*")\
                .eq("classroom_id", classroom_id)\
                .eq("status", status)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing risk factors: {str(e)}", extra={"classroom_id": classroom_id})
            raise InternalError("Failed to load risk factors")
        return [RiskFactor.model_validate(row) for row in (response.data or [])]

    def add_risk_factors(self, factors: List[RiskFactor]) -> List[RiskFactor]:
        if not factors:
            return []
        client = self._ensure_client()
        try:
            response = client.table(RISK_FACTORS_TABLE)\
                .insert([factor.model_dump(mode="json") for factor in factors])\
                .execute()
        except Exception as e:
            logger.error(f"Error saving risk factors: {str(e)}")
            raise InternalError("Failed to save risk factors")
        return [RiskFactor.model_validate(row) for row in (response.data or [])] or factors

    # ============================================
    # Teacher Operations
    # ============================================

    def get_teacher_by_email(self, email: str) -> Optional[TeacherAccount]:
        client = self._ensure_client()
        try:
            response = client.table(TEACHERS_TABLE)\
                .select("*")\
                .eq("email", email.strip().lower())\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting teacher: {str(e)}")
            raise InternalError("Failed to load teacher account")
        return TeacherAccount.model_validate(response.data[0]) if response.data else None

    def add_teacher(self, teacher: TeacherAccount) -> TeacherAccount:
        client = self._ensure_client()
        row = teacher.model_dump(mode="json")
        row["email"] = teacher.email.strip().lower()
        try:
            client.table(TEACHERS_TABLE).upsert(row).execute()
        except Exception as e:
            logger.error(f"Error saving teacher: {str(e)}")
            raise InternalError("Failed to save teacher account")
        return teacher

    def health(self) -> Dict[str, Any]:
        if self.client is None:
            return {"status": "unavailable", "source": self.name}
        try:
            self.client.table(PROFILES_TABLE).select("id").limit(0).execute()
            return {"status": "connected", "source": self.name, "cache": self.cache.stats()}
        except Exception as e:
            error_msg = str(e).lower()
            if "does not exist" in error_msg or "relation" in error_msg:
                return {"status": "connected", "source": self.name, "note": "tables may not exist"}
            return {"status": "error", "source": self.name, "error": str(e)[:100] if settings.DEBUG else "connection failed"}

    async def cleanup(self) -> None:
        await self.cache.cleanup_expired()

"""
Application configuration and environment variables
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Get the project root directory (parent of 'learning_profile' folder)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file from project root explicitly
env_path = BASE_DIR / ".env"
load_dotenv(dotenv_path=env_path, override=False)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Configuration
    PROJECT_NAME: str = "Begin Learning Profile"
    VERSION: str = "2.0.0"
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    # Data source selection: "supabase" or "memory"
    DATA_SOURCE: str = "memory"

    # Supabase Configuration
    SUPABASE_URL: str = "https://your-project.supabase.co"
    SUPABASE_KEY: str = "your-supabase-anon-key"
    SUPABASE_SERVICE_KEY: Optional[str] = None

    # Consolidation weights per quiz type
    QUIZ_WEIGHT_PARENT_HOME: float = 0.6
    QUIZ_WEIGHT_TEACHER_CLASSROOM: float = 0.8
    QUIZ_WEIGHT_GENERAL: float = 1.0
    REPEAT_DECAY: float = 0.75

    # Confidence model
    CONFIDENCE_VOLUME_CEILING: float = 55.0
    CONFIDENCE_VOLUME_DECAY: float = 0.6
    CONFIDENCE_DIVERSITY_BONUS: float = 20.0
    CONFIDENCE_COMPLETENESS_FACTOR: float = 0.3
    CONFIDENCE_CONSISTENCY_BONUS: float = 15.0

    # Caching
    PROFILE_CACHE_TTL_SECONDS: int = 120

    # Session cookies
    SESSION_COOKIE_NAME: str = "edu-session"
    CLIENT_SESSION_COOKIE_NAME: str = "edu-session-client"
    SESSION_BRIDGE_HEADER: str = "X-Session-Bridge"
    SESSION_DURATION_HOURS: int = 24

    # Application Settings
    DEBUG: bool = True  # Default to True for development (set to False for production)
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    @field_validator("DATA_SOURCE")
    @classmethod
    def normalize_data_source(cls, v):
        """Accept any casing for the data source name"""
        v = (v or "memory").strip().lower()
        if v not in ("supabase", "memory"):
            raise ValueError(f"DATA_SOURCE must be 'supabase' or 'memory', got '{v}'")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

    @property
    def supabase_configured(self) -> bool:
        """True when Supabase credentials look real"""
        if not self.SUPABASE_URL or not self.SUPABASE_KEY:
            return False
        return "your-project" not in self.SUPABASE_URL and "your-supabase" not in self.SUPABASE_KEY

    model_config = {
        "env_file": str(BASE_DIR / ".env"),
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


# Global settings instance
try:
    settings = Settings()

    import warnings
    if settings.DATA_SOURCE == "supabase" and not settings.supabase_configured:
        warnings.warn(
            "[WARN] DATA_SOURCE=supabase but SUPABASE_URL/SUPABASE_KEY are not configured. "
            "The in-memory store will be used instead.",
            UserWarning
        )
except Exception as e:
    import sys
    print(f"[ERROR] Error loading configuration: {e}", file=sys.stderr)
    print("Please check your .env file or environment variables.", file=sys.stderr)
    raise

"""
Helper utility functions
"""

from datetime import datetime, timezone
import secrets

from learning_profile.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_sharing_token() -> str:
    """Unguessable token for read-only profile links"""
    return secrets.token_urlsafe(16)


def build_share_url(profile_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/results/{profile_id}"


def parse_datetime_iso(dt_str: str) -> datetime:
    """Parse ISO datetime string, accepting a trailing Z and naive values as UTC"""
    if dt_str.endswith('Z'):
        dt_str = dt_str[:-1] + '+00:00'
    parsed = datetime.fromisoformat(dt_str)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso_z(dt: datetime) -> str:
    """Format as ISO 8601 with millisecond precision and a Z suffix"""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")



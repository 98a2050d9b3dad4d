"""
Session resolution over the bridge header and the session cookies
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple
from urllib.parse import quote, unquote
import json

from learning_profile.config import settings
from learning_profile.services.data_source import DataSource
from learning_profile.utils.error_handler import UnauthorizedError, ValidationError
from learning_profile.utils.helpers import parse_datetime_iso, to_iso_z, utcnow
from learning_profile.utils.logger import logger


class SessionSource(NamedTuple):
    """Where a session payload can be read from"""
    name: str
    kind: str  # "header" or "cookie"
    key: str


def default_sources() -> List[SessionSource]:
    """Precedence order: local-cache bridge, client-readable cookie, secure server cookie"""
    return [
        SessionSource("bridge", "header", settings.SESSION_BRIDGE_HEADER),
        SessionSource("client_cookie", "cookie", settings.CLIENT_SESSION_COOKIE_NAME),
        SessionSource("server_cookie", "cookie", settings.SESSION_COOKIE_NAME),
    ]


def encode_session(payload: Dict[str, Any]) -> str:
    return quote(json.dumps(payload, separators=(",", ":")))


def decode_session(raw: str) -> Optional[Dict[str, Any]]:
    """Parse a URL-encoded JSON payload; None when it is not a usable session"""
    try:
        data = json.loads(unquote(raw))
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict) or not data.get("email") or not data.get("expiresAt"):
        return None
    try:
        parse_datetime_iso(str(data["expiresAt"]))
    except ValueError:
        return None
    return data


class SessionResolver:
    """Resolves the caller's session from an ordered list of sources"""

    def __init__(self, data_source: DataSource, sources: Optional[List[SessionSource]] = None):
        self.data_source = data_source
        self.sources = sources or default_sources()

    def _raw_values(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> List[Tuple[str, str]]:
        values = []
        for source in self.sources:
            store = headers if source.kind == "header" else cookies
            raw = store.get(source.key)
            if raw:
                values.append((source.name, raw))
        return values

    def resolve(
        self,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Authentication state for a request.

        The first source whose payload parses wins; sources that fail to
        parse are skipped.
        """
        now = now or utcnow()
        raw_values = self._raw_values(headers, cookies)
        if not raw_values:
            return {"authenticated": False, "reason": "No session found"}

        session = None
        source_name = None
        for name, raw in raw_values:
            session = decode_session(raw)
            if session is not None:
                source_name = name
                break
            logger.debug(f"Skipping unparseable session source: {name}")

        if session is None:
            return {"authenticated": False, "reason": "No valid session data"}

        expires_at = parse_datetime_iso(str(session["expiresAt"]))
        if now > expires_at:
            return {"authenticated": False, "reason": "Session expired", "expiredAt": session["expiresAt"]}

        teacher = self.data_source.get_teacher_by_email(str(session["email"]))
        if teacher is None:
            return {"authenticated": False, "reason": "User not found"}
        if not teacher.is_active:
            return {"authenticated": False, "reason": "Account deactivated"}

        authenticated_at = session.get("authenticatedAt")
        age_hours = None
        if authenticated_at:
            try:
                age_hours = int((now - parse_datetime_iso(str(authenticated_at))) // timedelta(hours=1))
            except ValueError:
                age_hours = None

        return {
            "authenticated": True,
            "user": {
                "id": teacher.id,
                "email": teacher.email,
                "name": teacher.name,
                "userType": teacher.user_type,
                "school": teacher.school,
                "gradeLevel": teacher.grade_level,
                "isVerified": teacher.is_verified,
            },
            "session": {
                "source": source_name,
                "authenticatedAt": authenticated_at,
                "expiresAt": session["expiresAt"],
                "ageHours": age_hours,
                "remainingHours": int((expires_at - now) // timedelta(hours=1)),
            },
        }

    def refresh(self, cookies: Mapping[str, str], now: Optional[datetime] = None) -> Tuple[str, str, str]:
        """
        Extend both session cookies by SESSION_DURATION_HOURS.

        Returns:
            Tuple of (new expiry ISO string, server cookie value, client cookie value)

        Raises:
            UnauthorizedError: A cookie is missing or the session already expired
            ValidationError: A cookie does not hold a session payload
        """
        server_raw = cookies.get(settings.SESSION_COOKIE_NAME)
        client_raw = cookies.get(settings.CLIENT_SESSION_COOKIE_NAME)
        if not server_raw or not client_raw:
            raise UnauthorizedError("No active session to refresh")

        server_session = decode_session(server_raw)
        client_session = decode_session(client_raw)
        if server_session is None or client_session is None:
            raise ValidationError("Invalid session data")

        now = now or utcnow()
        if now > parse_datetime_iso(str(server_session["expiresAt"])):
            raise UnauthorizedError("Session expired, please login again")

        new_expires_at = to_iso_z(now + timedelta(hours=settings.SESSION_DURATION_HOURS))
        server_session["expiresAt"] = new_expires_at
        client_session["expiresAt"] = new_expires_at

        logger.info(f"Session refreshed for {server_session['email']}")
        return new_expires_at, encode_session(server_session), encode_session(client_session)

from datetime import datetime, timedelta, timezone

import pytest

from learning_profile.config import settings
from learning_profile.models.database import TeacherAccount
from learning_profile.services.session_service import SessionResolver, decode_session, encode_session
from learning_profile.utils.error_handler import UnauthorizedError, ValidationError
from learning_profile.utils.helpers import to_iso_z

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _session(email="teacher@school.org", expires_in=timedelta(hours=10), authenticated_ago=timedelta(hours=14)):
    return encode_session({
        "email": email,
        "authenticatedAt": to_iso_z(NOW - authenticated_ago),
        "expiresAt": to_iso_z(NOW + expires_in),
    })


@pytest.fixture
def resolver(store):
    store.add_teacher(TeacherAccount(email="teacher@school.org", name="Ms. Rivera", school="Oak Elementary"))
    store.add_teacher(TeacherAccount(email="former@school.org", name="Mr. Lee", is_active=False))
    return SessionResolver(store)


def test_decode_rejects_unusable_payloads():
    assert decode_session("not-json") is None
    assert decode_session(encode_session({"email": "a@b.c"})) is None
    assert decode_session(encode_session({"email": "a@b.c", "expiresAt": "tomorrow"})) is None
    assert decode_session(encode_session({"email": "a@b.c", "expiresAt": "2026-01-01T00:00:00Z"}))["email"] == "a@b.c"


def test_no_session(resolver):
    assert resolver.resolve({}, {}, NOW) == {"authenticated": False, "reason": "No session found"}


def test_only_garbage_sessions(resolver):
    result = resolver.resolve({}, {settings.SESSION_COOKIE_NAME: "%7Bbroken"}, NOW)

    assert result == {"authenticated": False, "reason": "No valid session data"}


def test_valid_server_cookie(resolver):
    result = resolver.resolve({}, {settings.SESSION_COOKIE_NAME: _session()}, NOW)

    assert result["authenticated"] is True
    assert result["user"]["email"] == "teacher@school.org"
    assert result["user"]["school"] == "Oak Elementary"
    assert result["session"]["source"] == "server_cookie"
    assert result["session"]["ageHours"] == 14
    assert result["session"]["remainingHours"] == 10


def test_bridge_header_takes_precedence(resolver):
    headers = {settings.SESSION_BRIDGE_HEADER: _session(expires_in=timedelta(hours=3))}
    cookies = {settings.SESSION_COOKIE_NAME: _session()}

    result = resolver.resolve(headers, cookies, NOW)

    assert result["session"]["source"] == "bridge"
    assert result["session"]["remainingHours"] == 3


def test_unparseable_source_falls_through(resolver):
    cookies = {settings.CLIENT_SESSION_COOKIE_NAME: "garbage", settings.SESSION_COOKIE_NAME: _session()}

    result = resolver.resolve({}, cookies, NOW)

    assert result["session"]["source"] == "server_cookie"


def test_expired_session(resolver):
    raw = _session(expires_in=timedelta(hours=-1))

    result = resolver.resolve({}, {settings.SESSION_COOKIE_NAME: raw}, NOW)

    assert result["authenticated"] is False
    assert result["reason"] == "Session expired"
    assert result["expiredAt"] == to_iso_z(NOW - timedelta(hours=1))


def test_unknown_and_deactivated_users(resolver):
    unknown = resolver.resolve({}, {settings.SESSION_COOKIE_NAME: _session("who@school.org")}, NOW)
    inactive = resolver.resolve({}, {settings.SESSION_COOKIE_NAME: _session("former@school.org")}, NOW)

    assert unknown["reason"] == "User not found"
    assert inactive["reason"] == "Account deactivated"


def test_refresh_extends_both_cookies(resolver):
    cookies = {settings.SESSION_COOKIE_NAME: _session(), settings.CLIENT_SESSION_COOKIE_NAME: _session()}

    expires_at, server_cookie, client_cookie = resolver.refresh(cookies, NOW)

    assert expires_at == to_iso_z(NOW + timedelta(hours=settings.SESSION_DURATION_HOURS))
    assert decode_session(server_cookie)["expiresAt"] == expires_at
    assert decode_session(client_cookie)["email"] == "teacher@school.org"


def test_refresh_failures(resolver):
    with pytest.raises(UnauthorizedError, match="No active session"):
        resolver.refresh({settings.SESSION_COOKIE_NAME: _session()}, NOW)

    with pytest.raises(ValidationError, match="Invalid session data"):
        resolver.refresh({settings.SESSION_COOKIE_NAME: "x", settings.CLIENT_SESSION_COOKIE_NAME: _session()}, NOW)

    expired = _session(expires_in=timedelta(minutes=-5))
    with pytest.raises(UnauthorizedError, match="please login again"):
        resolver.refresh({settings.SESSION_COOKIE_NAME: expired, settings.CLIENT_SESSION_COOKIE_NAME: expired}, NOW)


def test_session_endpoint_without_cookies(client):
    response = client.get("/api/auth/session")

    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "reason": "No session found"}


def test_session_endpoint_and_refresh(client, store):
    store.add_teacher(TeacherAccount(email="teacher@school.org", name="Ms. Rivera"))
    now = datetime.now(timezone.utc)
    raw = encode_session({
        "email": "teacher@school.org",
        "authenticatedAt": to_iso_z(now),
        "expiresAt": to_iso_z(now + timedelta(hours=1)),
    })
    client.cookies.set(settings.SESSION_COOKIE_NAME, raw)
    client.cookies.set(settings.CLIENT_SESSION_COOKIE_NAME, raw)

    status_response = client.get("/api/auth/session")
    assert status_response.json()["authenticated"] is True
    assert status_response.json()["session"]["source"] == "client_cookie"

    refresh_response = client.post("/api/auth/session", json={"action": "refresh"})
    assert refresh_response.status_code == 200
    body = refresh_response.json()
    assert body["success"] is True
    assert decode_session(refresh_response.cookies[settings.SESSION_COOKIE_NAME])["expiresAt"] == body["expiresAt"]


def test_refresh_without_session_is_unauthorized(client):
    response = client.post("/api/auth/session", json={"action": "refresh"})

    assert response.status_code == 401


def test_unknown_session_action(client):
    response = client.post("/api/auth/session", json={"action": "logout"})

    assert response.status_code == 400

"""
Session status and refresh endpoints
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from learning_profile.config import settings
from learning_profile.models.schemas import SessionActionRequest
from learning_profile.services.session_service import SessionResolver
from learning_profile.utils.dependencies import get_session_resolver
from learning_profile.utils.error_handler import ValidationError

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.get("/session")
def session_status(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver)
):
    """Report whether the caller holds a valid session"""
    return resolver.resolve(request.headers, request.cookies)


@router.post("/session")
def session_action(
    body: SessionActionRequest,
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver)
):
    """
    Session actions

    - **action**: "refresh" extends both session cookies
    """
    if body.action != "refresh":
        raise ValidationError("Unknown action")

    expires_at, server_cookie, client_cookie = resolver.refresh(request.cookies)

    response = JSONResponse({
        "success": True,
        "message": "Session refreshed successfully",
        "expiresAt": expires_at
    })
    max_age = settings.SESSION_DURATION_HOURS * 60 * 60
    response.set_cookie(
        settings.SESSION_COOKIE_NAME, server_cookie,
        max_age=max_age, httponly=True, secure=not settings.DEBUG, samesite="strict", path="/"
    )
    response.set_cookie(
        settings.CLIENT_SESSION_COOKIE_NAME, client_cookie,
        max_age=max_age, httponly=False, secure=not settings.DEBUG, samesite="strict", path="/"
    )
    return response

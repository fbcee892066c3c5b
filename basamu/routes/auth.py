"""
Session routes: read the current session and sign out.
Sign-in itself happens against the hosted auth service.
"""
from fastapi import APIRouter, Depends, Response
from typing import Optional
import logging

from basamu.config import settings
from basamu.schemas import SessionResponse
from basamu.services.session_service import SessionContext
from basamu.utils.jwt_auth import get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/session", response_model=Optional[SessionResponse])
async def get_session(context: SessionContext = Depends(get_session_context)):
    """Current session, or null when signed out."""
    session = context.current()
    if session is None:
        return None
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        first_name=session.first_name,
        last_name=session.last_name,
    )


@router.post("/logout")
async def logout(response: Response, context: SessionContext = Depends(get_session_context)):
    """
    Sign out: notify session subscribers and clear the session cookie.
    """
    context.sign_out()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out successfully"}

"""
Session token verification.
Access tokens are issued by the hosted auth service and signed with the project JWT secret.
"""
import logging
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status, Header, Request
from basamu.config import settings
from basamu.services.session_service import Session, SessionContext

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def verify_token(token: str) -> dict:
    """
    Verify and decode an access token.

    Args:
        token: JWT token string

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid, expired, or malformed
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"}
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Token has no subject"}
        )

    return payload


def session_from_token(token: str) -> Session:
    payload = verify_token(token)
    metadata = payload.get("user_metadata") or {}
    return Session(
        user_id=payload["sub"],
        email=payload.get("email"),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        access_token=token,
    )


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    # Cookie first, then the Authorization header
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]
    return token


def get_session_context(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (fallback to cookie)")
) -> SessionContext:
    """
    FastAPI dependency building the session context for this request.
    A missing or invalid token yields an empty context rather than an error.
    """
    token = _extract_token(request, authorization)
    if not token:
        return SessionContext()

    try:
        return SessionContext(session_from_token(token))
    except HTTPException:
        logger.info(f"Ignoring invalid session token on {request.method} {request.url.path}")
        return SessionContext()


def require_session(context: SessionContext = Depends(get_session_context)) -> Session:
    """
    FastAPI dependency for endpoints that need a signed-in user.

    Raises:
        HTTPException: 401 if there is no valid session
    """
    session = context.current()
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not signed in", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )
    return session

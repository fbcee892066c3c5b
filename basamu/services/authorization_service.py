"""
Authorization gate: a user is an admin when a user_roles row with role 'admin' exists.
The check runs on every request that exposes admin-only controls; nothing is cached.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from basamu.database import get_db
from basamu.models import UserRole
from basamu.services.session_service import Session, SessionContext
from basamu.utils.errors import RoleLookupError
from basamu.utils.jwt_auth import get_session_context

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
ROLE_LOOKUP_FAILED = "Error verifying admin access"


@dataclass(frozen=True)
class AdminStatus:
    is_admin: bool
    error: Optional[str] = None


async def lookup_admin_role(db: AsyncSession, user_id: str) -> bool:
    """
    Check for an admin role row.

    Returns:
        bool: True if a row exists, False for zero rows

    Raises:
        RoleLookupError: The query itself failed
    """
    try:
        result = await db.execute(
            select(UserRole.id)
            .where(UserRole.user_id == user_id, UserRole.role == ADMIN_ROLE)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
    except SQLAlchemyError as e:
        raise RoleLookupError(str(e)) from e


async def check_admin(db: AsyncSession, session: Optional[Session]) -> AdminStatus:
    """
    Run the gate for the current session. Fails closed and never raises.
    """
    if session is None:
        return AdminStatus(is_admin=False)

    try:
        is_admin = await lookup_admin_role(db, session.user_id)
    except RoleLookupError as e:
        logger.error(f"Admin role lookup failed for user {session.user_id}: {str(e)}")
        return AdminStatus(is_admin=False, error=ROLE_LOOKUP_FAILED)

    if not is_admin:
        logger.info(f"User {session.user_id} has no admin role")
    return AdminStatus(is_admin=is_admin)


async def require_admin(
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
) -> Session:
    """
    FastAPI dependency gating admin endpoints.

    Raises:
        HTTPException: 401 without a session, 403 when the gate does not pass
    """
    session = context.current()
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Not signed in", "message": "Sign in to use the admin console"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    admin_status = await check_admin(db, session)
    if admin_status.error:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": admin_status.error, "message": admin_status.error}
        )
    if not admin_status.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Admin access required",
                "message": "You don't have admin access. Please contact an administrator."
            }
        )
    return session

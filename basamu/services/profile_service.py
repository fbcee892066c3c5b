"""
Profile management for the signed-in user. Users only ever touch their own row.
"""
import logging
import os
import time

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from basamu.config import settings
from basamu.models import Profile
from basamu.schemas import ProfileResponse, ProfileUpdate
from basamu.services.session_service import Session
from basamu.services.upload_service import IMAGE_UPLOAD, IncomingFile, upload
from basamu.utils.errors import MutationError

logger = logging.getLogger(__name__)


async def _load(db: AsyncSession, user_id: str):
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


def _to_response(session: Session, profile) -> ProfileResponse:
    # Session metadata fills in whatever the profile row lacks
    return ProfileResponse(
        id=session.user_id,
        email=session.email,
        first_name=(profile.first_name if profile else None) or session.first_name or "",
        last_name=(profile.last_name if profile else None) or session.last_name or "",
        avatar_url=profile.avatar_url if profile else None,
    )


async def get_profile(db: AsyncSession, session: Session) -> ProfileResponse:
    return _to_response(session, await _load(db, session.user_id))


async def _save(db: AsyncSession, session: Session, action: str, **values) -> ProfileResponse:
    try:
        profile = await _load(db, session.user_id)
        if profile is None:
            profile = Profile(id=session.user_id)
            db.add(profile)
        for field, value in values.items():
            setattr(profile, field, value)
        await db.commit()
        await db.refresh(profile)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{action} for user {session.user_id}: {str(e)}", exc_info=True)
        raise MutationError(action) from e

    return _to_response(session, profile)


async def update_profile(db: AsyncSession, session: Session, data: ProfileUpdate) -> ProfileResponse:
    """
    Save trimmed names to the user's profile row.

    Only `profiles` is written. The hosted auth service's user metadata is not
    updated, so names carried in the access token (and returned by
    /auth/session) stay as they were until the user changes them there.
    """
    profile = await _save(
        db, session, "Failed to update profile",
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
    )
    logger.info(f"Updated profile for user {session.user_id}")
    return profile


async def replace_avatar(db: AsyncSession, store, session: Session, file: IncomingFile) -> ProfileResponse:
    """
    Upload the avatar to `<user id>/avatar`, overwriting the previous one,
    and store its URL with a cache buster so clients refetch it.
    """
    ext = os.path.splitext(file.filename)[1].lower()
    result = await upload(
        file,
        settings.AVATARS_BUCKET,
        IMAGE_UPLOAD,
        store,
        path=f"{session.user_id}/avatar{ext}",
        overwrite=True,
    )
    avatar_url = f"{result.url}?t={int(time.time() * 1000)}"

    profile = await _save(db, session, "Failed to update profile picture", avatar_url=avatar_url)
    logger.info(f"Updated avatar for user {session.user_id}")
    return profile

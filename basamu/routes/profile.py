"""
Profile routes for the signed-in user.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from basamu.database import get_db
from basamu.schemas import ProfileResponse, ProfileUpdate
from basamu.services import profile_service
from basamu.services.session_service import Session
from basamu.services.storage_service import get_blob_store
from basamu.services.upload_service import read_upload
from basamu.utils.jwt_auth import require_session

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_session),
):
    return await profile_service.get_profile(db, session)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(require_session),
):
    return await profile_service.update_profile(db, session, data)


@router.post("/avatar", response_model=ProfileResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store=Depends(get_blob_store),
    session: Session = Depends(require_session),
):
    """
    Replace the profile picture (images up to 5 MB).
    """
    incoming = await read_upload(file)
    return await profile_service.replace_avatar(db, store, session, incoming)

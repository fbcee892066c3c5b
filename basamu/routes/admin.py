"""
Admin console API routes.
Every endpoint except /admin/status runs the authorization gate first.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from basamu.database import get_db
from basamu.schemas import (
    AdminStatusResponse,
    BoundUploadResponse,
    CulturalImageDeleteResponse,
    CulturalImageDraft,
    CulturalImageResponse,
    CulturalImageSubmission,
    EventDraft,
    EventResponse,
    EventUpdate,
    ExecutiveDraft,
    ExecutiveResponse,
    ExecutiveUpdate,
    HomeContentPatch,
    HomeContentResponse,
    SubmissionResponse,
)
from basamu.services.admin_console import AdminConsole
from basamu.services.authorization_service import check_admin, require_admin
from basamu.services.session_service import Session, SessionContext
from basamu.services.storage_service import get_blob_store
from basamu.services.upload_service import UPLOAD_TARGETS, bind_upload, read_upload, upload
from basamu.utils.errors import ContentNotFoundError
from basamu.utils.jwt_auth import get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

# Upload target -> (draft type, draft field receiving the URL)
UPLOAD_DRAFT_FIELDS = {
    "executive-photo": (ExecutiveDraft, "photo_url"),
    "event-media": (EventDraft, "image_url"),
    "cultural-image": (CulturalImageDraft, "image_url"),
}


async def get_console(
    db: AsyncSession = Depends(get_db),
    store=Depends(get_blob_store),
    context: SessionContext = Depends(get_session_context),
    admin: Session = Depends(require_admin),
):
    """
    FastAPI dependency mounting the admin console for one request.
    """
    console = AdminConsole(db, store, context).mount()
    try:
        yield console
    finally:
        console.unmount()


def _images(images) -> List[CulturalImageResponse]:
    return [CulturalImageResponse.model_validate(img) for img in images]


@router.get("/status", response_model=AdminStatusResponse)
async def get_admin_status(
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """
    Report whether the current session passes the authorization gate.
    Lookup failures report is_admin=false together with an error message.
    """
    admin_status = await check_admin(db, context.current())
    return AdminStatusResponse(is_admin=admin_status.is_admin, error=admin_status.error)


@router.post("/uploads/{target}", response_model=BoundUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    target: str,
    file: UploadFile = File(...),
    draft: Optional[str] = Form(None, description="Current draft as JSON; returned with the URL bound"),
    console: AdminConsole = Depends(get_console),
):
    """
    Upload a photo or event media file and bind its URL into the draft.

    Targets: executive-photo, event-media (images up to 5 MB, video up to 50 MB),
    cultural-image.
    """
    if target not in UPLOAD_TARGETS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Unknown upload target", "detail": f"Valid targets: {', '.join(UPLOAD_TARGETS)}"}
        )

    bucket, constraints = UPLOAD_TARGETS[target]
    draft_cls, field = UPLOAD_DRAFT_FIELDS[target]

    try:
        current = draft_cls.model_validate_json(draft) if draft else draft_cls()
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid draft", "detail": e.errors(include_url=False)}
        )

    incoming = await read_upload(file)
    result = await upload(incoming, bucket, constraints, console.store)
    bound = bind_upload(current, field, result)

    return BoundUploadResponse(
        url=result.url,
        path=result.path,
        bucket=result.bucket,
        media_kind=result.media_kind,
        draft=bound.model_dump(mode="json"),
    )


# Executives


@router.post(
    "/executives",
    response_model=SubmissionResponse[ExecutiveResponse, ExecutiveDraft],
    status_code=status.HTTP_201_CREATED,
)
async def add_executive(draft: ExecutiveDraft, console: AdminConsole = Depends(get_console)):
    executive, next_draft = await console.add_executive(draft)
    return SubmissionResponse[ExecutiveResponse, ExecutiveDraft](
        message="Executive added successfully",
        record=ExecutiveResponse.model_validate(executive),
        draft=next_draft,
    )


@router.put("/executives/{executive_id}", response_model=ExecutiveResponse)
async def update_executive(
    executive_id: str,
    patch: ExecutiveUpdate,
    console: AdminConsole = Depends(get_console),
):
    executive = await console.update_executive(executive_id, patch)
    return ExecutiveResponse.model_validate(executive)


@router.put("/executives/{executive_id}/photo", response_model=ExecutiveResponse)
async def replace_executive_photo(
    executive_id: str,
    file: UploadFile = File(...),
    console: AdminConsole = Depends(get_console),
):
    """
    Upload a new photo and point the executive at it.
    The record is not touched if the upload fails.
    """
    incoming = await read_upload(file)
    executive = await console.replace_executive_photo(executive_id, incoming)
    return ExecutiveResponse.model_validate(executive)


# Events


@router.post(
    "/events",
    response_model=SubmissionResponse[EventResponse, EventDraft],
    status_code=status.HTTP_201_CREATED,
)
async def add_event(draft: EventDraft, console: AdminConsole = Depends(get_console)):
    event, next_draft = await console.add_event(draft)
    return SubmissionResponse[EventResponse, EventDraft](
        message="Event added successfully",
        record=EventResponse.model_validate(event),
        draft=next_draft,
    )


@router.put("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    patch: EventUpdate,
    console: AdminConsole = Depends(get_console),
):
    """
    Edit title, description, date and media link. The image cannot be changed.
    """
    event = await console.update_event(event_id, patch)
    return EventResponse.model_validate(event)


# Cultural images


@router.get("/cultural-images", response_model=List[CulturalImageResponse])
async def list_cultural_images(console: AdminConsole = Depends(get_console)):
    """
    Gallery management list, newest first.
    """
    try:
        images = await console.list_cultural_images()
        logger.info(f"Retrieved {len(images)} cultural images for admin console")
        return _images(images)
    except Exception as e:
        logger.error(f"Error fetching cultural images: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve cultural images", "detail": "See server logs for details"}
        )


@router.post("/cultural-images", response_model=CulturalImageSubmission, status_code=status.HTTP_201_CREATED)
async def add_cultural_image(draft: CulturalImageDraft, console: AdminConsole = Depends(get_console)):
    image, next_draft = await console.add_cultural_image(draft)
    images = await console.list_cultural_images()
    return CulturalImageSubmission(
        message="Cultural image added successfully",
        record=CulturalImageResponse.model_validate(image),
        draft=next_draft,
        images=_images(images),
    )


@router.delete("/cultural-images/{image_id}", response_model=CulturalImageDeleteResponse)
async def delete_cultural_image(image_id: str, console: AdminConsole = Depends(get_console)):
    """
    Delete an image from storage and the gallery.
    Succeeds when the row is deleted, even if the stored file could not be removed.
    """
    storage_deleted = await console.delete_cultural_image(image_id)
    images = await console.list_cultural_images()
    return CulturalImageDeleteResponse(
        message="Image deleted successfully",
        image_id=image_id,
        storage_deleted=storage_deleted,
        images=_images(images),
    )


# Home content


@router.get("/home-content", response_model=HomeContentResponse)
async def get_home_content(console: AdminConsole = Depends(get_console)):
    """
    Current home content. The returned id must accompany the next update.
    """
    content = await console.fetch_home_content()
    if content is None:
        raise ContentNotFoundError(detail="No home content row exists")
    return HomeContentResponse.model_validate(content)


@router.put("/home-content", response_model=SubmissionResponse[HomeContentResponse, HomeContentPatch])
async def update_home_content(patch: HomeContentPatch, console: AdminConsole = Depends(get_console)):
    content, next_draft = await console.update_home_content(patch)
    return SubmissionResponse[HomeContentResponse, HomeContentPatch](
        message="Home content updated successfully",
        record=HomeContentResponse.model_validate(content),
        draft=next_draft,
    )

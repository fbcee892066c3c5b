"""
Admin console orchestration for executives, events, cultural images and home content.

Every form follows the same sequence: validate the draft locally, upload if a file
is involved, persist with a single insert or update, then report what the form
should show next. On failure the caller's draft is left untouched.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from basamu.config import settings
from basamu.models import CulturalImage, Event, Executive, HomeContent, MediaKind
from basamu.schemas import (
    CulturalImageDraft,
    EventDraft,
    EventUpdate,
    ExecutiveDraft,
    ExecutiveUpdate,
    HomeContentPatch,
)
from basamu.services.session_service import Session, SessionContext
from basamu.services.storage_service import resource_type_for_url, storage_path_from_url
from basamu.services.upload_service import IMAGE_UPLOAD, IncomingFile, upload
from basamu.utils.errors import (
    AdminAccessError,
    ContentNotFoundError,
    DraftValidationError,
    MutationError,
    RecordNotFoundError,
    SubmissionInProgressError,
)

logger = logging.getLogger(__name__)

# (user id, form) pairs with a submission outstanding
_in_flight: Set[Tuple[str, str]] = set()

EXECUTIVE_REQUIRED = {"name": "Name", "position": "Position", "role": "Role", "year": "Year"}
EVENT_REQUIRED = {"title": "Event title", "description": "Description"}
HOME_REQUIRED = {
    "hero_title": "Hero title",
    "hero_subtitle": "Hero subtitle",
    "mission_text": "Mission",
    "vision_text": "Vision",
    "slogan": "Slogan",
}


def parse_rank(value: Any) -> int:
    """Parse a rank as typed into the form; anything unparsable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def _missing_fields(values: Dict[str, Any], required: Dict[str, str], only: Optional[Iterable[str]] = None) -> Dict[str, str]:
    fields = required if only is None else {k: v for k, v in required.items() if k in only}
    errors = {}
    for field, label in fields.items():
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[field] = f"{label} is required"
    return errors


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def form_key(form: str, record_id: str) -> str:
    """Per-record form name, so edits of different records do not block each other."""
    return f"{form}:{record_id}"


@asynccontextmanager
async def pending(user_id: str, form: str):
    """
    Hold the form as in-flight for the duration of a submission.

    Raises:
        SubmissionInProgressError: The same user already has this form in flight
    """
    key = (user_id, form)
    if key in _in_flight:
        raise SubmissionInProgressError(detail=f"The {form.split(':', 1)[0]} form is still being submitted")
    _in_flight.add(key)
    try:
        yield
    finally:
        _in_flight.discard(key)


class AdminConsole:
    """
    Admin console bound to one request. Mounting subscribes to the session context;
    a session change revokes the console until the gate runs again.
    """

    def __init__(self, db: AsyncSession, store, context: SessionContext):
        self.db = db
        self.store = store
        self.context = context
        self.session: Optional[Session] = context.current()
        self._unsubscribe = None

    def mount(self) -> "AdminConsole":
        self._unsubscribe = self.context.subscribe(self._on_session_change)
        return self

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_change(self, session: Optional[Session]) -> None:
        logger.info("Session changed while the admin console was mounted")
        self.session = None

    def _user_id(self) -> str:
        if self.session is None:
            raise AdminAccessError(detail="Session ended; sign in again")
        return self.session.user_id

    async def _commit_or_fail(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{action}: {str(e)}", exc_info=True)
            raise MutationError(action) from e

    async def _get(self, model, record_id: str, label: str):
        result = await self.db.execute(select(model).where(model.id == record_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(f"{label} not found", detail=f"{label} {record_id} does not exist")
        return record

    # Executives

    async def add_executive(self, draft: ExecutiveDraft) -> Tuple[Executive, ExecutiveDraft]:
        errors = _missing_fields(draft.model_dump(), EXECUTIVE_REQUIRED)
        if errors:
            raise DraftValidationError(errors)

        async with pending(self._user_id(), "executive"):
            executive = Executive(
                name=draft.name.strip(),
                position=draft.position.strip(),
                role=draft.role.strip(),
                year=draft.year.strip(),
                rank=parse_rank(draft.rank),
                photo_url=_clean(draft.photo_url),
                email=_clean(draft.email),
            )
            self.db.add(executive)
            await self._commit_or_fail("Failed to add executive")
            await self.db.refresh(executive)

        logger.info(f"Added executive {executive.id} ({executive.name}, {executive.year})")
        return executive, ExecutiveDraft()

    async def update_executive(self, executive_id: str, patch: ExecutiveUpdate) -> Executive:
        values = patch.model_dump(exclude_unset=True)
        errors = _missing_fields(values, EXECUTIVE_REQUIRED, only=values.keys())
        if errors:
            raise DraftValidationError(errors)

        if "rank" in values:
            values["rank"] = parse_rank(values["rank"])
        if "email" in values:
            values["email"] = _clean(values["email"])
        for field in EXECUTIVE_REQUIRED:
            if field in values:
                values[field] = values[field].strip()

        async with pending(self._user_id(), form_key("executive-edit", executive_id)):
            executive = await self._get(Executive, executive_id, "Executive")
            for field, value in values.items():
                setattr(executive, field, value)
            await self._commit_or_fail("Failed to update executive")
            await self.db.refresh(executive)

        logger.info(f"Updated executive {executive_id}: {sorted(values)}")
        return executive

    async def replace_executive_photo(self, executive_id: str, file: IncomingFile) -> Executive:
        async with pending(self._user_id(), form_key("executive-photo", executive_id)):
            executive = await self._get(Executive, executive_id, "Executive")
            result = await upload(file, settings.EXECUTIVE_PHOTOS_BUCKET, IMAGE_UPLOAD, self.store)
            executive.photo_url = result.url
            await self._commit_or_fail("Failed to update executive photo")
            await self.db.refresh(executive)

        logger.info(f"Replaced photo for executive {executive_id}")
        return executive

    # Events

    async def add_event(self, draft: EventDraft) -> Tuple[Event, EventDraft]:
        errors = _missing_fields(draft.model_dump(), EVENT_REQUIRED)
        if errors:
            raise DraftValidationError(errors)

        image_url = _clean(draft.image_url)
        media_kind = draft.media_kind or (MediaKind.IMAGE if image_url else None)

        async with pending(self._user_id(), "event"):
            event = Event(
                title=draft.title.strip(),
                description=draft.description.strip(),
                event_date=draft.event_date,
                media_link=_clean(draft.media_link),
                image_url=image_url,
                media_kind=media_kind.value if image_url and media_kind else None,
            )
            self.db.add(event)
            await self._commit_or_fail("Failed to add event")
            await self.db.refresh(event)

        logger.info(f"Added event {event.id} ({event.title})")
        return event, EventDraft()

    async def update_event(self, event_id: str, patch: EventUpdate) -> Event:
        values = patch.model_dump(exclude_unset=True)
        errors = _missing_fields(values, EVENT_REQUIRED, only=values.keys())
        if errors:
            raise DraftValidationError(errors)

        for field in EVENT_REQUIRED:
            if field in values:
                values[field] = values[field].strip()
        if "media_link" in values:
            values["media_link"] = _clean(values["media_link"])

        async with pending(self._user_id(), form_key("event-edit", event_id)):
            event = await self._get(Event, event_id, "Event")
            for field, value in values.items():
                setattr(event, field, value)
            await self._commit_or_fail("Failed to update event")
            await self.db.refresh(event)

        logger.info(f"Updated event {event_id}: {sorted(values)}")
        return event

    # Cultural images

    async def list_cultural_images(self) -> List[CulturalImage]:
        result = await self.db.execute(
            select(CulturalImage).order_by(CulturalImage.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_cultural_image(self, draft: CulturalImageDraft) -> Tuple[CulturalImage, CulturalImageDraft]:
        errors = {}
        if not draft.image_url.strip():
            errors["image_url"] = "Upload an image before adding it to the gallery"
        if not draft.caption.strip():
            errors["caption"] = "Caption is required"
        if errors:
            raise DraftValidationError(errors)

        async with pending(self._user_id(), "cultural-image"):
            image = CulturalImage(image_url=draft.image_url.strip(), caption=draft.caption.strip())
            self.db.add(image)
            await self._commit_or_fail("Failed to add cultural image")
            await self.db.refresh(image)

        logger.info(f"Added cultural image {image.id}")
        return image, CulturalImageDraft()

    async def delete_cultural_image(self, image_id: str) -> bool:
        """
        Delete the blob, then the row. The row deletion decides success;
        a failed blob deletion is logged and reported as `False`.

        Returns:
            bool: Whether the blob was deleted
        """
        bucket = settings.CULTURAL_IMAGES_BUCKET

        async with pending(self._user_id(), form_key("cultural-image-delete", image_id)):
            image = await self._get(CulturalImage, image_id, "Image")

            storage_deleted = False
            try:
                path = storage_path_from_url(image.image_url, bucket)
                await self.store.delete_file(bucket, path, resource_type=resource_type_for_url(image.image_url))
                storage_deleted = True
            except Exception as e:
                logger.error(
                    f"Failed to delete blob for cultural image {image_id} ({image.image_url}): {str(e)}",
                    exc_info=True
                )

            try:
                await self.db.execute(delete(CulturalImage).where(CulturalImage.id == image_id))
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to delete cultural image {image_id}: {str(e)}", exc_info=True)
                raise MutationError("Failed to delete image") from e
            await self._commit_or_fail("Failed to delete image")

        logger.info(f"Deleted cultural image {image_id} (storage deleted: {storage_deleted})")
        return storage_deleted

    # Home content

    async def fetch_home_content(self) -> Optional[HomeContent]:
        result = await self.db.execute(select(HomeContent).limit(1))
        return result.scalar_one_or_none()

    async def update_home_content(self, patch: HomeContentPatch) -> Tuple[HomeContent, HomeContentPatch]:
        """
        Update the singleton row identified by the last fetch. Never inserts.

        Raises:
            ContentNotFoundError: No identifier, or no row with that identifier
        """
        if not patch.id:
            raise ContentNotFoundError(detail="Home content has not been loaded; nothing to update")

        values = patch.model_dump(exclude={"id"})
        errors = _missing_fields(values, HOME_REQUIRED)
        if errors:
            raise DraftValidationError(errors)

        for field in HOME_REQUIRED:
            values[field] = values[field].strip()
        values["hero_image_url"] = _clean(values["hero_image_url"])
        values["chairperson_email"] = _clean(values["chairperson_email"])

        async with pending(self._user_id(), "home-content"):
            try:
                result = await self.db.execute(
                    update(HomeContent).where(HomeContent.id == patch.id).values(**values)
                )
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to update home content: {str(e)}", exc_info=True)
                raise MutationError("Failed to update home content") from e

            if result.rowcount == 0:
                await self.db.rollback()
                raise ContentNotFoundError(detail=f"Home content {patch.id} does not exist")

            await self._commit_or_fail("Failed to update home content")
            content = await self._get(HomeContent, patch.id, "Home content")
            await self.db.refresh(content)

        logger.info(f"Updated home content {patch.id}")
        return content, patch

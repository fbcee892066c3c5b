"""
Pydantic schemas for request and response data validation.
Drafts are the in-progress form values submitted by the admin console.
"""
from pydantic import BaseModel, ConfigDict, field_validator
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from basamu.models import MediaKind


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Records


class ExecutiveResponse(BaseModel):
    id: str
    name: str
    position: str
    role: str
    year: str
    rank: int
    photo_url: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    event_date: Optional[date] = None
    media_link: Optional[str] = None
    image_url: Optional[str] = None
    media_kind: Optional[MediaKind] = None

    model_config = ConfigDict(from_attributes=True)


class CulturalImageResponse(BaseModel):
    id: str
    image_url: str
    caption: str
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            datetime: lambda v: v.isoformat()
        }
    )


class HomeContentResponse(BaseModel):
    """
    Home page copy. `id` is None when no row exists and defaults are served.
    """
    id: Optional[str] = None
    hero_title: str
    hero_subtitle: str
    mission_text: str
    vision_text: str
    slogan: str
    hero_image_url: Optional[str] = None
    chairperson_email: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Drafts


class ExecutiveDraft(BaseModel):
    """Add-executive form. Rank is accepted as typed and parsed leniently."""
    name: str = ""
    position: str = ""
    role: str = ""
    year: str = ""
    rank: Optional[Union[int, str]] = None
    photo_url: Optional[str] = None
    email: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def coerce_year(cls, v):
        # Older clients send the year as an integer
        return str(v) if isinstance(v, int) else v


class ExecutiveUpdate(BaseModel):
    """Detail edit for an existing executive. Omitted fields are left unchanged."""
    name: Optional[str] = None
    position: Optional[str] = None
    role: Optional[str] = None
    year: Optional[str] = None
    rank: Optional[Union[int, str]] = None
    email: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("year", mode="before")
    @classmethod
    def coerce_year(cls, v):
        return str(v) if isinstance(v, int) else v


class EventDraft(BaseModel):
    title: str = ""
    description: str = ""
    event_date: Optional[date] = None
    media_link: Optional[str] = None
    image_url: Optional[str] = None
    media_kind: Optional[MediaKind] = None

    @field_validator("event_date", "media_link", "image_url", "media_kind", mode="before")
    @classmethod
    def blank_is_null(cls, v):
        return _blank_to_none(v)


class EventUpdate(BaseModel):
    """Edit dialog for an event. The image is fixed at creation and cannot be changed here."""
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[date] = None
    media_link: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("event_date", "media_link", mode="before")
    @classmethod
    def blank_is_null(cls, v):
        return _blank_to_none(v)


class CulturalImageDraft(BaseModel):
    image_url: str = ""
    caption: str = ""


class HomeContentPatch(BaseModel):
    """
    Home content form. `id` must be the identifier returned by the last fetch.
    """
    id: Optional[str] = None
    hero_title: str = ""
    hero_subtitle: str = ""
    mission_text: str = ""
    vision_text: str = ""
    slogan: str = ""
    hero_image_url: Optional[str] = None
    chairperson_email: Optional[str] = None

    @field_validator("id", "hero_image_url", "chairperson_email", mode="before")
    @classmethod
    def blank_is_null(cls, v):
        return _blank_to_none(v)


# Submissions

RecordT = TypeVar("RecordT")
DraftT = TypeVar("DraftT")


class SubmissionResponse(BaseModel, Generic[RecordT, DraftT]):
    """
    Result of a successful form submission.
    `draft` is what the form should show next: blank for new-record forms.
    """
    message: str
    record: RecordT
    draft: DraftT


class CulturalImageSubmission(SubmissionResponse[CulturalImageResponse, CulturalImageDraft]):
    images: List[CulturalImageResponse]


class CulturalImageDeleteResponse(BaseModel):
    message: str
    image_id: str
    storage_deleted: bool
    images: List[CulturalImageResponse]


# Uploads


class UploadResponse(BaseModel):
    url: str
    path: str
    bucket: str
    media_kind: MediaKind


class BoundUploadResponse(UploadResponse):
    """Upload result plus the submitted draft with the URL bound into it."""
    draft: Dict[str, Any]


# Session / authorization


class SessionResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AdminStatusResponse(BaseModel):
    is_admin: bool
    error: Optional[str] = None


# Public views

ViewState = Literal["ready", "empty", "filtered_empty"]


class GalleryItem(BaseModel):
    image_url: str
    caption: str


class HomeViewResponse(BaseModel):
    content: HomeContentResponse
    gallery: List[GalleryItem]
    placeholder_gallery: bool


class ExecutivesViewResponse(BaseModel):
    executives: List[ExecutiveResponse]
    years: List[str]
    selected_year: str
    state: ViewState
    can_edit: bool
    notice: Optional[str] = None


class EventsViewResponse(BaseModel):
    events: List[EventResponse]
    years: List[int]
    search: str
    year: str
    order: Literal["newest", "oldest"]
    state: ViewState
    can_edit: bool
    notice: Optional[str] = None


# Profile


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    avatar_url: Optional[str] = None


class ProfileUpdate(BaseModel):
    first_name: str = ""
    last_name: str = ""

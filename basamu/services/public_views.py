"""
Read path for the public pages: home, executives roster and events.
Collections are fetched once per view; search, year filters and sort order
are applied locally to the fetched rows.
"""
import logging
from typing import Iterable, List, Literal, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from basamu.models import CulturalImage, Event, Executive, HomeContent
from basamu.schemas import EventResponse, ExecutiveResponse, GalleryItem, HomeContentResponse, HomeViewResponse

logger = logging.getLogger(__name__)

ALL_YEARS = "all"

DEFAULT_HOME_CONTENT = HomeContentResponse(
    hero_title="Welcome to BASAMU",
    hero_subtitle="Banyankore Students Association at Muni University.",
    mission_text=(
        "BASAMU is dedicated to celebrating, preserving, and promoting the rich cultural heritage "
        "of Western Uganda. We bring students together to foster unity, showcase our traditions, "
        "and create lasting bonds through cultural events, educational initiatives, and community engagement."
    ),
    vision_text="A united student community that carries the heritage of Ankole with pride.",
    slogan="Our culture, our pride",
)

# Bundled with the frontend build
PLACEHOLDER_GALLERY = [
    GalleryItem(image_url="/assets/gallery-1.jpg", caption="Traditional celebration with vibrant cultural attire"),
    GalleryItem(image_url="/assets/gallery-2.jpg", caption="Handcrafted baskets and pottery showcasing our artisan heritage"),
    GalleryItem(image_url="/assets/gallery-3.jpg", caption="Western Uganda landscape at golden hour"),
]


def view_state(total: int, visible: int) -> str:
    """'empty' when nothing exists, 'filtered_empty' when filters hid everything."""
    if total == 0:
        return "empty"
    if visible == 0:
        return "filtered_empty"
    return "ready"


# Home


async def load_home_view(db: AsyncSession) -> HomeViewResponse:
    content_result = await db.execute(select(HomeContent).limit(1))
    content = content_result.scalar_one_or_none()

    images_result = await db.execute(
        select(CulturalImage).order_by(CulturalImage.created_at.desc())
    )
    images = images_result.scalars().all()

    if images:
        gallery = [GalleryItem(image_url=img.image_url, caption=img.caption) for img in images]
    else:
        gallery = list(PLACEHOLDER_GALLERY)

    return HomeViewResponse(
        content=HomeContentResponse.model_validate(content) if content else DEFAULT_HOME_CONTENT,
        gallery=gallery,
        placeholder_gallery=not images,
    )


# Executives


async def fetch_executives(db: AsyncSession) -> List[ExecutiveResponse]:
    result = await db.execute(
        select(Executive).order_by(Executive.rank.asc(), Executive.year.desc())
    )
    return [ExecutiveResponse.model_validate(e) for e in result.scalars().all()]


def executive_years(executives: Iterable[ExecutiveResponse]) -> List[str]:
    return sorted({e.year for e in executives}, reverse=True)


def filter_executives(executives: Sequence[ExecutiveResponse], year: str = ALL_YEARS) -> List[ExecutiveResponse]:
    if not year or year == ALL_YEARS:
        return list(executives)
    return [e for e in executives if e.year == year]


# Events


async def fetch_events(db: AsyncSession) -> List[EventResponse]:
    result = await db.execute(
        select(Event).order_by(Event.event_date.desc().nullslast(), Event.created_at.desc())
    )
    return [EventResponse.model_validate(e) for e in result.scalars().all()]


def event_years(events: Iterable[EventResponse]) -> List[int]:
    return sorted({e.event_date.year for e in events if e.event_date}, reverse=True)


def filter_events(
    events: Sequence[EventResponse],
    search: str = "",
    year: str = ALL_YEARS,
    order: Literal["newest", "oldest"] = "newest",
) -> List[EventResponse]:
    """
    Text search over title and description, year filter, then sort by date.
    Undated events sort after dated ones in either order.
    """
    needle = search.strip().lower()
    visible = [
        e for e in events
        if not needle or needle in e.title.lower() or needle in e.description.lower()
    ]

    if year and year != ALL_YEARS:
        visible = [e for e in visible if e.event_date and str(e.event_date.year) == year]

    dated = [e for e in visible if e.event_date]
    undated = [e for e in visible if not e.event_date]
    dated.sort(key=lambda e: e.event_date, reverse=(order == "newest"))
    return dated + undated

"""
Public routes for the home page, executives roster and events.
Admin edit affordances are reported per view after running the authorization gate.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Literal
import logging

from basamu.database import get_db
from basamu.schemas import EventsViewResponse, ExecutivesViewResponse, HomeViewResponse
from basamu.services import public_views
from basamu.services.authorization_service import check_admin
from basamu.services.session_service import SessionContext
from basamu.utils.jwt_auth import get_session_context

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/home", response_model=HomeViewResponse)
async def get_home(db: AsyncSession = Depends(get_db)):
    """
    Home page content and cultural gallery.
    Serves default copy when no home content row exists and placeholder
    images when the gallery is empty.
    """
    try:
        view = await public_views.load_home_view(db)
        logger.info(f"Home view: {len(view.gallery)} gallery items (placeholder: {view.placeholder_gallery})")
        return view
    except Exception as e:
        logger.error(f"Failed to load home page: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to load home page", "detail": "See server logs for details"}
        )


@router.get("/executives", response_model=ExecutivesViewResponse)
async def get_executives(
    year: str = Query(public_views.ALL_YEARS, description="Year label to show, or 'all'"),
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """
    Leadership roster ordered by rank, then year (newest first).
    """
    try:
        executives = await public_views.fetch_executives(db)
    except Exception as e:
        logger.error(f"Failed to retrieve executives: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve executives", "detail": "See server logs for details"}
        )

    visible = public_views.filter_executives(executives, year)
    admin_status = await check_admin(db, context.current())

    return ExecutivesViewResponse(
        executives=visible,
        years=public_views.executive_years(executives),
        selected_year=year,
        state=public_views.view_state(len(executives), len(visible)),
        can_edit=admin_status.is_admin,
        notice=admin_status.error,
    )


@router.get("/events", response_model=EventsViewResponse)
async def get_events(
    search: str = "",
    year: str = Query(public_views.ALL_YEARS, description="Calendar year, or 'all'"),
    order: Literal["newest", "oldest"] = "newest",
    db: AsyncSession = Depends(get_db),
    context: SessionContext = Depends(get_session_context),
):
    """
    Events, searchable by text and filterable by year.
    """
    try:
        events = await public_views.fetch_events(db)
    except Exception as e:
        logger.error(f"Failed to retrieve events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve events", "detail": "See server logs for details"}
        )

    visible = public_views.filter_events(events, search=search, year=year, order=order)
    admin_status = await check_admin(db, context.current())

    return EventsViewResponse(
        events=visible,
        years=public_views.event_years(events),
        search=search,
        year=year,
        order=order,
        state=public_views.view_state(len(events), len(visible)),
        can_edit=admin_status.is_admin,
        notice=admin_status.error,
    )

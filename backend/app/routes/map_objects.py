"""
Guidepost Backend — Place and Event Handlers
==============================================

What:  Single-object reads for places and events.
How:   Same lookups the route aggregation uses, so a place shown inside a
       route and on its own card are always the same shape.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.route import EventResponse, PlaceResponse
from app.services import entity_lookup

router = APIRouter(prefix="/api", tags=["Places & Events"])

_ERRORS = {
    401: {"description": "Missing, invalid or expired launch parameters", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.get(
    "/places/{place_id}",
    response_model=PlaceResponse,
    responses={404: {"description": "Place not found", "model": ErrorResponse}, **_ERRORS},
    summary="Get a place",
)
async def get_place(
    place_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> PlaceResponse:
    return await entity_lookup.get_place(db, place_id)


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    responses={404: {"description": "Event not found", "model": ErrorResponse}, **_ERRORS},
    summary="Get an event",
)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    return await entity_lookup.get_event(db, event_id)

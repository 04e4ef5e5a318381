"""
Guidepost Backend — Place / Event Point Lookups
=================================================

What:  Read-only fetch of one Place or Event by id.
Who:   ReferenceResolver (one call per route reference) and the single
       place/event endpoints.

Failure classes are kept apart on purpose:
    - row missing or soft-deleted → NotFoundError (resolver drops the reference)
    - storage/transport failure   → DatabaseError (the whole read fails)
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.event import Event
from app.models.place import Place
from app.schemas.route import EventResponse, PlaceResponse

logger = logging.getLogger(__name__)


async def get_place(db: AsyncSession, place_id: UUID) -> PlaceResponse:
    """
    Fetch a non-deleted place.

    Raises:
        NotFoundError: No such place, or it is soft-deleted.
        DatabaseError: Query execution failed.
    """
    try:
        result = await db.execute(
            select(Place).where(Place.id == place_id, Place.is_deleted.is_(False))
        )
        place = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("Database error fetching place %s: %s", place_id, str(e))
        raise DatabaseError(context={"place_id": str(place_id)}) from e

    if place is None:
        raise NotFoundError(resource="place", resource_id=str(place_id))
    return PlaceResponse.model_validate(place)


async def get_event(db: AsyncSession, event_id: UUID) -> EventResponse:
    """
    Fetch a non-deleted event.

    Raises:
        NotFoundError: No such event, or it is soft-deleted.
        DatabaseError: Query execution failed.
    """
    try:
        result = await db.execute(
            select(Event).where(Event.id == event_id, Event.is_deleted.is_(False))
        )
        event = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("Database error fetching event %s: %s", event_id, str(e))
        raise DatabaseError(context={"event_id": str(event_id)}) from e

    if event is None:
        raise NotFoundError(resource="event", resource_id=str(event_id))
    return EventResponse.model_validate(event)

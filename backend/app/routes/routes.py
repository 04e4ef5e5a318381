"""
Guidepost Backend — Route Handlers
====================================

What:  HTTP endpoints for routes (the walking/visiting itineraries).
How:   Extracts path/body parameters, delegates to RouteService, returns
       RouteWithGeo. Authentication already happened in middleware; writes
       read the caller from get_identity.

Endpoints:
    GET   /api/routes                        all routes
    GET   /api/routes/search/{query}         name/description search
    GET   /api/routes/company/{company_id}   one company's routes
    GET   /api/routes/{route_id}             one route
    POST  /api/routes                        create (company owner or admin)
    PATCH /api/routes/{route_id}             partial edit (same rule)
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.middleware.auth import get_identity
from app.schemas.common import ErrorResponse
from app.schemas.route import RouteCreateRequest, RouteUpdateRequest, RouteWithGeo
from app.services.auth_service import VerifiedIdentity
from app.services.route_service import route_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routes", tags=["Routes"])

_READ_ERRORS = {
    401: {"description": "Missing, invalid or expired launch parameters", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
    504: {"description": "Resolving places/events timed out", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[RouteWithGeo],
    responses=_READ_ERRORS,
    summary="List all routes",
)
async def list_routes(
    db: AsyncSession = Depends(get_db_session),
) -> List[RouteWithGeo]:
    return await route_service.list_routes(db)


@router.get(
    "/search/{query}",
    response_model=List[RouteWithGeo],
    responses={400: {"description": "Query too short", "model": ErrorResponse}, **_READ_ERRORS},
    summary="Search routes by name or description",
)
async def search_routes(
    query: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[RouteWithGeo]:
    """Case-insensitive substring match; the query must be at least 2 characters."""
    return await route_service.search_routes(db, query)


@router.get(
    "/company/{company_id}",
    response_model=List[RouteWithGeo],
    responses=_READ_ERRORS,
    summary="List a company's routes",
)
async def list_company_routes(
    company_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[RouteWithGeo]:
    return await route_service.list_company_routes(db, company_id)


@router.get(
    "/{route_id}",
    response_model=RouteWithGeo,
    responses={404: {"description": "Route not found", "model": ErrorResponse}, **_READ_ERRORS},
    summary="Get a route with its places and events",
)
async def get_route(
    route_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> RouteWithGeo:
    """
    Returns the route with `geo`: resolved events, then resolved places.

    References to deleted or unknown places/events are left out of `geo`;
    they never fail the request.
    """
    return await route_service.get_route(db, route_id)


@router.post(
    "",
    response_model=RouteWithGeo,
    responses={
        403: {"description": "Not allowed to create this route", "model": ErrorResponse},
        404: {"description": "Company not found", "model": ErrorResponse},
        **_READ_ERRORS,
    },
    summary="Create a route",
)
async def create_route(
    payload: RouteCreateRequest,
    identity: VerifiedIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> RouteWithGeo:
    return await route_service.create_route(db, identity, payload)


@router.patch(
    "/{route_id}",
    response_model=RouteWithGeo,
    responses={
        403: {"description": "Not allowed to edit this route", "model": ErrorResponse},
        404: {"description": "Route not found", "model": ErrorResponse},
        **_READ_ERRORS,
    },
    summary="Edit a route",
)
async def update_route(
    route_id: UUID,
    payload: RouteUpdateRequest,
    identity: VerifiedIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> RouteWithGeo:
    return await route_service.update_route(db, identity, route_id, payload)

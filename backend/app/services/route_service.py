"""
Guidepost Backend — Route Service (Business Logic)
====================================================

What:  Route reads, search, creation and editing.
How:   Loads Route rows, applies ownership rules, and passes every route
       through RouteAggregationService before it leaves the service.
Who:   Called by the /api/routes handlers.

Who may write a route:
    ┌────────────────────────┬──────────────────────────────────┐
    │ route.company_id       │ allowed caller                   │
    ├────────────────────────┼──────────────────────────────────┤
    │ NULL (curated route)   │ admin users                      │
    │ <company>              │ the user owning <company>        │
    └────────────────────────┴──────────────────────────────────┘

No method returns a bare Route: the "Route" and "RouteWithGeo" shapes are
never exposed inconsistently.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, ForbiddenError, NotFoundError, ValidationError
from app.models.account import Company, User
from app.models.route import Route
from app.schemas.route import RouteCreateRequest, RouteUpdateRequest, RouteWithGeo
from app.services.auth_service import VerifiedIdentity
from app.services.route_aggregation import route_aggregation_service

logger = logging.getLogger(__name__)

MIN_SEARCH_QUERY_LENGTH = 2


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RouteService:
    """
    Business logic layer for route operations.

    Error Handling Strategy:
        SQLAlchemy failures are wrapped in DatabaseError (generic 500).
        Missing rows become NotFoundError; ownership violations ForbiddenError.
        Aggregation errors (timeout, storage) propagate unchanged.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _load_route(self, db: AsyncSession, route_id: UUID) -> Route:
        try:
            result = await db.execute(
                select(Route).where(Route.id == route_id, Route.is_deleted.is_(False))
            )
            route = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching route %s: %s", route_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the route. Please try again.",
                context={"route_id": str(route_id)},
            ) from e

        if route is None:
            raise NotFoundError(resource="route", resource_id=str(route_id))
        return route

    async def _load_routes(self, db: AsyncSession, query, description: str) -> List[Route]:
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error %s: %s", description, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve routes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_route(self, db: AsyncSession, route_id: UUID) -> RouteWithGeo:
        """
        Retrieve a single route with its resolved places and events.

        Raises:
            NotFoundError: Route missing or soft-deleted (→ 404)
            DatabaseError: Query execution failed (→ 500)
            AggregationTimeoutError: References took too long to resolve (→ 504)
        """
        route = await self._load_route(db, route_id)
        return await route_aggregation_service.to_route_with_geo(db, route)

    async def list_routes(self, db: AsyncSession) -> List[RouteWithGeo]:
        """All non-deleted routes, ordered by name."""
        query = select(Route).where(Route.is_deleted.is_(False)).order_by(Route.name)
        routes = await self._load_routes(db, query, "listing routes")
        return await route_aggregation_service.to_routes_with_geo(db, routes)

    async def list_company_routes(self, db: AsyncSession, company_id: UUID) -> List[RouteWithGeo]:
        """Non-deleted routes belonging to one company."""
        query = (
            select(Route)
            .where(Route.company_id == company_id, Route.is_deleted.is_(False))
            .order_by(Route.name)
        )
        routes = await self._load_routes(db, query, "listing company routes")
        return await route_aggregation_service.to_routes_with_geo(db, routes)

    async def search_routes(self, db: AsyncSession, query_text: str) -> List[RouteWithGeo]:
        """
        Case-insensitive substring search over route name and description.

        Raises:
            ValidationError: Query shorter than MIN_SEARCH_QUERY_LENGTH characters.
        """
        query_text = query_text.strip()
        if len(query_text) < MIN_SEARCH_QUERY_LENGTH:
            raise ValidationError(
                message=f"Search query must be at least {MIN_SEARCH_QUERY_LENGTH} characters",
                field="query",
            )

        pattern = f"%{_escape_like(query_text)}%"
        query = (
            select(Route)
            .where(
                Route.is_deleted.is_(False),
                or_(
                    Route.name.ilike(pattern, escape="\\"),
                    Route.description.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(Route.name)
        )
        routes = await self._load_routes(db, query, "searching routes")
        return await route_aggregation_service.to_routes_with_geo(db, routes)

    # ── Writes ────────────────────────────────────────────────────────────

    async def _caller(self, db: AsyncSession, identity: VerifiedIdentity) -> User:
        try:
            result = await db.execute(
                select(User).where(User.vk_id == identity.platform_user_id)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %d: %s", identity.platform_user_id, str(e))
            raise DatabaseError(context={"vk_id": identity.platform_user_id}) from e

        if user is None:
            raise ForbiddenError(message="You need to register before managing routes")
        return user

    async def _authorize(
        self,
        db: AsyncSession,
        user: User,
        company_id: Optional[UUID],
    ) -> None:
        """Enforce the ownership table from the module docstring."""
        if company_id is None:
            if not user.is_admin:
                raise ForbiddenError()
            return

        try:
            company = await db.get(Company, company_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching company %s: %s", company_id, str(e))
            raise DatabaseError(context={"company_id": str(company_id)}) from e

        if company is None or company.is_deleted:
            raise NotFoundError(resource="company", resource_id=str(company_id))
        if company.user_id != user.id:
            raise ForbiddenError(
                message="You can't manage routes on behalf of this company",
                context={"company_id": str(company_id)},
            )

    async def create_route(
        self,
        db: AsyncSession,
        identity: VerifiedIdentity,
        payload: RouteCreateRequest,
    ) -> RouteWithGeo:
        """
        Create a route and return it with its geography resolved.

        References are stored as given; they are not checked for existence
        (a missing one is simply absent from `geo`).
        """
        user = await self._caller(db, identity)
        await self._authorize(db, user, payload.company_id)

        route = Route(
            company_id=payload.company_id,
            name=payload.name,
            description=payload.description,
            places=list(payload.places),
            events=list(payload.events),
            is_deleted=False,
        )
        try:
            db.add(route)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating route: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the route. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Route %s created by user %s", route.id, user.id)
        return await route_aggregation_service.to_route_with_geo(db, route)

    async def update_route(
        self,
        db: AsyncSession,
        identity: VerifiedIdentity,
        route_id: UUID,
        payload: RouteUpdateRequest,
    ) -> RouteWithGeo:
        """Apply a partial edit; empty values leave the stored field untouched."""
        route = await self._load_route(db, route_id)
        user = await self._caller(db, identity)
        await self._authorize(db, user, route.company_id)

        if payload.name:
            route.name = payload.name
        if payload.description:
            route.description = payload.description
        if payload.places:
            route.places = list(payload.places)
        if payload.events:
            route.events = list(payload.events)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving route %s: %s", route_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the route. Please try again.",
                context={"route_id": str(route_id)},
            ) from e

        logger.info("Route %s edited by user %s", route.id, user.id)
        return await route_aggregation_service.to_route_with_geo(db, route)


# ── Singleton Instance ────────────────────────────────────────────────────
route_service = RouteService()

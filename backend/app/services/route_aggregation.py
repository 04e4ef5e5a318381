"""
Guidepost Backend — Route Aggregation Service
===============================================

What:  Builds the client-facing RouteWithGeo view from a stored Route.
How:   Turns the route's two reference lists into one tagged sequence
       (events first, then places) and hands it to ReferenceResolver with
       the place/event lookups bound to the request's database session.
Who:   RouteService, on every path that returns a route: single read,
       company listing, full listing, search, create and edit.
When:  After the base Route row has been loaded; computed fresh each time.

Fan-out:
    One point read per reference (len(events) + len(places)). The lookups
    share the request session and run sequentially, since an AsyncSession
    does not allow concurrent statements.

Deadline and cancellation:
    The whole aggregation runs under one asyncio.wait_for; a listing shares
    a single deadline across all of its routes. On timeout the read
    fails with AggregationTimeoutError; on cancellation CancelledError
    propagates. In both cases no RouteWithGeo is returned, partial or not.
"""

import asyncio
import logging
from functools import partial
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AggregationTimeoutError
from app.models.route import Route
from app.schemas.route import RefKind, RouteResponse, RouteWithGeo
from app.services import entity_lookup
from app.services.reference_resolver import (
    ReferenceResolver,
    RouteRef,
    reference_resolver,
)

logger = logging.getLogger(__name__)


def route_refs(route: Route) -> List[RouteRef]:
    """
    The route's references as one tagged sequence.

    Stored routes keep two separate lists, so the true interleaving of
    places and events is unknown; existing clients expect all events
    followed by all places.
    """
    return [RouteRef(RefKind.EVENT, ref) for ref in route.events or ()] + [
        RouteRef(RefKind.PLACE, ref) for ref in route.places or ()
    ]


class RouteAggregationService:
    """Route → RouteWithGeo, with one deadline per read (single route or listing)."""

    def __init__(
        self,
        resolver: ReferenceResolver = reference_resolver,
        timeout_seconds: Optional[float] = None,
    ):
        self.resolver = resolver
        self.timeout_seconds = timeout_seconds

    @property
    def _timeout(self) -> float:
        if self.timeout_seconds is not None:
            return self.timeout_seconds
        return settings.aggregation_timeout_seconds

    async def _compose(self, db: AsyncSession, route: Route) -> RouteWithGeo:
        lookups = {
            RefKind.EVENT: partial(entity_lookup.get_event, db),
            RefKind.PLACE: partial(entity_lookup.get_place, db),
        }
        geo = await self.resolver.resolve_tagged(route_refs(route), lookups)

        base = RouteResponse.model_validate(route)
        return RouteWithGeo(**base.model_dump(), geo=geo)

    async def _compose_all(self, db: AsyncSession, routes: List[Route]) -> List[RouteWithGeo]:
        return [await self._compose(db, route) for route in routes]

    async def _with_deadline(self, aggregation, context: dict):
        timeout = self._timeout
        try:
            return await asyncio.wait_for(aggregation, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Route aggregation timed out after %.1fs: %s", timeout, context)
            raise AggregationTimeoutError(timeout_seconds=timeout, context=context)

    async def to_route_with_geo(self, db: AsyncSession, route: Route) -> RouteWithGeo:
        """
        Resolve every reference of `route` and return the composite view.

        Raises:
            AggregationTimeoutError: resolution exceeded the deadline.
            DatabaseError: a lookup could not be attempted.
            asyncio.CancelledError: the request was cancelled.
        """
        return await self._with_deadline(
            self._compose(db, route),
            {"route_id": str(route.id)},
        )

    async def to_routes_with_geo(
        self,
        db: AsyncSession,
        routes: Iterable[Route],
    ) -> List[RouteWithGeo]:
        """
        Bulk form for listings and search; order of `routes` is kept.

        The deadline covers the whole listing, not each route.
        """
        routes = list(routes)
        return await self._with_deadline(
            self._compose_all(db, routes),
            {"route_count": len(routes)},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
route_aggregation_service = RouteAggregationService()

"""
Guidepost Backend — Route Reference Resolver
==============================================

What:  Resolves ordered, string-encoded place/event references into RouteGeo
       elements.
How:   Walks the references in order; each one is parsed as a UUID and
       looked up. Unparseable or missing references are skipped.
Who:   Called by RouteAggregationService for every route read.

Skip policy:
    ["<place A>", "not-a-uuid", "<place B>", "<deleted C>"]
        → [RouteGeo(place, A), RouteGeo(place, B)]

    A stale or bogus reference costs completeness, never the read. Only
    NotFoundError is absorbed: DatabaseError and cancellation propagate,
    because failing to even attempt a lookup is a different situation from
    a row that legitimately no longer exists.

Ordering:
    The output is always a subsequence of the input. No sorting, no
    de-duplication; a reference listed twice resolves twice.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from app.exceptions import NotFoundError
from app.schemas.route import EventResponse, PlaceResponse, RefKind, RouteGeo

logger = logging.getLogger(__name__)

Entity = Union[PlaceResponse, EventResponse]
Lookup = Callable[[UUID], Awaitable[Entity]]


@dataclass(frozen=True)
class RouteRef:
    """A tagged reference: which kind of object, and its string-encoded id."""

    kind: RefKind
    ref: str


def parse_ref(ref: str) -> Optional[UUID]:
    """Return the UUID encoded in `ref`, or None when it is not one."""
    if not isinstance(ref, str):
        return None
    try:
        return UUID(ref.strip())
    except ValueError:
        return None


class ReferenceResolver:
    """Best-effort resolution of route references; never fails per reference."""

    async def _resolve_one(self, ref: RouteRef, lookup: Lookup) -> Optional[RouteGeo]:
        entity_id = parse_ref(ref.ref)
        if entity_id is None:
            logger.debug("Skipping unparseable %s reference %r", ref.kind.value, ref.ref)
            return None

        try:
            entity = await lookup(entity_id)
        except NotFoundError:
            logger.debug("Skipping missing %s %s", ref.kind.value, entity_id)
            return None

        return RouteGeo(type=ref.kind, object=entity)

    async def resolve(
        self,
        refs: Sequence[str],
        kind: RefKind,
        lookup: Lookup,
    ) -> List[RouteGeo]:
        """
        Resolve a homogeneous reference list.

        Args:
            refs: Ordered string-encoded ids, all of the same kind.
            kind: Tag given to every resolved element.
            lookup: Async fetch raising NotFoundError for missing rows.

        Returns:
            Resolved elements in input order (possibly empty).
        """
        return await self.resolve_tagged(
            [RouteRef(kind=kind, ref=ref) for ref in refs or ()],
            {kind: lookup},
        )

    async def resolve_tagged(
        self,
        refs: Sequence[RouteRef],
        lookups: Mapping[RefKind, Lookup],
    ) -> List[RouteGeo]:
        """
        Resolve a mixed sequence of tagged references, keeping cross-kind order.

        A kind without a registered lookup is skipped like a missing row.
        Lookups run one at a time in list order.
        """
        resolved: List[RouteGeo] = []
        for ref in refs:
            lookup = lookups.get(ref.kind)
            if lookup is None:
                logger.debug("No lookup registered for %s references", ref.kind.value)
                continue
            geo = await self._resolve_one(ref, lookup)
            if geo is not None:
                resolved.append(geo)

        if len(resolved) < len(refs):
            logger.debug("Resolved %d of %d route references", len(resolved), len(refs))
        return resolved


# ── Singleton Instance ────────────────────────────────────────────────────
reference_resolver = ReferenceResolver()

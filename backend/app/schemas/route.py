"""
Guidepost Backend — Route, Place and Event Schemas
====================================================

What:  Pydantic models defining the API contract for routes and the map
       objects a route points at.
How:   FastAPI uses these models to validate request bodies, serialize
       responses, and generate OpenAPI documentation.

Wire format notes:
    - Identifiers serialize as `_id` (existing mini app client contract).
    - A route's raw `places` / `events` reference lists are never exposed;
      clients only ever see the resolved `geo` array of RouteWithGeo.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationInfo, field_validator


# Read from ORM rows as `id`, from re-validated response bodies as `_id`
_ID_ALIASES = AliasChoices("id", "_id")


class RefKind(str, Enum):
    """Kind tag of a route reference and of a resolved RouteGeo element."""

    PLACE = "place"
    EVENT = "event"


# ══════════════════════════════════════════════════════════════════════════
# Map objects
# ══════════════════════════════════════════════════════════════════════════


class PlaceResponse(BaseModel):
    """A place as shown inside a route or on its own card."""

    id: uuid.UUID = Field(
        validation_alias=_ID_ALIASES,
        serialization_alias="_id",
        description="Place identifier",
    )
    name: str
    description: str
    carousel: List[str] = Field(default_factory=list, description="Image URLs")
    address_text: str
    address_lng: float
    address_lat: float

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    """An event as shown inside a route or on its own card."""

    id: uuid.UUID = Field(
        validation_alias=_ID_ALIASES,
        serialization_alias="_id",
        description="Event identifier",
    )
    company_id: Optional[uuid.UUID] = None
    name: str
    description: str
    carousel: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    icon: str = ""
    start_time: datetime = Field(description="Event start (UTC ISO 8601)")
    address_text: str
    address_lng: float
    address_lat: float

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Routes
# ══════════════════════════════════════════════════════════════════════════


class RouteGeo(BaseModel):
    """
    One resolved element of a route.

    Produced per read by ReferenceResolver; never persisted. `object` is
    read as an event or a place according to `type`.
    """

    type: RefKind = Field(description="'event' or 'place'")
    object: Union[EventResponse, PlaceResponse] = Field(description="The resolved map object")

    @field_validator("object", mode="before")
    @classmethod
    def object_matches_type(cls, v: Any, info: ValidationInfo) -> Any:
        """Validate `object` against the model named by `type`."""
        model = EventResponse if info.data.get("type") == RefKind.EVENT else PlaceResponse
        if isinstance(v, model):
            return v
        return model.model_validate(v)


class RouteResponse(BaseModel):
    """Base route fields (without the resolved geography)."""

    id: uuid.UUID = Field(
        validation_alias=_ID_ALIASES,
        serialization_alias="_id",
        description="Route identifier",
    )
    company_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Owning company (null for curated routes)",
    )
    name: str
    description: str

    model_config = {"from_attributes": True}


class RouteWithGeo(RouteResponse):
    """
    What:  The externally visible route shape.
    Who:   Returned by every route endpoint (single read, listings, search,
           create, edit).

    `geo` order: all resolved events in their stored order, then all
    resolved places in their stored order. References that no longer
    resolve are simply absent.
    """

    geo: List[RouteGeo] = Field(default_factory=list)


class RouteCreateRequest(BaseModel):
    """Body of POST /api/routes."""

    company_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Company to create the route for. Omit for a curated route (admins only).",
    )
    name: str = Field(min_length=6, max_length=255)
    description: str = Field(min_length=10)
    places: List[str] = Field(default_factory=list, description="Ordered place ids")
    events: List[str] = Field(default_factory=list, description="Ordered event ids")


class RouteUpdateRequest(BaseModel):
    """
    Body of PATCH /api/routes/{route_id}.

    Omitted or empty fields keep their current value; a non-empty
    reference list replaces the stored one.
    """

    name: Optional[str] = Field(default=None, min_length=6, max_length=255)
    description: Optional[str] = Field(default=None, min_length=10)
    places: Optional[List[str]] = None
    events: Optional[List[str]] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def blank_means_unchanged(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

"""
Guidepost Backend — HTTP API Tests
====================================

What:  End-to-end request tests through the full middleware chain.
How:   httpx AsyncClient over ASGITransport; the DB session dependency is a
       mock and route_service is patched where a test needs fixed results.

What we test:
    ✅ Requests without valid launch parameters are rejected with 401
    ✅ Stale signatures give the distinct signature_expired code
    ✅ Exempt paths (health, docs) and CORS preflight skip authentication
    ✅ The verified identity reaches handlers (/api/me)
    ✅ Error bodies carry error code and request id
    ✅ Route responses use `_id` and expose only `geo`
    ✅ Events and places keep their own shapes on the wire
    ✅ Rate-limited responses carry the request id
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.config import settings
from app.exceptions import AggregationTimeoutError, DatabaseError, NotFoundError
from app.schemas.route import PlaceResponse, RefKind, RouteGeo, RouteWithGeo


def _auth(blob):
    return {"Authorization": f"Bearer {blob}"}


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_header_rejected(self, test_client):
        response = await test_client.get("/api/me")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_forged_signature_rejected(self, test_client, signed_blob):
        forged = signed_blob.replace("vk_user_id=494075", "vk_user_id=1")

        response = await test_client.get("/api/me", headers=_auth(forged))

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_stale_signature_rejected_in_strict_mode(self, test_client, stale_blob):
        response = await test_client.get("/api/me", headers=_auth(stale_blob))

        assert response.status_code == 401
        assert response.json()["error"] == "signature_expired"

    @pytest.mark.asyncio
    async def test_identity_published(self, test_client, signed_blob):
        response = await test_client.get("/api/me", headers=_auth(signed_blob))

        assert response.status_code == 200
        body = response.json()
        assert body["platform_user_id"] == 494075
        assert body["params"]["vk_platform"] == "mobile_android"
        assert "sign" not in body["params"]

    @pytest.mark.asyncio
    async def test_bearer_prefix_optional(self, test_client, signed_blob):
        response = await test_client.get("/api/me", headers={"Authorization": signed_blob})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, test_client):
        response = await test_client.get("/api/me", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_health_exempt(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code in (200, 503)
        assert response.json()["strict_mode"] is True

    @pytest.mark.asyncio
    async def test_openapi_exempt(self, test_client):
        response = await test_client.get("/openapi.json")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_cors_preflight_not_authenticated(self, test_client):
        response = await test_client.options(
            "/api/routes",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "Authorization",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_rejection_carries_cors_headers(self, test_client):
        response = await test_client.get("/api/me", headers={"Origin": "http://localhost:3000"})

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestRouteEndpoints:

    @pytest.mark.asyncio
    async def test_get_route_wire_format(self, test_client, signed_blob, make_place):
        place = PlaceResponse.model_validate(make_place())
        route = RouteWithGeo(
            id=uuid4(),
            name="Historic centre walk",
            description="Two hours through the old city.",
            geo=[RouteGeo(type=RefKind.PLACE, object=place)],
        )

        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.get_route = AsyncMock(return_value=route)
            response = await test_client.get(f"/api/routes/{route.id}", headers=_auth(signed_blob))

        assert response.status_code == 200
        body = response.json()
        assert body["_id"] == str(route.id)
        assert "places" not in body and "events" not in body
        assert body["geo"] == [
            {"type": "place", "object": place.model_dump(mode="json", by_alias=True)}
        ]

    @pytest.mark.asyncio
    async def test_route_not_found(self, test_client, signed_blob):
        route_id = uuid4()
        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.get_route = AsyncMock(
                side_effect=NotFoundError(resource="route", resource_id=str(route_id))
            )
            response = await test_client.get(f"/api/routes/{route_id}", headers=_auth(signed_blob))

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["details"]["resource_id"] == str(route_id)
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_aggregation_timeout(self, test_client, signed_blob):
        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.list_routes = AsyncMock(side_effect=AggregationTimeoutError(10.0))
            response = await test_client.get("/api/routes", headers=_auth(signed_blob))

        assert response.status_code == 504
        body = response.json()
        assert body["error"] == "aggregation_timeout"
        assert "details" not in body

    @pytest.mark.asyncio
    async def test_database_error_is_generic(self, test_client, signed_blob):
        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.list_routes = AsyncMock(
                side_effect=DatabaseError(context={"sql": "SELECT secret FROM internals"})
            )
            response = await test_client.get("/api/routes", headers=_auth(signed_blob))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "SELECT" not in response.text

    @pytest.mark.asyncio
    async def test_search_too_short(self, test_client, signed_blob):
        response = await test_client.get("/api/routes/search/a", headers=_auth(signed_blob))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_invalid_route_id(self, test_client, signed_blob):
        response = await test_client.get("/api/routes/not-a-uuid", headers=_auth(signed_blob))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_validates_body(self, test_client, signed_blob):
        response = await test_client.post(
            "/api/routes",
            json={"name": "short", "description": "too short"},
            headers=_auth(signed_blob),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_passes_identity(self, test_client, signed_blob):
        created = RouteWithGeo(
            id=uuid4(), name="Evening embankment", description="Sunset walk along the river."
        )
        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.create_route = AsyncMock(return_value=created)
            response = await test_client.post(
                "/api/routes",
                json={"name": "Evening embankment", "description": "Sunset walk along the river."},
                headers=_auth(signed_blob),
            )

        assert response.status_code == 200
        identity = mock_service.create_route.await_args.args[1]
        assert identity.platform_user_id == 494075

    @pytest.mark.asyncio
    async def test_get_route_mixed_geo_on_the_wire(
        self, test_client, signed_blob, make_route, make_place, make_event
    ):
        event, place = make_event(), make_place()
        route = make_route(events=[str(event.id)], places=[str(place.id)])
        test_client.db.execute.side_effect = [
            _scalar_result(route),
            _scalar_result(event),
            _scalar_result(place),
        ]

        response = await test_client.get(f"/api/routes/{route.id}", headers=_auth(signed_blob))

        assert response.status_code == 200
        first, second = response.json()["geo"]
        assert first["type"] == "event"
        assert first["object"]["_id"] == str(event.id)
        assert first["object"]["tags"] == ["music", "outdoor"]
        assert first["object"]["start_time"].startswith("2026-06-21T18:00:00")
        assert second["type"] == "place"
        assert second["object"]["_id"] == str(place.id)
        assert "start_time" not in second["object"]

    @pytest.mark.asyncio
    async def test_patch_empty_name_keeps_current(self, test_client, signed_blob):
        updated = RouteWithGeo(
            id=uuid4(), name="Historic centre walk", description="Two hours through the old city."
        )
        with patch("app.routes.routes.route_service") as mock_service:
            mock_service.update_route = AsyncMock(return_value=updated)
            response = await test_client.patch(
                f"/api/routes/{updated.id}",
                json={"name": "", "description": "", "events": ["e1"]},
                headers=_auth(signed_blob),
            )

        assert response.status_code == 200
        payload = mock_service.update_route.await_args.args[3]
        assert payload.name is None
        assert payload.description is None
        assert payload.events == ["e1"]


class TestMapObjectEndpoints:

    @pytest.mark.asyncio
    async def test_get_place(self, test_client, signed_blob, make_place):
        place = make_place()
        result = MagicMock()
        result.scalar_one_or_none.return_value = place
        test_client.db.execute.return_value = result

        response = await test_client.get(f"/api/places/{place.id}", headers=_auth(signed_blob))

        assert response.status_code == 200
        assert response.json()["_id"] == str(place.id)

    @pytest.mark.asyncio
    async def test_get_event_not_found(self, test_client, signed_blob):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        test_client.db.execute.return_value = result

        response = await test_client.get(f"/api/events/{uuid4()}", headers=_auth(signed_blob))

        assert response.status_code == 404


class TestRateLimiting:

    @pytest.mark.asyncio
    async def test_429_carries_request_id(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)
        headers = {"X-Request-ID": "trace-rl", "Origin": "http://localhost:3000"}

        await test_client.get("/api/me", headers=headers)
        response = await test_client.get("/api/me", headers=headers)

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"
        assert response.json()["request_id"] == "trace-rl"
        assert response.headers["X-Request-ID"] == "trace-rl"
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

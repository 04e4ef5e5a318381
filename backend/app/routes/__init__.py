# Routes package init
"""
Guidepost Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - routes.py:       /api/routes...             (route reads, search, create, edit)
    - map_objects.py:  GET /api/places/{id}, GET /api/events/{id}
    - identity.py:     GET /api/me                (caller identity)
    - health.py:       GET /health                (service health check, no auth)

Design Principle:
    Routes are THIN. They bind parameters, call a service and return its
    result. Authentication is done by middleware before any of them runs.
"""

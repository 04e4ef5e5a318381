# Services package init
"""
Guidepost Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and database (persistence).

Service Inventory:
    - auth_service:        AuthenticationGate, launch parameters → VerifiedIdentity
    - entity_lookup:       single place/event reads (NotFoundError when absent)
    - reference_resolver:  stored id strings → entities, skipping dangling ones
    - route_aggregation:   Route → RouteWithGeo
    - route_service:       route reads, search, create and edit with ownership checks
"""

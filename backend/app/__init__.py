"""
Guidepost Backend — Application Package Initializer
=====================================================

What: Backend of the Guidepost mini app: routes through places and events,
      served to callers authenticated by signed launch parameters.

Architecture Note:

    ┌─────────────────────────────────────┐
    │   Middleware (launch-param auth)    │  ← the only trust boundary
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← aggregation, authorization
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

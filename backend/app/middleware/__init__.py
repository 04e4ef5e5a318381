# Middleware package init
"""
Guidepost Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Rate Limit] → [Logging] → [Auth] → Route Handler

    1. CORS outermost: every response, 401s included, carries CORS headers
       so the mini app in the browser can read the error body
    2. Request ID: correlation ID for logs and error bodies, 429s included
    3. Rate Limit: reject abusive clients before any other processing
    4. Logging: sees the final status of every request, auth rejections included
    5. Auth: launch-parameter verification; publishes the VerifiedIdentity
"""

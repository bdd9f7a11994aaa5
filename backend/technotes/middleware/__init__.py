# Middleware package init
"""
TechNotes Backend - Middleware Package
=======================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every log line of the request carries the ID
    - Logging measures the full handling time and records the final status
    - The X-Request-ID header is added to every response on the way out
"""

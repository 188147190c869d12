# Middleware package init
"""
VIA Backend — Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every log line, including the access line,
      carries the correlation ID.
    - The access log records status and duration on the way back out.
"""

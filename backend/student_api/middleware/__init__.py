# Middleware package init
"""
Student API — Middleware Package
================================

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    - Request ID runs first so every log line of the request carries the ID.
    - Logging captures status and duration on the way back out.
"""

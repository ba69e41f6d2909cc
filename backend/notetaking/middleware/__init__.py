"""
Note Taking API — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Auth Rate Limit] → [Logging] → [GZip] → [CORS] → Route

    1. Request ID first: every later log line and error body can carry it
    2. Auth rate limit: reject credential hammering before any hashing work
    3. Logging: records status and duration of what the route produced
"""

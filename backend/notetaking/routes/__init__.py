"""
Note Taking API — Routes Package
==================================

Route Inventory:
    - auth.py:    POST /auth/register, /auth/login, /auth/refresh
    - notes.py:   POST/GET /notes, GET/PUT/DELETE /notes/{id}
    - tags.py:    GET /tags
    - health.py:  GET /health

Routes are THIN: resolve the caller, pass the session to a service,
set status codes and headers. Business rules live in services.
"""

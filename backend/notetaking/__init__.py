"""
Note Taking API — Application Package
=======================================

Personal note-taking backend: accounts with JWT auth, notes with soft
delete, global shared tags and paginated search.

Layers:
    ┌─────────────────────────────────────┐
    │   Routes (FastAPI routers)          │  ← HTTP concerns, caller identity
    ├─────────────────────────────────────┤
    │   Services                          │  ← tag reconciliation, queries, auth
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database                          │  ← async engine, session per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

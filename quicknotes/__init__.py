"""
QuickNotes Backend — Application Package
==========================================

Layered like this:

    ┌─────────────────────────────────────┐
    │      Routes + Middleware (HTTP)     │  ← status codes, headers, auth
    ├─────────────────────────────────────┤
    │       Services (Business Logic)     │  ← validation, ownership, cache
    ├─────────────────────────────────────┤
    │  Models & Schemas │ Search Cache    │  ← SQLAlchemy ORM, Pydantic, Redis
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

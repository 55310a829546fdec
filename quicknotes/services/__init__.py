"""
QuickNotes Backend — Services Layer
=====================================

Service Inventory:
    - UserService: registration, login, profile lookup
    - NoteService: per-user note CRUD and cached tag search

Services take the request's AsyncSession as an argument and hold no
per-request state, so module-level singletons are shared by all requests.
"""

"""
QuickNotes Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:      POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - notes.py:     POST/GET /api/notes, GET/PUT/DELETE /api/notes/{id},
                    GET /api/notes/search/by-tags
    - health.py:    GET /health, GET /api/status
    - frontend.py:  GET / (single-page client)

Routes stay thin: extract input, call a service, return the result.
"""

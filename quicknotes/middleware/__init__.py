"""
QuickNotes Backend — Middleware Package
=========================================

Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    Request → [Request ID] → [Access Log] → [Rate Limit] → [Security Headers]
            → [GZip] → [CORS] → Route Handler

    Request ID runs first so every later layer, including the 429 body and
    the access log line, sees the same ID. Rate limiting sits in front of
    all real work.
"""

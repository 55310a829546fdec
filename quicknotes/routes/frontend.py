"""
QuickNotes Backend — Browser Client Route
===========================================

What:  Serves the single-page client at GET /. Its assets live under
       /static (mounted in main.py).
Why:   The SPA only talks to /api/*, so serving it from the same origin
       avoids CORS for the default deployment.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter(tags=["Frontend"])


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

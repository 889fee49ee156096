"""
asgi.py -- ASGI entry point for InternTrack.

Run with:  uvicorn asgi:app --reload

Kept separate from api/main.py so process managers point at a stable module
path while api/ stays an ordinary importable package.
"""

from api.main import app

__all__ = ["app"]

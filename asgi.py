"""
asgi.py -- Application assembly for LedgerGate.

Run with:  uvicorn asgi:app --reload

api/main.py owns the FastAPI instance; this module is the stable import path
for ASGI servers so deployment config never points inside the api/ package.
"""

from api.main import app

__all__ = ["app"]

"""
FastAPI application surface for the stock dashboard backend.
"""

from .app import create_app, app

__all__ = ["create_app", "app"]

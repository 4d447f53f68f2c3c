"""ASGI entry point: ``uvicorn stock_dashboard.main:app``"""

from web.app import app

__all__ = ["app"]

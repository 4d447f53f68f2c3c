"""
Core backend package for the stock dashboard service.
Exposes market data sync, persistence, and API wiring.
"""

__all__ = [
    "config",
    "database",
    "models",
    "schemas",
    "services",
    "tasks",
    "utils",
]

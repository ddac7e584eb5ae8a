"""API Package.

FastAPI server for the vendas dashboard.
"""

from api.server import create_app, main

__all__ = [
    "create_app",
    "main",
]

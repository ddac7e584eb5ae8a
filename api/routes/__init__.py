"""API Routes Package."""

from api.routes import health, vendas

__all__ = [
    "health",
    "vendas",
]

"""API Routes Package."""

from api.routes import health, tenancy, comments, compare

__all__ = [
    "health",
    "tenancy",
    "comments",
    "compare",
]

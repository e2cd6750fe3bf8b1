"""API Package.

FastAPI server for the tenancy reconciliation service.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]

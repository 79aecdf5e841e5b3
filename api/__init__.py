"""API Package.

FastAPI server for the Order Integration Service.
"""

from api.server import create_app

__all__ = [
    "create_app",
]

"""
app/api/routers package marker.
"""

from app.api.routers.auth import router as auth_router
from app.api.routers.bulk_upload import router as bulk_upload_router

__all__ = [
    "auth_router",
    "bulk_upload_router",
]

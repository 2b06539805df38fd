"""HTTP API for playlistcard.

Structure:
- routers/: endpoints (auth, search, profile, playlist image, health)
- schemas/: Pydantic request/response models
- dependencies.py: pulls services off app.state for routes
- exception_handlers.py: domain exceptions -> HTTP status codes
"""

from playlistcard.api.routers import api_router

__all__ = ["api_router"]

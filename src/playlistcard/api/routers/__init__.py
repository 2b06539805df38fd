"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator! It gets mounted under /api in main.py,
# so auth.router's "/auth/login" becomes /api/auth/login. health is NOT in here - it lives at
# /health (no /api prefix) so probes don't depend on API routing.

from fastapi import APIRouter

from playlistcard.api.routers import auth, playlist, profile, search

api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(search.router, prefix="/search", tags=["Search"])
api_router.include_router(profile.router, prefix="/profile", tags=["Profile"])
api_router.include_router(playlist.router, prefix="/playlist", tags=["Playlist Image"])

__all__ = ["api_router"]

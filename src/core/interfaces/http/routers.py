"""API router configuration."""

from fastapi import APIRouter

from src.modules.playlists.interfaces.router import router as catalog_router

api_router = APIRouter()

# Catalog
api_router.include_router(catalog_router)

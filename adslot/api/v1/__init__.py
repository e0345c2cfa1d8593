"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import adverts, slots

api_router = APIRouter()

api_router.include_router(
    slots.router,
    prefix="/slots",
    tags=["slots"]
)

api_router.include_router(
    adverts.router,
    prefix="/adverts",
    tags=["adverts"]
)

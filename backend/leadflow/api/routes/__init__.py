"""API Routes module"""
from fastapi import APIRouter

from .automation import router as automation_router

# Main API router
api_router = APIRouter()

api_router.include_router(automation_router, prefix="/automation", tags=["Automation"])

__all__ = ["api_router"]

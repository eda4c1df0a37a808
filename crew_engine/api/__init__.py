"""API router for v1 endpoints."""

from fastapi import APIRouter

from crew_engine.api import analysis

router = APIRouter()

# Crew analysis and profile suggestion routes
router.include_router(analysis.router, tags=["analysis"])

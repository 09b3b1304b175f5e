"""API routers organized by responsibility.

This module exports a combined router that includes all API endpoints:

- fetch: per-source-type fetch cycles
- cron: scheduler fan-out over every account
- discovery: RSS/Atom discovery and source lookup
- topics: topic suggestions
"""

from fastapi import APIRouter

from radar.routers.api import cron, discovery, fetch, topics

# Create the main API router
router = APIRouter(responses={404: {"description": "Not found"}})

router.include_router(fetch.router)
router.include_router(cron.router)
router.include_router(discovery.router)
router.include_router(topics.router)

__all__ = ["router"]

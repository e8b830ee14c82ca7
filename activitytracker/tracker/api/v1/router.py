"""
Aggregates all v1 API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from tracker.api.v1 import activity_logs, events

api_router = APIRouter()

api_router.include_router(events.router)
api_router.include_router(activity_logs.router)

"""
Event intake routes.
POST /events receives the hook events a host request produced.
"""
from __future__ import annotations

from fastapi import APIRouter, Request, status

from tracker.core.dependencies import Dedup, Tracker
from tracker.schemas.events import EventBatch, EventBatchResult
from tracker.services.context import RequestContext

router = APIRouter(prefix="/events", tags=["Events"])


@router.post(
    "/",
    response_model=EventBatchResult,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Track a batch of host events",
)
async def track_events(
    batch: EventBatch,
    request: Request,
    tracker: Tracker,
    dedup: Dedup,
) -> EventBatchResult:
    """
    Events are handled in order within one request scope, so request latches
    apply across the whole batch. Tracking failures never fail the request.
    """
    context = RequestContext(request)
    with dedup.request() as scope:
        for event in batch.events:
            await tracker.handle(
                event,
                dedup=scope,
                context=context.with_scope(event.store_id, event.website_id),
            )
    return EventBatchResult(processed=len(batch.events))

"""
Activity log routes.
Listing, option sources and single-record lookup for the activity grid.
No postponed annotations: the listing endpoint is wrapped by slowapi.
"""
import uuid
from datetime import datetime

from fastapi import APIRouter, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from tracker.core.config import ACTION_OPTIONS, RETENTION_OPTIONS, SECTION_OPTIONS, settings
from tracker.core.dependencies import DBSession
from tracker.core.exceptions import BadRequestException, NotFoundException
from tracker.crud.activity_log import crud_activity_log
from tracker.schemas.activity_log import (
    ActionKind,
    ActivityLogFilter,
    ActivityLogRead,
    ActivityOptions,
    OptionItem,
)
from tracker.schemas.pagination import PaginatedResponse

router = APIRouter(prefix="/activity", tags=["Activity Logs"])

limiter = Limiter(key_func=get_remote_address)


@router.get(
    "/",
    response_model=PaginatedResponse[ActivityLogRead],
    summary="List activity records",
)
@limiter.limit(settings.RATE_LIMIT_LISTING)
async def list_activity(
    request: Request,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
    action: ActionKind | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    store_id: int | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
) -> PaginatedResponse[ActivityLogRead]:
    if date_from and date_to and date_from > date_to:
        raise BadRequestException("date_from must not be later than date_to")

    filters = ActivityLogFilter(
        action=action,
        entity_type=entity_type,
        store_id=store_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        size=size,
    )
    logs, total = await crud_activity_log.list_with_filters(db, filters=filters)
    return PaginatedResponse(
        items=[ActivityLogRead.model_validate(log) for log in logs],
        total=total,
        page=page,
        size=size,
    )


@router.get(
    "/options",
    response_model=ActivityOptions,
    summary="Filter and configuration option sources",
)
async def activity_options() -> ActivityOptions:
    return ActivityOptions(
        actions=[OptionItem(value=k, label=v) for k, v in ACTION_OPTIONS.items()],
        sections=[OptionItem(value=k, label=v) for k, v in SECTION_OPTIONS.items()],
        retention_periods=[
            OptionItem(value=str(k), label=v) for k, v in RETENTION_OPTIONS.items()
        ],
    )


@router.get(
    "/{log_id}",
    response_model=ActivityLogRead,
    summary="Get one activity record",
)
async def get_activity(log_id: uuid.UUID, db: DBSession) -> ActivityLogRead:
    log = await crud_activity_log.get(db, log_id)
    if log is None:
        raise NotFoundException("Activity record", str(log_id))
    return ActivityLogRead.model_validate(log)

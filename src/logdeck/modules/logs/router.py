"""
logdeck Logs - Router.

API endpoints for ingesting, querying and maintaining log records.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sse_starlette.sse import EventSourceResponse

from logdeck.config import Settings, get_settings
from logdeck.core.query import LogQuery
from logdeck.core.storage import JsonLogStore
from logdeck.deps import (
    get_log_store,
    require_bulk,
    require_ingest,
    require_query,
    require_stats,
    require_stream,
)
from logdeck.exceptions import ValidationException
from logdeck.modules.logs.schemas import (
    BulkInsertRequest,
    BulkInsertResponse,
    LogCreate,
    LogDeleteResponse,
    LogLevel,
    LogListResponse,
    LogResponse,
    LogUpdate,
    SortOrder,
    StatsResponse,
)
from logdeck.modules.logs.service import LogsService
from logdeck.schemas import PaginationMeta

router = APIRouter(prefix="/logs", tags=["logs"])


def get_service(store: JsonLogStore = Depends(get_log_store)) -> LogsService:
    """Get logs service bound to the configured store."""
    return LogsService(store)


@router.post(
    "",
    response_model=LogResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[require_ingest],
)
async def create_log(data: LogCreate, service: LogsService = Depends(get_service)):
    """Ingest a new log record."""
    record = await service.create_log(data)
    return LogResponse(success=True, data=record)


@router.get(
    "",
    response_model=LogListResponse,
    response_model_exclude_unset=True,
    dependencies=[require_query],
)
async def list_logs(
    level: LogLevel | None = None,
    service_name: str | None = Query(default=None, alias="service"),
    resource_id: str | None = Query(default=None, alias="resourceId"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    search: str | None = None,
    sort_by: str = Query(default="timestamp", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    settings: Settings = Depends(get_settings),
    service: LogsService = Depends(get_service),
):
    """
    List logs with filtering, sorting and pagination.

    Filters combine with AND. ``service`` and ``resourceId`` are
    case-insensitive substring matches, ``search`` matches the message.
    """
    limit = limit or settings.default_page_size
    if limit > settings.max_page_size:
        raise ValidationException(f"limit must be at most {settings.max_page_size}")

    result = await service.list_logs(
        LogQuery(
            level=level,
            service=service_name,
            resource_id=resource_id,
            start_date=start_date,
            end_date=end_date,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    )
    return LogListResponse(
        success=True,
        data=result.records,
        pagination=PaginationMeta.model_validate(result.pagination),
    )


@router.get("/stats/overview", response_model=StatsResponse, dependencies=[require_stats])
async def get_stats(service: LogsService = Depends(get_service)):
    """Totals, per-level and per-service counts, and recent activity."""
    stats = await service.get_stats()
    return StatsResponse(success=True, data=stats)


@router.post(
    "/bulk",
    response_model=BulkInsertResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[require_bulk],
)
async def bulk_insert(data: BulkInsertRequest, service: LogsService = Depends(get_service)):
    """Ingest many records at once. One invalid record rejects the whole batch."""
    result = await service.bulk_insert(data.logs)
    return BulkInsertResponse(success=True, data=result)


@router.get("/stream", dependencies=[require_stream])
async def stream_logs(
    level: LogLevel | None = None,
    settings: Settings = Depends(get_settings),
    service: LogsService = Depends(get_service),
):
    """Stream newly ingested records via SSE, optionally for one level only."""
    return EventSourceResponse(
        service.stream_logs(level=level, poll_seconds=settings.stream_poll_seconds)
    )


@router.get(
    "/{log_id}",
    response_model=LogResponse,
    response_model_exclude_unset=True,
    dependencies=[require_query],
)
async def get_log(log_id: str, service: LogsService = Depends(get_service)):
    """Get a specific log by ID."""
    record = await service.get_log(log_id)
    return LogResponse(success=True, data=record)


@router.put(
    "/{log_id}",
    response_model=LogResponse,
    response_model_exclude_unset=True,
    dependencies=[require_ingest],
)
async def update_log(log_id: str, data: LogUpdate, service: LogsService = Depends(get_service)):
    """Update a log. ``id`` and ``timestamp`` cannot be changed."""
    record = await service.update_log(log_id, data)
    return LogResponse(success=True, data=record)


@router.delete(
    "/{log_id}",
    response_model=LogDeleteResponse,
    response_model_exclude_unset=True,
    dependencies=[require_ingest],
)
async def delete_log(log_id: str, service: LogsService = Depends(get_service)):
    """Delete a log."""
    record = await service.delete_log(log_id)
    return LogDeleteResponse(success=True, message="Log deleted successfully", data=record)

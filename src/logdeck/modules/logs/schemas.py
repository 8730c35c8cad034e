"""
logdeck Logs - Schemas.

Pydantic models for log ingestion and query.

Records are open: fields beyond the known ones are stored and returned as
given, so every record model allows extras.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from logdeck.schemas import PaginationMeta


LogLevel = Literal["error", "warn", "info", "debug", "trace"]
LOG_LEVELS: tuple[str, ...] = ("error", "warn", "info", "debug", "trace")

SortOrder = Literal["asc", "desc"]


# =============================================================================
# Requests
# =============================================================================


class LogFields(BaseModel):
    """Optional descriptive fields shared by create and update payloads."""

    model_config = ConfigDict(extra="allow")

    service: str | None = None
    source: str | None = None
    environment: str | None = None
    ip: str | None = None
    userAgent: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, description="Opaque key/value data, stored verbatim")
    tags: list[str] | None = None
    duration: int | float | None = None


class LogCreate(LogFields):
    """Payload for ingesting one log record."""

    level: str | None = Field(default=None, description=f"One of: {', '.join(LOG_LEVELS)}")
    message: str | None = None


class LogUpdate(LogFields):
    """Partial update; supplied fields are merged over the stored record."""

    level: str | None = None
    message: str | None = None


class BulkInsertRequest(BaseModel):
    """Payload for ingesting many records at once."""

    logs: Any = Field(default=None, description="Array of log payloads")


# =============================================================================
# Responses
# =============================================================================


class LogRecord(BaseModel):
    """
    Stored log record, returned as found in the file.

    The file may hold values no request model would accept (it can be edited
    by hand or written by older clients), so nothing here is coerced.
    """

    model_config = ConfigDict(extra="allow")

    id: Any = None
    timestamp: Any = None
    level: Any = None
    message: Any = None
    service: Any = None
    source: Any = None
    environment: Any = None
    ip: Any = None
    userAgent: Any = None
    metadata: Any = None
    tags: Any = None
    duration: Any = None
    updatedAt: Any = None


class LogResponse(BaseModel):
    success: bool
    data: LogRecord


class LogDeleteResponse(BaseModel):
    success: bool
    message: str
    data: LogRecord


class LogListResponse(BaseModel):
    """One page of log records."""

    success: bool
    data: list[LogRecord]
    pagination: PaginationMeta


class BulkInsertResult(BaseModel):
    inserted: int
    total: int


class BulkInsertResponse(BaseModel):
    success: bool
    data: BulkInsertResult


class RecentActivity(BaseModel):
    """Record counts inside each cumulative window."""

    last24h: int = 0
    last7d: int = 0
    last30d: int = 0


class LogStats(BaseModel):
    total: int
    byLevel: dict[str, int]
    byService: dict[str, int]
    recentActivity: RecentActivity


class StatsResponse(BaseModel):
    success: bool
    data: LogStats

"""
logdeck Logs - Service.

Boundary between the HTTP layer and the JSON store: validates caller input,
then runs the blocking store call in the thread pool.
"""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from logdeck.core.query import LogQuery, QueryResult
from logdeck.core.storage import GENERATED_FIELDS, JsonLogStore
from logdeck.exceptions import StorageReadException, ValidationException
from logdeck.modules.logs.schemas import LOG_LEVELS, LogCreate, LogUpdate
from logdeck.observability import MetricsStore, get_metrics_store

logger = logging.getLogger(__name__)

LEVEL_CHOICES = ", ".join(LOG_LEVELS)


def _pydantic_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]


class LogsService:
    """Service for log ingestion, query and maintenance."""

    def __init__(self, store: JsonLogStore, metrics: MetricsStore | None = None):
        self.store = store
        self.metrics = metrics or get_metrics_store()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_new(payload: LogCreate, index: int | None = None) -> dict[str, Any]:
        """Check required fields and level; return the data to store."""
        subject = "Missing required fields" if index is None else f"Log at index {index} is missing required fields"
        if not payload.level or not payload.message:
            raise ValidationException(f"{subject}: level and message are required")
        if payload.level not in LOG_LEVELS:
            subject = "Invalid log level" if index is None else f"Log at index {index} has invalid log level"
            raise ValidationException(f"{subject}. Must be one of: {LEVEL_CHOICES}")
        return payload.model_dump(exclude_unset=True)

    def _validate_bulk(self, items: Any) -> list[dict[str, Any]]:
        if not isinstance(items, list):
            raise ValidationException("Logs must be an array")
        if not items:
            raise ValidationException("Logs array cannot be empty")

        validated = []
        for i, item in enumerate(items):
            try:
                payload = LogCreate.model_validate(item)
            except ValidationError as e:
                raise ValidationException(f"Log at index {i} is malformed", errors=_pydantic_errors(e)) from e
            validated.append(self._validate_new(payload, index=i))
        return validated

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create_log(self, payload: LogCreate) -> dict[str, Any]:
        """Ingest one record."""
        with self.metrics.track("insert"):
            data = self._validate_new(payload)
            return await run_in_threadpool(self.store.insert, data)

    async def bulk_insert(self, items: Any) -> dict[str, int]:
        """Ingest many records; one invalid item rejects the whole batch before any write."""
        with self.metrics.track("bulk_insert"):
            data = self._validate_bulk(items)
            result = await run_in_threadpool(self.store.bulk_insert, data)
        logger.info(f"Bulk insert: {result['inserted']} records (total {result['total']})")
        return result

    async def list_logs(self, query: LogQuery) -> QueryResult:
        with self.metrics.track("query"):
            return await run_in_threadpool(self.store.query, query)

    async def get_log(self, log_id: str) -> dict[str, Any]:
        with self.metrics.track("get"):
            return await run_in_threadpool(self.store.get_by_id, log_id)

    async def update_log(self, log_id: str, payload: LogUpdate) -> dict[str, Any]:
        """Merge supplied fields into a record. ``id`` and ``timestamp`` are never changed."""
        with self.metrics.track("update"):
            fields = {
                k: v for k, v in payload.model_dump(exclude_unset=True).items() if k not in GENERATED_FIELDS
            }
            if "level" in fields and fields["level"] not in LOG_LEVELS:
                raise ValidationException(f"Invalid log level. Must be one of: {LEVEL_CHOICES}")
            return await run_in_threadpool(self.store.update, log_id, fields)

    async def delete_log(self, log_id: str) -> dict[str, Any]:
        with self.metrics.track("delete"):
            return await run_in_threadpool(self.store.delete, log_id)

    async def get_stats(self) -> dict[str, Any]:
        with self.metrics.track("stats"):
            return await run_in_threadpool(self.store.get_stats)

    async def stream_logs(
        self,
        level: str | None = None,
        poll_seconds: float = 1.0,
    ) -> AsyncGenerator[dict[str, str], None]:
        """
        Stream newly ingested records as SSE events.

        Records present when the stream opens are not replayed. Each poll
        re-reads the file and emits records whose id has not been seen yet.
        """
        seen = {r.get("id") for r in await run_in_threadpool(self.store.read_all)}

        while True:
            await asyncio.sleep(poll_seconds)
            try:
                records = await run_in_threadpool(self.store.read_all)
            except StorageReadException as e:
                # Retry on the next poll
                logger.warning("Log stream read failed: %s", e.message)
                continue

            for record in records:
                log_id = record.get("id")
                if log_id in seen:
                    continue
                if level and record.get("level") != level:
                    continue
                yield {"event": "log", "id": str(log_id), "data": json.dumps(record, ensure_ascii=False)}

            # Forget deleted ids so the set tracks the file
            seen = {r.get("id") for r in records}

"""Tests for caller-side validation and the live tail in LogsService."""

import asyncio
import json

import pytest

from logdeck.core.storage import JsonLogStore
from logdeck.exceptions import StorageReadException, ValidationException
from logdeck.modules.logs.schemas import LogCreate, LogUpdate
from logdeck.modules.logs.service import LogsService
from logdeck.observability import MetricsStore


@pytest.fixture
def service(store):
    return LogsService(store, metrics=MetricsStore())


class TestCreateValidation:
    @pytest.mark.asyncio
    async def test_missing_fields(self, service, store):
        with pytest.raises(ValidationException) as exc_info:
            await service.create_log(LogCreate(level="info"))
        assert exc_info.value.status_code == 400
        assert "level and message are required" in exc_info.value.message
        assert store.read_all() == []

    @pytest.mark.asyncio
    async def test_invalid_level(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.create_log(LogCreate(level="fatal", message="m"))
        assert exc_info.value.message.startswith("Invalid log level")

    @pytest.mark.asyncio
    async def test_omitted_optional_fields_not_stored(self, service):
        record = await service.create_log(LogCreate(level="info", message="m", service="api"))
        assert set(record) == {"id", "timestamp", "level", "message", "service"}

    @pytest.mark.asyncio
    async def test_extra_fields_kept(self, service):
        record = await service.create_log(
            LogCreate.model_validate({"level": "info", "message": "m", "traceId": "abc-xyz-123"})
        )
        assert record["traceId"] == "abc-xyz-123"


class TestBulkValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("items,message", [
        (None, "Logs must be an array"),
        ({"level": "info"}, "Logs must be an array"),
        ([], "Logs array cannot be empty"),
    ])
    async def test_shape(self, service, items, message):
        with pytest.raises(ValidationException) as exc_info:
            await service.bulk_insert(items)
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_one_bad_item_aborts_batch(self, service, store):
        items = [
            {"level": "info", "message": "ok"},
            {"level": "info"},
        ]
        with pytest.raises(ValidationException) as exc_info:
            await service.bulk_insert(items)
        assert exc_info.value.message.startswith("Log at index 1 is missing required fields")
        assert store.read_all() == []

    @pytest.mark.asyncio
    async def test_bad_level_names_index(self, service):
        items = [{"level": "nope", "message": "m"}]
        with pytest.raises(ValidationException) as exc_info:
            await service.bulk_insert(items)
        assert exc_info.value.message.startswith("Log at index 0 has invalid log level")

    @pytest.mark.asyncio
    async def test_malformed_item(self, service):
        with pytest.raises(ValidationException) as exc_info:
            await service.bulk_insert([{"level": "info", "message": "m", "tags": "not-a-list"}])
        assert exc_info.value.details["errors"]

    @pytest.mark.asyncio
    async def test_inserts(self, service):
        result = await service.bulk_insert([
            {"level": "info", "message": "a"},
            {"level": "warn", "message": "b"},
        ])
        assert result == {"inserted": 2, "total": 2}


class TestUpdate:
    @pytest.mark.asyncio
    async def test_id_and_timestamp_stripped(self, service):
        record = await service.create_log(LogCreate(level="info", message="m"))

        updated = await service.update_log(
            record["id"],
            LogUpdate.model_validate({"id": "other", "timestamp": "2000-01-01T00:00:00Z", "message": "x"}),
        )
        assert updated["id"] == record["id"]
        assert updated["timestamp"] == record["timestamp"]
        assert updated["message"] == "x"
        assert "updatedAt" in updated

    @pytest.mark.asyncio
    async def test_invalid_level_rejected(self, service):
        record = await service.create_log(LogCreate(level="info", message="m"))
        with pytest.raises(ValidationException):
            await service.update_log(record["id"], LogUpdate(level="loud"))


class TestMetrics:
    @pytest.mark.asyncio
    async def test_operations_tracked(self, service):
        await service.create_log(LogCreate(level="info", message="m"))
        with pytest.raises(ValidationException):
            await service.create_log(LogCreate(level="info"))

        summary = service.metrics.get_summary()
        assert summary["operations"]["insert"]["call_count"] == 2
        assert summary["operations"]["insert"]["errors"] == {"VALIDATION_ERROR": 1}


class TestStream:
    @pytest.mark.asyncio
    async def test_emits_only_new_records(self, service, store):
        store.insert({"level": "info", "message": "already there"})

        stream = service.stream_logs(poll_seconds=0.01)
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.1)
        fresh = store.insert({"level": "error", "message": "new"})

        event = await asyncio.wait_for(pending, timeout=2)
        await stream.aclose()

        assert event["event"] == "log"
        assert event["id"] == fresh["id"]
        assert json.loads(event["data"]) == fresh

    @pytest.mark.asyncio
    async def test_level_filter(self, service, store):
        stream = service.stream_logs(level="error", poll_seconds=0.01)
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.1)
        store.insert({"level": "info", "message": "skip me"})
        wanted = store.insert({"level": "error", "message": "want me"})

        event = await asyncio.wait_for(pending, timeout=2)
        await stream.aclose()

        assert event["id"] == wanted["id"]

    @pytest.mark.asyncio
    async def test_read_failure_does_not_end_stream(self, service, store, monkeypatch):
        stream = service.stream_logs(poll_seconds=0.01)
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0.05)

        real_read_all = store.read_all
        calls = {"n": 0}

        def flaky_read_all():
            calls["n"] += 1
            if calls["n"] == 1:
                raise StorageReadException(str(store.path), "Expecting value")
            return real_read_all()

        monkeypatch.setattr(store, "read_all", flaky_read_all)
        fresh = JsonLogStore(store.path).insert({"level": "info", "message": "after hiccup"})

        event = await asyncio.wait_for(pending, timeout=2)
        await stream.aclose()

        assert calls["n"] >= 2
        assert event["id"] == fresh["id"]

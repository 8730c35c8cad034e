"""
logdeck Core - JSON file storage.

The whole record set lives in one pretty-printed JSON array on disk. Every
call re-reads the file; every mutation rewrites it in full.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterable
from uuid import uuid4

import structlog

from logdeck.core.query import LogQuery, QueryResult, run_query
from logdeck.core.stats import compute_stats
from logdeck.exceptions import NotFoundException, StorageReadException, StorageWriteException

logger = structlog.get_logger(__name__)

# Fields assigned by the store at creation time; never taken from the caller.
GENERATED_FIELDS = ("id", "timestamp")


def utc_now_iso() -> str:
    """Current UTC instant as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonLogStore:
    """
    Accessor for the JSON log file.

    Mutations run their read-modify-write cycle under a per-instance lock, so
    callers sharing one instance never lose updates. Reads take the same lock
    and writes swap in a complete file, so a reader never sees a torn file.
    Separate processes writing the same file are not coordinated.
    """

    def __init__(self, path: str | Path = "data/logs.json", encoding: str = "utf-8"):
        self.path = Path(path).resolve()
        self.encoding = encoding
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Raw file access
    # -------------------------------------------------------------------------

    def read_all(self) -> list[dict[str, Any]]:
        """Load every record. A missing file is an empty record set."""
        try:
            with self._lock:
                raw = self.path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.error("storage.read_failed", path=str(self.path), error=str(e))
            raise StorageReadException(str(self.path), str(e)) from e

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("storage.malformed", path=str(self.path), error=str(e))
            raise StorageReadException(str(self.path), str(e)) from e

        if not isinstance(records, list):
            raise StorageReadException(
                str(self.path),
                f"expected a JSON array, found {type(records).__name__}",
            )
        return records

    def write_all(self, records: list[dict[str, Any]]) -> None:
        """
        Replace the file with ``records``, creating its directory if needed.

        Content goes to a temp file in the same directory that is then swapped
        in with os.replace, so readers never see a partially written file.
        """
        tmp_path: str | None = None
        try:
            payload = json.dumps(records, indent=2, ensure_ascii=False)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                with NamedTemporaryFile(
                    mode="w",
                    encoding=self.encoding,
                    dir=self.path.parent,
                    prefix=f".{self.path.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as tmp:
                    tmp_path = tmp.name
                    tmp.write(payload)
                os.replace(tmp_path, self.path)
                tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("storage.write_failed", path=str(self.path), error=str(e))
            raise StorageWriteException(str(self.path), str(e)) from e
        finally:
            # Clean up temp on failure
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
        logger.debug("storage.written", path=str(self.path), count=len(records))

    # -------------------------------------------------------------------------
    # Record operations
    # -------------------------------------------------------------------------

    def _new_record(self, data: dict[str, Any]) -> dict[str, Any]:
        record = {"id": str(uuid4()), "timestamp": utc_now_iso()}
        record.update({k: v for k, v in data.items() if k not in GENERATED_FIELDS})
        return record

    @staticmethod
    def _index_of(records: list[dict[str, Any]], log_id: str) -> int:
        for i, record in enumerate(records):
            if record.get("id") == log_id:
                return i
        raise NotFoundException("Log", log_id)

    def insert(self, data: dict[str, Any]) -> dict[str, Any]:
        """Append one record with a fresh id and timestamp."""
        with self._lock:
            records = self.read_all()
            record = self._new_record(data)
            records.append(record)
            self.write_all(records)

        logger.info("log.inserted", id=record["id"], level=record.get("level"), total=len(records))
        return record

    def bulk_insert(self, items: Iterable[dict[str, Any]]) -> dict[str, int]:
        """Append many records in a single read-modify-write cycle."""
        with self._lock:
            records = self.read_all()
            new_records = [self._new_record(data) for data in items]
            records.extend(new_records)
            self.write_all(records)

        logger.info("log.bulk_inserted", inserted=len(new_records), total=len(records))
        return {"inserted": len(new_records), "total": len(records)}

    def get_by_id(self, log_id: str) -> dict[str, Any]:
        records = self.read_all()
        return records[self._index_of(records, log_id)]

    def update(self, log_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Shallow-merge ``fields`` over the stored record and stamp ``updatedAt``.

        Callers are responsible for removing ``id``/``timestamp`` from
        ``fields``; the store merges whatever it is given.
        """
        with self._lock:
            records = self.read_all()
            index = self._index_of(records, log_id)
            merged = {**records[index], **fields, "updatedAt": utc_now_iso()}
            records[index] = merged
            self.write_all(records)

        logger.info("log.updated", id=log_id, fields=sorted(fields))
        return merged

    def delete(self, log_id: str) -> dict[str, Any]:
        """Remove a record and return it."""
        with self._lock:
            records = self.read_all()
            removed = records.pop(self._index_of(records, log_id))
            self.write_all(records)

        logger.info("log.deleted", id=log_id, total=len(records))
        return removed

    def query(self, query: LogQuery | None = None) -> QueryResult:
        return run_query(self.read_all(), query or LogQuery())

    def get_stats(self, now: datetime | None = None) -> dict[str, Any]:
        return compute_stats(self.read_all(), now=now)

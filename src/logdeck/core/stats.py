"""
logdeck Core - Stats aggregation.

Single pass over the record set producing totals, per-level and per-service
counts, and cumulative recent-activity windows.
"""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

from logdeck.core.query import parse_timestamp

# Window name -> width. A record inside a narrower window is also counted in
# every wider one.
ACTIVITY_WINDOWS: dict[str, timedelta] = {
    "last24h": timedelta(days=1),
    "last7d": timedelta(days=7),
    "last30d": timedelta(days=30),
}


def _group_key(value: Any) -> str | None:
    """Counter key for a stored field; hand-edited files may hold non-strings."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def compute_stats(records: list[dict[str, Any]], now: datetime | None = None) -> dict[str, Any]:
    """Aggregate ``records`` relative to ``now`` (defaults to the current UTC instant)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    by_level: dict[str, int] = defaultdict(int)
    by_service: dict[str, int] = defaultdict(int)
    recent = {name: 0 for name in ACTIVITY_WINDOWS}

    for record in records:
        by_level[_group_key(record.get("level")) or "unknown"] += 1

        service = _group_key(record.get("service"))
        if service:
            by_service[service] += 1

        instant = parse_timestamp(record.get("timestamp"))
        if instant is None:
            continue
        age = now - instant
        for name, width in ACTIVITY_WINDOWS.items():
            if age <= width:
                recent[name] += 1

    return {
        "total": len(records),
        "byLevel": dict(by_level),
        "byService": dict(by_service),
        "recentActivity": recent,
    }

"""logdeck Logs Module - Ingestion, query and stats over the JSON log file."""

from logdeck.modules.logs.router import router
from logdeck.modules.logs.service import LogsService

__all__ = ["router", "LogsService"]

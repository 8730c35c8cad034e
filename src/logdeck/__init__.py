"""logdeck - JSON-file backed log ingestion and query API."""

__version__ = "0.1.0"

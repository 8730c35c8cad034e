"""logdeck Core - Storage accessor, query pipeline and stats aggregation."""

from logdeck.core.query import LogQuery, QueryResult, run_query
from logdeck.core.stats import compute_stats
from logdeck.core.storage import JsonLogStore

__all__ = ["JsonLogStore", "LogQuery", "QueryResult", "run_query", "compute_stats"]

"""
logdeck - Dependency Injection.

FastAPI dependencies for settings, feature flags and the log store.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from logdeck.config import FeatureFlags, Settings, get_settings
from logdeck.core.storage import JsonLogStore
from logdeck.exceptions import FeatureDisabledException


# =============================================================================
# Settings Dependencies
# =============================================================================


def get_features(settings: Annotated[Settings, Depends(get_settings)]) -> FeatureFlags:
    """Get feature flags from settings."""
    return settings.features


# =============================================================================
# Storage
# =============================================================================


@lru_cache
def _store_for(path: str, encoding: str) -> JsonLogStore:
    return JsonLogStore(path, encoding=encoding)


def get_log_store(settings: Annotated[Settings, Depends(get_settings)]) -> JsonLogStore:
    """
    Get the store for the configured file.

    One instance per path, so every request writing the same file shares
    the same lock.
    """
    return _store_for(settings.storage.path, settings.storage.encoding)


def reset_log_stores() -> None:
    """Drop cached store instances. Useful for testing."""
    _store_for.cache_clear()


# =============================================================================
# Feature Flag Guards
# =============================================================================


def require_feature(feature_name: str):
    """Create a dependency that requires a specific feature to be enabled."""

    def check_feature(features: Annotated[FeatureFlags, Depends(get_features)]) -> bool:
        if not getattr(features, feature_name, False):
            raise FeatureDisabledException(feature_name)
        return True

    return check_feature


# Specific feature guards
require_ingest = Depends(require_feature("ingest"))
require_query = Depends(require_feature("query"))
require_stats = Depends(require_feature("stats"))
require_bulk = Depends(require_feature("bulk"))
require_stream = Depends(require_feature("stream"))

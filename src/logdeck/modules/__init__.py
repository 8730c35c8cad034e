"""logdeck Modules - All application modules."""

from logdeck.modules.logs import router as logs_router

__all__ = ["logs_router"]

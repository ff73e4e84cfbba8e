"""FastAPI adapter – trace/metrics middleware."""
from mp_telemetry.adapters.fastapi.middleware import (
    DEFAULT_IGNORED_PATHS,
    FastAPITraceMiddleware,
    route_of,
)

__all__ = ["DEFAULT_IGNORED_PATHS", "FastAPITraceMiddleware", "route_of"]

"""adeSync API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    BatchStartedResponse,
    ErrorResponse,
    HealthResponse,
    LinkStatsResponse,
    MatchLinksRequest,
    ParseLineupsRequest,
    RunResponse,
    StartSyncRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "BatchStartedResponse",
    "ErrorResponse",
    "HealthResponse",
    "LinkStatsResponse",
    "MatchLinksRequest",
    "ParseLineupsRequest",
    "RunResponse",
    "StartSyncRequest",
]

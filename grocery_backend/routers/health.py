from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.logger import get_logger
from ..db.sqlalchemy import get_db, get_effective_db_params
from ..models.schemas import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])

_logger = get_logger(__name__)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=HealthResponse,
    summary="Service health",
    description="Liveness/health endpoint. Always returns 200 when the app is up. No database access.",
    responses={
        200: {"description": "Service is healthy"},
    },
)
def get_health(request: Request) -> HealthResponse:
    """
    Root health indicator used for liveness. Always returns 200 with {'status':'ok'}.
    """
    settings = request.app.state.settings
    _logger.info("Health diagnostics", extra={"env": settings.APP_ENV})
    return HealthResponse(status="ok")


# PUBLIC_INTERFACE
@router.get(
    "/healthz",
    response_model=HealthResponse,
    summary="Service health (alias)",
    description="Alias health endpoint commonly used by platforms for liveness checks.",
    responses={200: {"description": "Service is healthy"}},
)
def get_healthz(request: Request) -> HealthResponse:
    """Alias of /health that returns the same response payload."""
    return get_health(request)


# PUBLIC_INTERFACE
@router.get(
    "/db",
    response_model=HealthResponse,
    summary="Database connectivity",
    description="Runs a simple SELECT 1 against the grocery store to confirm it is reachable.",
    responses={
        200: {"description": "Database reachable"},
        503: {"description": "Database unavailable"},
    },
)
def health_db(request: Request, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Database connectivity health check.

    Returns 200 with {"status":"ok"} on success and 503 with the redacted
    connection URL on failure.
    """
    try:
        db.execute(text("SELECT 1"))
        _logger.info("DB connectivity OK via /health/db")
        return HealthResponse(status="ok")
    except SQLAlchemyError as exc:
        eff = get_effective_db_params(request.app.state.settings.DATABASE_URL)
        _logger.error("DB connectivity failed", exc_info=exc, extra={"effective_url": eff.get("url_redacted")})
        raise HTTPException(
            status_code=503,
            detail=f"database_unavailable: {str(exc)} | effective={eff.get('url_redacted')}",
        )

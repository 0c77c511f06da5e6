from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..core.logger import get_logger
from ..db.sqlalchemy import get_effective_db_params

logger = get_logger(__name__)
router = APIRouter(prefix="/debug", tags=["Health"])


class ConfigDebug(BaseModel):
    """Effective configuration (redacted) for diagnostics."""
    app_env: str = Field(..., description="Execution environment")
    backend: str = Field(..., description="SQLAlchemy backend name (e.g., sqlite)")
    driver: str = Field(..., description="Resolved SQLAlchemy driver (e.g., pysqlite)")
    database: Optional[str] = Field(None, description="Database path or name")
    in_memory: bool = Field(False, description="Whether the store lives only in memory")
    redacted_url: Optional[str] = Field(None, description="Redacted connection URL suitable for logs")
    seed_sample_items: bool = Field(..., description="Whether samples are inserted into an empty table")
    import_url: str = Field(..., description="Remote list endpoint used by the import")
    import_timeout_seconds: float = Field(..., description="Timeout for the remote import request")
    list_loaded: bool = Field(..., description="Whether the in-memory list finished its initial load")


# PUBLIC_INTERFACE
@router.get(
    "/config",
    response_model=ConfigDebug,
    summary="Effective configuration (redacted)",
    description="Returns the effective store and import configuration without secrets. Does not touch the database.",
    responses={
        200: {"description": "Effective configuration returned."}
    },
)
def debug_config(request: Request) -> ConfigDebug:
    """
    Diagnostic endpoint to reveal the active configuration without exposing secrets.
    """
    s = request.app.state.settings
    eff: Dict[str, Any] = get_effective_db_params(s.DATABASE_URL)
    state = getattr(request.app.state, "list_state", None)

    payload = ConfigDebug(
        app_env=s.APP_ENV,
        backend=str(eff.get("backend")),
        driver=str(eff.get("driver")),
        database=eff.get("database"),
        in_memory=bool(eff.get("in_memory")),
        redacted_url=eff.get("url_redacted"),
        seed_sample_items=s.SEED_SAMPLE_ITEMS,
        import_url=s.IMPORT_URL,
        import_timeout_seconds=s.IMPORT_TIMEOUT_SECONDS,
        list_loaded=bool(state is not None and not state.loading),
    )

    logger.info("Debug config requested", extra={"config": payload.model_dump()})
    return payload

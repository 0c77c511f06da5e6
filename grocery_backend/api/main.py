from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from ..core.config import Settings, get_settings
from ..core.errors import StorageError
from ..core.logger import get_logger
from ..db import grocery_store
from ..db.sqlalchemy import build_engine, build_session_factory
from ..routers.debug import router as debug_router
from ..routers.groceries import router as groceries_router
from ..routers.health import router as health_router
from ..services.list_state import GroceryListState
from ..services.remote_import import RemoteListClient

logger = get_logger(__name__)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, remote_client: Optional[RemoteListClient] = None) -> FastAPI:
    """Build the FastAPI application.

    The engine, session factory and list coordinator are created in the startup
    hook and kept on ``app.state``; nothing touches the database at import time.

    Args:
        settings: Configuration to use; defaults to the cached environment settings.
        remote_client: Client for the bulk import; defaults to one built from settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="REST API for a grocery list backed by a local SQLite store, with bulk import from a remote list.",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        openapi_tags=[
            {"name": "Health", "description": "Service health and diagnostics"},
            {"name": "Groceries", "description": "Grocery list management"},
        ],
    )
    app.state.settings = settings

    origins = settings.cors_origins_list()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup_event():
        """Open the store, create and seed the table, and load the list.

        Storage failures are logged; the app still starts and the list
        reports the failure through its notices.
        """
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)
        app.state.engine = engine
        app.state.session_factory = session_factory

        try:
            grocery_store.init_schema(engine)
            if settings.SEED_SAMPLE_ITEMS:
                with session_factory() as db:
                    grocery_store.seed_if_empty(db)
        except StorageError as exc:
            logger.error("Error initializing database", extra={"error": exc.message})

        client = remote_client or RemoteListClient(settings.IMPORT_URL, timeout=settings.IMPORT_TIMEOUT_SECONDS)
        list_state = GroceryListState(session_factory, client)
        list_state.load()
        app.state.list_state = list_state
        logger.info("Startup complete", extra={"items": len(list_state.items)})

    @app.on_event("shutdown")
    def shutdown_event():
        """Dispose the engine created at startup."""
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            engine.dispose()
        logger.info("Shutdown complete.")

    # Root health remains available (back-compat)
    @app.get("/", summary="Health Check (root)", tags=["Health"])
    def health_check_root():
        """Root-level health check.

        Returns:
            A simple JSON message indicating the service is healthy.
        """
        return {"message": "Healthy"}

    app.include_router(health_router)
    app.include_router(groceries_router)
    app.include_router(debug_router)

    logger.info("FastAPI app initialized", extra={"app_name": settings.APP_NAME, "env": settings.APP_ENV})
    return app


app = create_app()


if __name__ == "__main__":
    # Allow running as: python -m grocery_backend.api.main
    import uvicorn  # type: ignore

    uvicorn.run("grocery_backend.api.main:app", host="0.0.0.0", port=get_settings().PORT, log_level="info")

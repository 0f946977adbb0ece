"""TowerWatch — security-operations dashboard backend.

FastAPI entry point with lifespan data loading, error handlers and CORS.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import dependencies
from .api.router import api_router
from .config import get_config
from .data.loader import load_dashboard_data, load_seed_file
from .engine.errors import DataSourceError
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import RequestIDMiddleware
from .utils.logging import get_logger, setup_logging

config = get_config()
setup_logging(
    debug=config.debug,
    log_dir=config.log_dir,
    log_max_bytes=config.log_max_bytes,
    log_backup_count=config.log_backup_count,
)
logger = get_logger("towerwatch.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load incident data on startup."""
    app_config = dependencies.get_app_config()
    logger.info("towerwatch_starting", data_source=app_config.data_source)
    try:
        data = await load_dashboard_data(app_config)
    except DataSourceError as e:
        if app_config.data_source == "mock":
            raise
        logger.error("dashboard_data_load_failed", error=str(e), fallback="mock")
        data = load_seed_file(app_config.resolved_seed_path)
    store = dependencies.init_dashboard_data(data)

    def _log_change() -> None:
        logger.debug("incident_store_changed", incidents=len(store))

    unsubscribe = store.subscribe(_log_change)
    yield
    unsubscribe()
    logger.info("towerwatch_stopped")


app = FastAPI(
    title="TOWERWATCH",
    description="Security-operations dashboard backend",
    version="0.4.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added last so it runs first
app.add_middleware(RequestIDMiddleware)

app.include_router(api_router)


@app.get("/health")
async def health():
    store = dependencies.get_incident_store()
    return {
        "status": "ok",
        "app": config.app_name,
        "data_source": config.data_source,
        "incidents": len(store),
        "subscribers": store.subscriber_count,
    }


def main():
    """Run the TowerWatch server."""
    uvicorn.run(
        "towerwatch.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
    )


if __name__ == "__main__":
    main()

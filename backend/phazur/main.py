import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from . import telemetry_pipeline
from .config import Settings, get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import get_engine
from .certification_routes import router as certification_router
from .developer_routes import router as developer_router
from .entitlement_routes import router as entitlement_router
from .logging_config import configure_logging
from .progress_routes import router as progress_router
from .usage_routes import router as usage_router


configure_logging()
telemetry_pipeline.install()
logger = logging.getLogger(__name__)
app = FastAPI(title="Phazur Progress Engine", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

settings_snapshot = get_settings()
logger.info("Backend starting with database configured: %s", bool(settings_snapshot.database_url))
logger.info("Default plan for unidentified subscriptions: %s", settings_snapshot.default_plan_id)

app.include_router(progress_router)
app.include_router(entitlement_router)
app.include_router(usage_router)
app.include_router(certification_router)
if settings_snapshot.debug_endpoints:
    app.include_router(developer_router)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "defaultPlan": settings.default_plan_id}


@app.get("/healthz/database")
def database_health() -> Dict[str, Any]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "pool": get_pool_snapshot(engine)}

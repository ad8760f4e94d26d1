import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from farm_manager.api import auth, farms, inventory, purchase_requests
from farm_manager.config import settings
from farm_manager.database import SessionLocal, init_db
from farm_manager.exceptions import FarmError
from farm_manager.services.auth_service import ensure_default_admin

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Create default admin if no users
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()
    logger.info("%s started", settings.APP_NAME)
    yield


app = FastAPI(
    title="Farm Manager API",
    description="Farm inventory ledger and purchase request workflow",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(FarmError)
async def farm_error_handler(request: Request, exc: FarmError):
    """Map domain errors to their HTTP status with a readable message."""
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return JSON for unhandled exceptions so frontend can parse error."""
    logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(auth.router, prefix="/api")
app.include_router(farms.router, prefix="/api")
app.include_router(inventory.router, prefix="/api")
app.include_router(purchase_requests.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.db.base import get_db
from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.routers import users as users_router
from app.routers import access as access_router
from app.routers import streaks as streaks_router
from app.routers import vows as vows_router
from app.routers import progress as progress_router
from app.routers import ai_usage as ai_usage_router
from app.core.errors import (
    VowException,
    vow_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="VOW API",
    description=(
        "**Access & Progress Rules Engine**\n\n"
        "Decides who may use the product (trial / subscription), which features a "
        "tier unlocks, and computes streaks with grace, alignment scores, identity "
        "profiles and XP.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(VowException, vow_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(users_router.router)
app.include_router(access_router.router)
app.include_router(streaks_router.router)
app.include_router(vows_router.router)
app.include_router(progress_router.router)
app.include_router(ai_usage_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("health_db_unreachable", error=str(exc))
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "unreachable"},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}

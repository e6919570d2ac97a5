# =====================================================================
# SECTION START: IMPORTS
# =====================================================================

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import LOG_LEVEL
from db import engine, Base, SessionLocal
import models  # noqa: F401
from logging_config import setup_logging
from routers.flights import router as flights_router
from routers.sessions import router as sessions_router
from routers.users import router as users_router
from services.context import AppServices, build_services
from services.errors import (
    GatewayError,
    InvalidToken,
    MiniAppRequired,
    PermissionDenied,
    SessionNotFound,
    ValidationFailed,
)

# =====================================================================
# SECTION END: IMPORTS
# =====================================================================

setup_logging(LOG_LEVEL)
logger = logging.getLogger("flight_tracker")


# =====================================================================
# SECTION START: ERROR HANDLERS
# =====================================================================

def _validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=422,
        content={"detail": {"code": "VALIDATION_FAILED", "errors": exc.errors}},
    )


def _permission_denied(request: Request, exc: PermissionDenied):
    return JSONResponse(
        status_code=403,
        content={"detail": {"code": "NOT_PERMITTED", "message": str(exc)}},
    )


def _invalid_token(request: Request, exc: InvalidToken):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _session_not_found(request: Request, exc: SessionNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _mini_app_required(request: Request, exc: MiniAppRequired):
    return JSONResponse(
        status_code=409,
        content={"detail": {"code": "MINI_APP_REQUIRED", "message": str(exc), "link": exc.link}},
    )


def _gateway_error(request: Request, exc: GatewayError):
    logger.error(f"[api] storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": {"code": "STORAGE_UNAVAILABLE", "message": "Storage is temporarily unavailable"}},
    )

# =====================================================================
# SECTION END: ERROR HANDLERS
# =====================================================================


# =====================================================================
# SECTION START: FastAPI APP AND CORS
# =====================================================================

def create_app(services: Optional[AppServices] = None) -> FastAPI:
    app = FastAPI(title="Flight price tracker")
    app.state.services = services

    @app.on_event("startup")
    def on_startup():
        if app.state.services is None:
            Base.metadata.create_all(bind=engine)
            app.state.services = build_services(SessionLocal)
        logger.info("[api] services ready")

    @app.on_event("shutdown")
    def on_shutdown():
        autosave = app.state.services.autosave
        logger.info(f"[api] shutting down, {autosave.tracked()} workspace(s) with unsaved changes")
        failures = autosave.flush_pending()
        if failures:
            logger.error(f"[api] {failures} dataset(s) could not be saved on shutdown")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationFailed, _validation_failed)
    app.add_exception_handler(PermissionDenied, _permission_denied)
    app.add_exception_handler(InvalidToken, _invalid_token)
    app.add_exception_handler(SessionNotFound, _session_not_found)
    app.add_exception_handler(MiniAppRequired, _mini_app_required)
    app.add_exception_handler(GatewayError, _gateway_error)

    app.include_router(users_router)
    app.include_router(flights_router)
    app.include_router(sessions_router)

    @app.get("/")
    def home():
        return {"message": "Flight tracker backend is running"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()

# =====================================================================
# SECTION END: FastAPI APP AND CORS
# =====================================================================

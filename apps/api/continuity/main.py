from __future__ import annotations

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from continuity.catalog import create_database
from continuity.core.database import Database
from continuity.core.errors import ContinuityError
from continuity.core.events import emit
from continuity.modules.characters.router import router as characters_router
from continuity.modules.costumes.router import router as costumes_router
from continuity.modules.scenes.router import router as scenes_router
from continuity.modules.shooting_days.router import router as shooting_days_router
from continuity.modules.sync.router import router as sync_router

APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

_log = logging.getLogger("continuity")
if not logging.getLogger().handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


# Contract:
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details
def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int) -> JSONResponse:
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )


def _install_observability(app: FastAPI) -> None:
    @app.middleware("http")
    async def _request_id_mw(request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
        request.state.request_id = rid
        emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
        try:
            resp = await call_next(request)
        except Exception as e:
            emit("error", "http.request.exception", str(e), rid, __name__)
            raise
        resp.headers["X-Request-Id"] = rid
        emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp, 'status_code', None)}", rid, __name__)
        return resp

    @app.exception_handler(ContinuityError)
    async def _continuity_exc_handler(request: Request, exc: ContinuityError):
        rid = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            emit("error", "http.request.error", exc.message, rid, __name__, error=exc.error)
        return _err_envelope(exc.error, exc.message, rid, exc.details, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        rid = getattr(request.state, "request_id", None)
        error = "not_found" if exc.status_code == 404 else "http_error"
        return _err_envelope(error, str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        rid = getattr(request.state, "request_id", None)
        details = [{"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        return _err_envelope("validation_error", "request validation failed", rid, details, 422)

    @app.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        rid = getattr(request.state, "request_id", None)
        _log.exception("unhandled error (request_id=%s)", rid)
        return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """A database passed in is initialized here but stays owned by the caller."""
    owns_database = database is None
    db = database or create_database()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.initialize()
        try:
            yield
        finally:
            if owns_database:
                db.shutdown()

    app = FastAPI(title="Continuity API", version=APP_VERSION, lifespan=lifespan)
    app.state.database = db
    _install_observability(app)

    @app.get("/health")
    def health():
        checks = db.health()
        ok = all(c.get("status") == "ok" for c in checks.values())
        return {
            "status": "ok" if ok else "degraded",
            "version": APP_VERSION,
            "db": checks["db"],
            "storage": checks["storage"],
        }

    app.include_router(costumes_router)
    app.include_router(characters_router)
    app.include_router(scenes_router)
    app.include_router(shooting_days_router)
    app.include_router(sync_router)
    return app


app = create_app()

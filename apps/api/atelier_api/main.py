from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from atelier_api.core.config import DEFAULT_JWT_SECRET, Settings, get_settings
from atelier_api.core.db import db_health, init_db
from atelier_api.core.errors import AppError
from atelier_api.core.obs import configure_logging, emit
from atelier_api.core.storage import storage_health
from atelier_api.modules.attributes.router import router as attributes_router
from atelier_api.modules.entities.router import characters_router, scenes_router, styles_router
from atelier_api.modules.images.providers.registry import ServiceRegistry
from atelier_api.modules.images.router import router as images_router
from atelier_api.modules.spaces.router import router as spaces_router


def _log_env_summary(settings: Settings) -> None:
    # presence only, never secret values
    summary = {
        "image_provider": settings.image_provider,
        "image_model": settings.image_model,
        "generation_key": bool(settings.google_api_key),
        "s3": settings.s3_configured,
        "cloudfront": settings.cloudfront_configured,
        "db_auto_create": settings.db_auto_create,
    }
    emit("info", "env.summary", "environment summary", None, __name__, **summary)

    if settings.image_provider != "mock" and not settings.google_api_key:
        emit("warning", "env.summary", "GOOGLE_API_KEY not set; image generation will fail", None, __name__)
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        emit("warning", "env.summary", "JWT_SECRET not set; using the development secret", None, __name__)
    if not settings.s3_configured:
        emit("warning", "env.summary", "S3 not configured; using local storage", None, __name__, storage_root=settings.storage_root)
    cf = [settings.cf_domain, settings.cf_key_pair_id, settings.cf_private_key]
    if any(cf) and not all(cf):
        emit("warning", "env.summary", "CloudFront partially configured; signed URLs disabled", None, __name__)


def create_app(registry: Optional[ServiceRegistry] = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_env_summary(app.state.registry.settings)
        if app.state.registry.settings.db_auto_create:
            init_db()
        yield

    app = FastAPI(title="Atelier API", version=settings.app_version, lifespan=lifespan)
    app.state.registry = registry or ServiceRegistry(settings=settings)

    # === OBSERVABILITY FOUNDATIONS ===
    # - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
    # - Error envelope keys: error, message, request_id, details
    # - /health keys: status, version, db, storage, last_error_summary

    def _err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int):
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

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        rid = getattr(request.state, "request_id", None)
        return _err_envelope(exc.envelope_error(), exc.message, rid, exc.envelope_details(), exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        rid = getattr(request.state, "request_id", None)
        return _err_envelope("http_error", str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        rid = getattr(request.state, "request_id", None)
        return _err_envelope("validation_error", "request validation failed", rid, exc.errors(), 422)

    @app.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        rid = getattr(request.state, "request_id", None)
        emit("error", "http.request.exception", str(exc), rid, __name__, type=type(exc).__name__)
        return _err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)
    # === END OBSERVABILITY FOUNDATIONS ===

    @app.get("/health")
    def health() -> Dict[str, Any]:
        db = db_health()
        try:
            storage = storage_health(app.state.registry.storage())
        except Exception as e:
            storage = {"status": "error", "error": str(e)}
        ok = db.get("status") == "ok" and storage.get("status") == "ok"
        return {
            "status": "ok" if ok else "degraded",
            "version": app.state.registry.settings.app_version,
            "db": db,
            "storage": storage,
            "last_error_summary": None,
        }

    app.include_router(spaces_router)
    app.include_router(characters_router)
    app.include_router(styles_router)
    app.include_router(scenes_router)
    app.include_router(images_router)
    app.include_router(attributes_router)
    return app


app = create_app()

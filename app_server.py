import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from birthorder.backend import open_store
from birthorder.config import Settings, load_settings
from birthorder.errors import (
    BirthOrderError,
    ExportError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from birthorder.logs import setup_logging
from birthorder.router import router as submissions_router
from birthorder.store import SubmissionStore

logger = logging.getLogger("app_server")


# ---------------------------------------------------------------------
# Swagger / OpenAPI metadata
# ---------------------------------------------------------------------
tags_metadata = [
    {"name": "submissions", "description": "Submit, list and export birth-order research responses."},
]


# ---------------------------------------------------------------------
# Error responses: always {success: false, error, details?}
# ---------------------------------------------------------------------
async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    body = {"success": False, "error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    # The store already logged the underlying driver error.
    return JSONResponse(status_code=500, content={"success": False, "error": exc.public_message})


async def _export_error(request: Request, exc: ExportError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": exc.message})


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("[API] %s path=%s", exc.message, request.url.path)
    return JSONResponse(status_code=404, content={"success": False, "error": exc.public_message})


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[API] unhandled error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app(settings: Optional[Settings] = None, store: Optional[SubmissionStore] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    if store is None:
        store = open_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("[Shutdown] closing %s store", app.state.store.name)
        app.state.store.close()

    app = FastAPI(
        title="Birth Order Research API",
        description=(
            "Collects birth-order demographic survey submissions and serves aggregate "
            "statistics and CSV export for the research dashboard.\n\n"
            "Swagger UI: /docs\n"
            "ReDoc: /redoc"
        ),
        version="1.0.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(StorageError, _storage_error)
    app.add_exception_handler(ExportError, _export_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(BirthOrderError, _unhandled)
    app.add_exception_handler(Exception, _unhandled)

    app.include_router(submissions_router, prefix="/api", tags=["submissions"])
    return app


# ---------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    app = create_app(_settings)

    print(f"[Startup] Launching FastAPI on {_settings.host}:{_settings.port} ...", flush=True)
    print(f"[Startup] API available at: http://localhost:{_settings.port}/api", flush=True)
    uvicorn.run(app, host=_settings.host, port=_settings.port)

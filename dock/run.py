"""
Depot HTTP server.

Run:
    depot-server

Or:
    python -m dock.run
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from depot import Config
from depot.StorageGate import StorageError, StorageFailure, StorageGate
from depot.shared.gate import GateLogger

from dock import lifecycle
from dock.api import config as config_api
from dock.api import events as events_api
from dock.api import files as files_api
from dock.api import health as health_api
from dock.middleware.security import SecurityHeadersMiddleware
from dock.services.events import EventBus, build_emitter

_log = GateLogger.get("Dock")


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid request: {location} {first.get('msg', '')}".strip()


def create_app(storage_root: Optional[str] = None) -> FastAPI:
    """
    Build the Depot application.

    Args:
        storage_root: Override for the STORAGE_ROOT config value
    """
    event_bus = EventBus()
    emit_event = build_emitter(event_bus)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await lifecycle.startup(emit_event, storage_root)
        yield
        await lifecycle.shutdown()

    app = FastAPI(title="Depot", lifespan=lifespan)
    app.state.event_bus = event_bus

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.get("CORS_ORIGINS", ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        if isinstance(exc, StorageFailure):
            _log.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _format_validation_error(exc)})

    app.include_router(files_api.create_router(StorageGate, emit_event))
    app.include_router(health_api.create_router(StorageGate, event_bus))
    app.include_router(events_api.create_router(event_bus))
    app.include_router(config_api.create_router(Config))

    return app


def main():
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=Config.get("HOST", "0.0.0.0"),
        port=Config.get("PORT", 3000),
        log_level=str(Config.get("LOG_LEVEL", "INFO")).lower(),
    )


if __name__ == "__main__":
    main()

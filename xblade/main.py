"""
Main entry point for the season-sync API.

``app`` is the FastAPI application; ``asgi_app`` wraps it with the Socket.IO
server and is what uvicorn should serve.
"""
from contextlib import asynccontextmanager
import os

import socketio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from xblade.routes import admin, public
from xblade.services.errors import DomainError
from xblade.services.realtime_service import SeasonNotifier, create_socket_server
from xblade.utils.db_async import init_db, dispose_engine, describe_database_url, DATABASE_URL

from xblade.logging_config import setup_logging
from xblade.config import settings

import logging
logger = logging.getLogger(__name__)

setup_logging(level=settings.log_level, access_log=settings.access_log)

@asynccontextmanager
async def lifespan(app: FastAPI):
    should_init_db = (
        settings.is_dev
        and settings.auto_init_db
        and not os.getenv("FLY_APP_NAME")
    )

    if should_init_db:
        logger.info("Running init_db()…")
        logger.info(f"DB target: {describe_database_url(DATABASE_URL)}")
        try:
            await init_db()
            logger.info("DB ready.")
        except Exception:
            logger.exception("init_db failed")
            raise
    else:
        logger.info("Skipping init_db(); auto_init_db disabled or managed deployment detected")

    yield

    notifier: SeasonNotifier = app.state.notifier
    logger.info(f"Realtime: {notifier.emitted} event(s) emitted, {notifier.dropped} dropped")
    try:
        logger.info("Disposing DB engine…")
        await dispose_engine()
        logger.info("DB engine disposed.")
    except Exception:
        logger.exception("Failed to dispose DB engine")

app = FastAPI(title="XBlade Season Sync", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.notifier = SeasonNotifier(history_size=settings.realtime_history_size)
app.include_router(admin.router)
app.include_router(public.router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.http_status)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {
        ".".join(str(part) for part in err["loc"] if part != "body") or "__root__": err["msg"]
        for err in exc.errors()
    }
    return JSONResponse(
        {"success": False, "error": "validation_error", "message": "Invalid request", "fields": fields},
        status_code=400,
    )


@app.get("/health")
async def health_check():
    """Health Check Endpoint"""
    return {"status": "ok"}


sio = create_socket_server(settings.cors_origins)
app.state.notifier.attach(sio)
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(asgi_app, host="0.0.0.0", port=8080)

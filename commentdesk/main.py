"""
FastAPI application: routers, error rendering, request logging and the
record store pool lifecycle.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commentdesk.config import settings
from commentdesk.db.pool import record_store
from commentdesk.errors import CommentDeskError, InvalidPayload
from commentdesk.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from commentdesk.routes import behavior, drafts, health, templates

setup_logging(log_level=settings.LOG_LEVEL, console=settings.debug)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Application starting",
        environment=settings.environment,
        generation_mode="openai" if settings.generation_enabled() else "fallback",
    )
    await record_store.open()

    yield

    logger.info("Application shutting down")
    await record_store.close()


app = FastAPI(
    title="Comment Desk",
    description="Report-card comment drafting and template library",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(drafts.router)
app.include_router(templates.router)
app.include_router(behavior.router)


@app.exception_handler(CommentDeskError)
async def comment_desk_error_handler(request: Request, exc: CommentDeskError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("Request rejected", path=request.url.path, error=exc.kind, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    error = InvalidPayload(f"{location}: {message}" if location else message)
    logger.warning("Request rejected", path=request.url.path, error=error.kind, detail=error.message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind a request id for the request's log entries and log timing."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    clear_request_context()
    bind_request_context(request_id=request_id)

    start_time = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start_time) * 1000, 2)

    response.headers["X-Request-Id"] = request_id
    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

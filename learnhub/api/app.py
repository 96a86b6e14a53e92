"""
FastAPI application for the LearnHub backend.
"""

import asyncio
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learnhub.config import config
from learnhub.api.dependencies import get_cache, get_exchange, get_rate_limiter
from learnhub.api.routes import router
from learnhub.utils.errors import LearnHubError, NotFoundError
from learnhub.utils.logger import logging

# FastAPI application
app = FastAPI(
    title=config.APP_NAME,
    version=config.APP_VERSION,
    description="Video summaries with Gemini and n8n-generated learning plans",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _resolve(dependency):
    """Call a dependency provider, honouring test overrides."""
    return app.dependency_overrides.get(dependency, dependency)()


async def run_maintenance(interval: float):
    """Periodically sweep rate-limit windows, the cache and expired plans."""
    while True:
        await asyncio.sleep(interval)
        try:
            _resolve(get_rate_limiter).sweep()
            _resolve(get_cache).sweep()
            await asyncio.to_thread(_resolve(get_exchange).cleanup_expired)
        except Exception as e:
            logging.error(f"Maintenance sweep failed: {e}")


@app.on_event("startup")
async def startup_event():
    """Initialize components on application startup."""
    config.initialize()
    logging.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}")
    app.state.maintenance_task = asyncio.create_task(
        run_maintenance(config.RATE_LIMIT_SWEEP_INTERVAL_SEC)
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Stop maintenance and let detached webhook notifications finish."""
    task = getattr(app.state, "maintenance_task", None)
    if task is not None:
        task.cancel()
    await _resolve(get_exchange).wait_for_background()


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Middleware to add processing time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(LearnHubError)
async def learnhub_exception_handler(request: Request, exc: LearnHubError):
    """Map application errors to their status and caller-safe message."""
    if isinstance(exc, NotFoundError):
        logging.debug(f"{request.url.path}: {exc}")
    elif exc.status_code >= 500:
        logging.error(f"{request.url.path} failed: {type(exc).__name__}: {exc}")
    else:
        logging.warning(f"{request.url.path} rejected: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(debug=config.DEBUG),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are caller errors."""
    content = {"error": "Invalid request body"}
    if config.DEBUG:
        content["details"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled exceptions."""
    logging.exception(f"Unhandled error on {request.url.path}")
    content = {"error": "An unexpected error occurred."}
    if config.DEBUG:
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Include API router
app.include_router(router)


# Root
@app.get("/")
async def root():
    """Root endpoint returning basic API information."""
    return {
        "name": config.APP_NAME,
        "version": config.APP_VERSION,
        "description": "LearnHub learning platform API",
    }

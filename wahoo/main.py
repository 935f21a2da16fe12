"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wahoo import __version__
from wahoo.context import AppContext

logger = logging.getLogger(__name__)


async def start_workers(context: AppContext, stop: asyncio.Event) -> list[asyncio.Task]:
    """Start the connection supervisor and the sync bridge."""
    return [
        asyncio.create_task(context.supervisor.run(stop), name="connection-supervisor"),
        asyncio.create_task(context.bridge.run(stop), name="sync-bridge"),
    ]


async def stop_workers(context: AppContext, stop: asyncio.Event, tasks: list[asyncio.Task]) -> None:
    """Stop workers within the shutdown timeout, then release the session and store."""
    stop.set()
    if tasks:
        _, pending = await asyncio.wait(tasks, timeout=context.settings.SHUTDOWN_TIMEOUT)
        for task in pending:
            logger.warning(f"Worker {task.get_name()} did not stop in time, cancelling")
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                logger.error(f"Worker {task.get_name()} failed: {result}")

    await context.session.disconnect()
    await context.store.close()
    logger.info("Shutdown complete")


def create_app(context: AppContext, *, run_workers: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    The store must already be initialized. With ``run_workers`` the
    supervisor and bridge run for the lifetime of the app.
    """
    settings = context.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown events."""
        stop = asyncio.Event()
        tasks = await start_workers(context, stop) if run_workers else []
        yield
        await stop_workers(context, stop, tasks)

    app = FastAPI(
        title="Wahoo",
        description="Local query and command API for a single WhatsApp account",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
    )
    app.state.context = context

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from wahoo.api.router import api_router

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    from wahoo.core.telemetry import setup_all_instrumentation

    setup_all_instrumentation(app, settings, context.store.engine)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    from wahoo.core.exceptions import StoreError

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            error = errors[0]
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            detail = f"{location}: {error.get('msg')}" if location else str(error.get("msg"))
        else:
            detail = "Invalid request"
        return JSONResponse(status_code=400, content={"detail": detail})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Store unavailable"})

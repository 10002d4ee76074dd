"""
FastAPI application exposing the session service's health surface.

The application owns the session handler's lifecycle: it is built from
settings on startup (with the request/identity resolvers wired in), swept
periodically when the backend needs it, and its MongoDB client is closed
on shutdown. Host routes reach the handler through
``request.app.state.session_handler``.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import SessionDriver, Settings, get_settings, validate_startup
from errors.handlers import register_exception_handlers
from health.service import HealthCheckService
from middleware.request_context import (
    ContextIdentityResolver,
    ContextRequestResolver,
    RequestContextMiddleware,
)
from middleware.request_id import RequestIDMiddleware
from session.factory import create_expiry_sweeper, create_mongo_client, create_session_handler
from session.store import SessionHandler
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)

SERVICE_NAME = "Session Service"
SERVICE_VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    handler: Optional[SessionHandler] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use. Loaded from the environment if omitted.
        handler: Prebuilt session handler. Built from settings on startup if
            omitted, in which case the app also owns its MongoDB client.

    Returns:
        The configured FastAPI application.
    """
    settings = settings or get_settings()
    validate_startup(settings)
    initialize_telemetry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_client = None
        session_handler = handler

        if session_handler is None:
            if settings.session_driver == SessionDriver.MONGODB:
                owned_client = create_mongo_client(settings)
            # Index creation talks to MongoDB, keep it off the event loop
            session_handler = await asyncio.get_running_loop().run_in_executor(
                None,
                partial(
                    create_session_handler,
                    settings,
                    client=owned_client,
                    identity_resolver=ContextIdentityResolver(),
                    request_resolver=ContextRequestResolver(
                        trust_forwarded_headers=settings.trust_forwarded_headers
                    ),
                ),
            )

        sweeper = create_expiry_sweeper(session_handler, settings)
        if sweeper is not None:
            sweeper.start()

        app.state.session_handler = session_handler
        app.state.health_check_service = HealthCheckService(
            session_store=session_handler,
            check_timeout=5.0
        )
        logger.info("Session service started", extra={"extra_data": {
            "driver": settings.session_driver.value,
            "environment": settings.environment.value,
        }})

        yield

        if sweeper is not None:
            await sweeper.stop()
        if owned_client is not None:
            owned_client.close()
        logger.info("Session service stopped")

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)

    register_exception_handlers(app)

    # Added last so it runs first: request ids cover everything below it
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    async def health_basic(request: Request):
        """Returns 200 OK when the service is accepting requests."""
        result = await request.app.state.health_check_service.check_health()
        return {
            "status": result["status"],
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": result["timestamp"]
        }

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """
        Readiness check with session store verification.

        Returns:
            JSONResponse: 200 when the session store is reachable, 503 with
            failure reasons otherwise.
        """
        health_status = await request.app.state.health_check_service.check_readiness()
        response_data = {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            **health_status.to_dict(),
        }

        if health_status.status == "unhealthy":
            response_data["failure_reasons"] = [
                {"dependency": dep.name, "error": dep.error}
                for dep in health_status.dependencies if not dep.healthy
            ]
            return JSONResponse(status_code=503, content=response_data)

        return response_data

    @app.get("/health/live")
    async def health_live(request: Request):
        """Returns 200 OK if the process is running, regardless of dependency status."""
        result = await request.app.state.health_check_service.check_liveness()
        return {
            "status": result["status"],
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": result["timestamp"]
        }

    return app


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(create_app(), host="0.0.0.0", port=port, log_level="info")

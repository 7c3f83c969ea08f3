from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

import httpx
from fastapi import FastAPI, Request

from pihole_exporter.api.errors import register_exception_handlers
from pihole_exporter.api.routes import router
from pihole_exporter.config import Settings, get_settings
from pihole_exporter.services.collector import PiholeCollector

logger = logging.getLogger(__name__)


def create_app(
    settings_override: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Pi-hole Prometheus exporter")
        logger.info("Pi-hole host: %s", settings.pihole_base_url)
        # AuthError propagates here and aborts startup before the server listens.
        app.state.collector = PiholeCollector.from_settings(settings, transport=transport)
        try:
            yield
        finally:
            app.state.collector.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    register_exception_handlers(app)
    app.state.settings = settings

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            "%s %s -> %s in %.1f ms [%s]",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app


app = create_app()

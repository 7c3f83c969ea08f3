from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from pihole_exporter.errors import ExporterError

logger = logging.getLogger(__name__)


async def _exporter_error_handler(request: Request, exc: ExporterError) -> PlainTextResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return PlainTextResponse(exc.public_message, status_code=exc.status_code)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ExporterError, _exporter_error_handler)

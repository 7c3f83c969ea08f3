from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from pihole_exporter.api.deps import get_collector
from pihole_exporter.services.collector import PiholeCollector
from pihole_exporter.services.exposition import CONTENT_TYPE

router = APIRouter()


@router.get("/metrics", response_class=Response)
def metrics(collector: PiholeCollector = Depends(get_collector)) -> Response:
    body = collector.collect()
    return Response(content=body, media_type=CONTENT_TYPE)


@router.get("/healthz", response_class=PlainTextResponse)
def healthz() -> PlainTextResponse:
    return PlainTextResponse("OK")

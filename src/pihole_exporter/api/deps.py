from __future__ import annotations

from fastapi import Request

from pihole_exporter.services.collector import PiholeCollector


def get_collector(request: Request) -> PiholeCollector:
    return request.app.state.collector

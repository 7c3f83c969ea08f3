from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from pihole_exporter.config import Settings
from pihole_exporter.errors import AuthError
from pihole_exporter.services.aggregation import WindowBoundary, aggregate
from pihole_exporter.services.exposition import build_registry, encode
from pihole_exporter.services.metric_store import WINDOW_FAMILY_NAMES, MetricStore
from pihole_exporter.services.pihole_api import PiholeApiClient

logger = logging.getLogger(__name__)


class PiholeCollector:
    """Runs one synchronous fetch, aggregate, apply and encode cycle per scrape.

    Concurrent scrapes each fetch independently; only the apply and encode
    steps are serialized through the store lock.
    """

    def __init__(
        self,
        api: PiholeApiClient,
        store: MetricStore | None = None,
        *,
        replace_window_families: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.api = api
        self.store = store or MetricStore()
        self.replace_window_families = replace_window_families
        self.clock = clock
        self.registry = build_registry(self.store)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> PiholeCollector:
        api = PiholeApiClient(
            settings.pihole_base_url,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )
        password = settings.resolved_password()
        if password is not None:
            try:
                api.authenticate(password)
            except AuthError:
                api.close()
                raise
            logger.info("Authenticated against Pi-hole at %s", api.base_url)
        else:
            logger.info("No Pi-hole password configured; using anonymous API access")
        return cls(
            api,
            replace_window_families=settings.window_label_policy == "replace",
        )

    def close(self) -> None:
        self.api.close()

    def collect(self) -> str:
        summary = self.api.fetch_summary()
        upstreams = self.api.fetch_upstreams()
        window = WindowBoundary.ending_before(self.clock())
        queries = self.api.fetch_queries(window)

        updates = aggregate(summary, upstreams, queries)
        clear = WINDOW_FAMILY_NAMES if self.replace_window_families else ()
        with self.store.transaction():
            self.store.apply(updates, clear=clear)
            body = encode(self.registry)
        logger.debug(
            "Collected %d updates (%d queries in window %d-%d)",
            len(updates),
            len(queries),
            window.start,
            window.end,
        )
        return body

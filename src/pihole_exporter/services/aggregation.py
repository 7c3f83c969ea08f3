from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from pihole_exporter.schemas import QueryInfo, StatsResponse, UpstreamInfo
from pihole_exporter.services.metric_store import (
    CLIENT_COUNT,
    DOMAINS_BEING_BLOCKED,
    QUERY_BY_STATUS,
    QUERY_BY_TYPE,
    QUERY_CLIENT_1M,
    QUERY_COUNT,
    QUERY_REPLIES,
    QUERY_REPLY_1M,
    QUERY_STATUS_1M,
    QUERY_TYPE_1M,
    QUERY_UPSTREAM_1M,
    QUERY_UPSTREAM_COUNT,
    MetricUpdate,
)

WINDOW_SECONDS = 60
QUERIES_PAGE_LENGTH = 1_000_000

# Statuses answered locally; they never reach a real upstream resolver.
LOCAL_STATUSES = frozenset({"GRAVITY", "CACHE", "SPECIAL_DOMAIN"})
NO_UPSTREAM_OTHER = "None-OTHER"


@dataclass(frozen=True)
class WindowBoundary:
    """The last whole minute before ``now``, as unix seconds."""

    start: int
    end: int

    @classmethod
    def ending_before(cls, now: float) -> WindowBoundary:
        end = math.floor(now / WINDOW_SECONDS) * WINDOW_SECONDS
        return cls(start=end - WINDOW_SECONDS, end=end)


def resolve_upstream(query: QueryInfo) -> str:
    if query.upstream is not None:
        return query.upstream
    if query.status in LOCAL_STATUSES:
        return f"None-{query.status}"
    return NO_UPSTREAM_OTHER


def _counter_updates(family: str, counts: dict[str, int]) -> list[MetricUpdate]:
    return [MetricUpdate(family, (key,), int(value)) for key, value in counts.items()]


def summary_updates(summary: StatsResponse) -> list[MetricUpdate]:
    queries = summary.queries
    updates: list[MetricUpdate] = []
    updates += _counter_updates(QUERY_BY_TYPE, queries.types)
    updates += _counter_updates(QUERY_BY_STATUS, queries.status)
    updates += _counter_updates(QUERY_REPLIES, queries.replies)

    # "unique" is the published label for unique_domains.
    for category, value in (
        ("total", queries.total),
        ("blocked", queries.blocked),
        ("unique", queries.unique_domains),
        ("forwarded", queries.forwarded),
        ("cached", queries.cached),
    ):
        updates.append(MetricUpdate(QUERY_COUNT, (category,), value))

    updates.append(MetricUpdate(CLIENT_COUNT, ("active",), summary.clients.active))
    updates.append(MetricUpdate(CLIENT_COUNT, ("total",), summary.clients.total))
    updates.append(MetricUpdate(DOMAINS_BEING_BLOCKED, (), summary.gravity.domains_being_blocked))
    return updates


def upstream_updates(upstreams: Iterable[UpstreamInfo]) -> list[MetricUpdate]:
    return [
        MetricUpdate(QUERY_UPSTREAM_COUNT, (upstream.ip, upstream.name, str(upstream.port)), upstream.count)
        for upstream in upstreams
    ]


def window_updates(queries: Iterable[QueryInfo]) -> list[MetricUpdate]:
    """Reduce one minute of raw query records into the five 1-minute families."""
    by_type: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    by_reply: Counter[str] = Counter()
    by_client: Counter[str] = Counter()
    by_upstream: Counter[str] = Counter()

    for query in queries:
        by_type[query.query_type] += 1
        by_status[query.status] += 1
        by_reply[query.reply.reply_type] += 1
        by_client[query.client.ip] += 1
        by_upstream[resolve_upstream(query)] += 1

    updates: list[MetricUpdate] = []
    updates += _counter_updates(QUERY_TYPE_1M, by_type)
    updates += _counter_updates(QUERY_STATUS_1M, by_status)
    updates += _counter_updates(QUERY_REPLY_1M, by_reply)
    updates += _counter_updates(QUERY_CLIENT_1M, by_client)
    updates += _counter_updates(QUERY_UPSTREAM_1M, by_upstream)
    return updates


def aggregate(
    summary: StatsResponse,
    upstreams: Iterable[UpstreamInfo],
    queries: Iterable[QueryInfo],
) -> list[MetricUpdate]:
    return summary_updates(summary) + upstream_updates(upstreams) + window_updates(queries)

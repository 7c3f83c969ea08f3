from __future__ import annotations

from collections import defaultdict

import pytest

from fakes import QUERIES, SUMMARY, UPSTREAMS, query
from pihole_exporter.schemas import QueryInfo, StatsResponse, UpstreamsResponse
from pihole_exporter.services.aggregation import (
    WindowBoundary,
    aggregate,
    resolve_upstream,
    summary_updates,
    upstream_updates,
    window_updates,
)
from pihole_exporter.services.metric_store import (
    CLIENT_COUNT,
    DOMAINS_BEING_BLOCKED,
    QUERY_BY_TYPE,
    QUERY_CLIENT_1M,
    QUERY_COUNT,
    QUERY_REPLY_1M,
    QUERY_STATUS_1M,
    QUERY_TYPE_1M,
    QUERY_UPSTREAM_1M,
    QUERY_UPSTREAM_COUNT,
)

WINDOW_FAMILIES = (QUERY_TYPE_1M, QUERY_STATUS_1M, QUERY_REPLY_1M, QUERY_CLIENT_1M, QUERY_UPSTREAM_1M)


def _queries(*records: dict) -> list[QueryInfo]:
    return [QueryInfo.model_validate(record) for record in records]


def _by_family(updates) -> dict[str, dict[tuple[str, ...], int]]:
    grouped: dict[str, dict[tuple[str, ...], int]] = defaultdict(dict)
    for update in updates:
        grouped[update.family][update.labels] = update.value
    return grouped


def test_window_boundary_covers_last_whole_minute():
    window = WindowBoundary.ending_before(1_700_000_059.5)
    assert window == WindowBoundary(start=1_699_999_980, end=1_700_000_040)

    on_boundary = WindowBoundary.ending_before(1_700_000_040)
    assert on_boundary.end == 1_700_000_040
    assert on_boundary.end - on_boundary.start == 60


def test_explicit_upstream_wins_over_status():
    for status in ("CACHE", "GRAVITY", "SPECIAL_DOMAIN", "FORWARDED"):
        (record,) = _queries(query(status=status, upstream="9.9.9.9#53"))
        assert resolve_upstream(record) == "9.9.9.9#53"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("CACHE", "None-CACHE"),
        ("GRAVITY", "None-GRAVITY"),
        ("SPECIAL_DOMAIN", "None-SPECIAL_DOMAIN"),
        ("FORWARDED", "None-OTHER"),
        ("DENYLIST", "None-OTHER"),
        ("UNKNOWN", "None-OTHER"),
    ],
)
def test_missing_upstream_is_classified_by_status(status: str, expected: str):
    (record,) = _queries(query(status=status))
    assert resolve_upstream(record) == expected


def test_window_counts_are_conserved_in_every_family():
    records = _queries(
        query(upstream="1.1.1.1"),
        query(query_type="AAAA", client="10.0.0.2", upstream="1.1.1.1"),
        query(query_type="PTR", status="CACHE", reply="DOMAIN"),
        query(status="GRAVITY", reply="BLOB", client="10.0.0.2"),
        query(status="SPECIAL_DOMAIN", client="10.0.0.3"),
        query(status="DENYLIST"),
    )
    grouped = _by_family(window_updates(records))

    assert set(grouped) == set(WINDOW_FAMILIES)
    for family in WINDOW_FAMILIES:
        assert sum(grouped[family].values()) == len(records), family

    assert grouped[QUERY_UPSTREAM_1M] == {
        ("1.1.1.1",): 2,
        ("None-CACHE",): 1,
        ("None-GRAVITY",): 1,
        ("None-SPECIAL_DOMAIN",): 1,
        ("None-OTHER",): 1,
    }
    assert grouped[QUERY_CLIENT_1M][("10.0.0.2",)] == 2


def test_empty_window_yields_no_updates():
    assert window_updates([]) == []


def test_summary_fields_are_copied_verbatim():
    grouped = _by_family(summary_updates(StatsResponse.model_validate(SUMMARY)))

    assert grouped[QUERY_BY_TYPE] == {("A",): 70, ("AAAA",): 25, ("PTR",): 5}
    assert grouped[QUERY_COUNT] == {
        ("total",): 100,
        ("blocked",): 10,
        ("unique",): 42,
        ("forwarded",): 60,
        ("cached",): 30,
    }
    assert grouped[CLIENT_COUNT] == {("active",): 3, ("total",): 7}
    assert grouped[DOMAINS_BEING_BLOCKED] == {(): 123456}


def test_unique_domains_maps_to_single_unique_entry():
    payload = {**SUMMARY, "queries": {**SUMMARY["queries"], "unique_domains": 42}}
    unique = [
        update
        for update in summary_updates(StatsResponse.model_validate(payload))
        if update.family == QUERY_COUNT and update.labels == ("unique",)
    ]
    assert len(unique) == 1
    assert unique[0].value == 42


def test_empty_summary_maps_produce_no_entries():
    payload = {**SUMMARY, "queries": {**SUMMARY["queries"], "types": {}, "status": {}, "replies": {}}}
    families = {update.family for update in summary_updates(StatsResponse.model_validate(payload))}
    assert families == {QUERY_COUNT, CLIENT_COUNT, DOMAINS_BEING_BLOCKED}


def test_upstream_labels_stringify_port():
    upstreams = UpstreamsResponse.model_validate(UPSTREAMS).upstreams
    (update,) = upstream_updates(upstreams)
    assert update.family == QUERY_UPSTREAM_COUNT
    assert update.labels == ("1.1.1.1", "cloudflare", "53")
    assert update.value == 80
    assert upstream_updates([]) == []


def test_aggregate_combines_all_sources():
    updates = aggregate(
        StatsResponse.model_validate(SUMMARY),
        UpstreamsResponse.model_validate(UPSTREAMS).upstreams,
        _queries(*QUERIES["queries"]),
    )
    grouped = _by_family(updates)
    assert len(grouped) == 12
    assert grouped[QUERY_UPSTREAM_1M] == {("1.1.1.1",): 2, ("None-CACHE",): 1}

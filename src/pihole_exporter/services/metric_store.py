from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator

QUERY_BY_TYPE = "pihole_query_by_type"
QUERY_BY_STATUS = "pihole_query_by_status"
QUERY_REPLIES = "pihole_query_replies"
QUERY_COUNT = "pihole_query_count"
CLIENT_COUNT = "pihole_client_count"
DOMAINS_BEING_BLOCKED = "pihole_domains_being_blocked"
QUERY_UPSTREAM_COUNT = "pihole_query_upstream_count"
QUERY_TYPE_1M = "pihole_query_type_1m"
QUERY_STATUS_1M = "pihole_query_status_1m"
QUERY_REPLY_1M = "pihole_query_reply_1m"
QUERY_CLIENT_1M = "pihole_query_client_1m"
QUERY_UPSTREAM_1M = "pihole_query_upstream_1m"


@dataclass(frozen=True)
class MetricUpdate:
    family: str
    labels: tuple[str, ...]
    value: int


@dataclass(frozen=True)
class FamilySpec:
    name: str
    documentation: str
    label_names: tuple[str, ...]
    windowed: bool = False


FAMILIES: tuple[FamilySpec, ...] = (
    FamilySpec(QUERY_BY_TYPE, "Count of queries by type (24h)", ("query_type",)),
    FamilySpec(QUERY_BY_STATUS, "Count of queries by status over 24h", ("query_status",)),
    FamilySpec(QUERY_REPLIES, "Count of replies by type over 24h", ("reply_type",)),
    FamilySpec(QUERY_COUNT, "Query counts by category, 24h", ("category",)),
    FamilySpec(CLIENT_COUNT, "Total/active client counts", ("category",)),
    FamilySpec(DOMAINS_BEING_BLOCKED, "Number of domains on current blocklist", ()),
    FamilySpec(QUERY_UPSTREAM_COUNT, "Total query upstream counts (24h)", ("ip", "name", "port")),
    FamilySpec(QUERY_TYPE_1M, "Count of query types (last whole 1m)", ("query_type",), windowed=True),
    FamilySpec(QUERY_STATUS_1M, "Count of query status (last whole 1m)", ("query_status",), windowed=True),
    FamilySpec(QUERY_REPLY_1M, "Count of query reply types (last whole 1m)", ("reply_type",), windowed=True),
    FamilySpec(QUERY_CLIENT_1M, "Count of query clients (last whole 1m)", ("query_client",), windowed=True),
    FamilySpec(
        QUERY_UPSTREAM_1M,
        "Count of query upstream destinations (last whole 1m)",
        ("query_upstream",),
        windowed=True,
    ),
)

WINDOW_FAMILY_NAMES = frozenset(spec.name for spec in FAMILIES if spec.windowed)


@dataclass(frozen=True)
class FamilySnapshot:
    spec: FamilySpec
    samples: list[tuple[tuple[str, ...], int]]


@dataclass
class MetricStore:
    """Label-indexed gauge values for the fixed exporter families.

    ``apply`` and ``snapshot`` each take the store lock; ``transaction`` holds it
    across several calls so a writer can apply and encode as one unit.
    """

    families: tuple[FamilySpec, ...] = FAMILIES
    values: dict[str, dict[tuple[str, ...], int]] = field(init=False)

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._specs = {spec.name: spec for spec in self.families}
        self.values = {spec.name: {} for spec in self.families}
        for spec in self.families:
            # Unlabeled gauges exist from the start with a zero value.
            if not spec.label_names:
                self.values[spec.name][()] = 0

    @contextmanager
    def transaction(self) -> Iterator[MetricStore]:
        with self._lock:
            yield self

    def apply(self, updates: Iterable[MetricUpdate], *, clear: Iterable[str] = ()) -> int:
        """Upsert every update, after emptying the ``clear`` families.

        The whole batch is validated before anything is written.
        """
        batch = list(updates)
        to_clear = list(clear)
        for name in to_clear:
            self._spec(name)
        for update in batch:
            spec = self._spec(update.family)
            if len(update.labels) != len(spec.label_names):
                raise ValueError(
                    f"{update.family} expects labels {spec.label_names}, got {len(update.labels)} value(s)"
                )

        with self._lock:
            for name in to_clear:
                self.values[name].clear()
            for update in batch:
                self.values[update.family][update.labels] = int(update.value)
        return len(batch)

    def get(self, family: str, labels: tuple[str, ...] = ()) -> int | None:
        with self._lock:
            return self._family_values(family).get(labels)

    def snapshot(self) -> list[FamilySnapshot]:
        with self._lock:
            return [
                FamilySnapshot(spec=spec, samples=sorted(self.values[spec.name].items()))
                for spec in self.families
            ]

    def _family_values(self, family: str) -> dict[tuple[str, ...], int]:
        self._spec(family)
        return self.values[family]

    def _spec(self, family: str) -> FamilySpec:
        try:
            return self._specs[family]
        except KeyError:
            raise ValueError(f"Unknown metric family '{family}'") from None

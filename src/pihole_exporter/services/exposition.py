from __future__ import annotations

from typing import Iterator

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from pihole_exporter.errors import EncodeError
from pihole_exporter.services.metric_store import MetricStore

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class StoreCollector(Collector):
    """Exposes a MetricStore snapshot as gauge families.

    Values are rendered the way prometheus_client renders every sample: as
    Go-style floats, so ``100`` is written ``100.0`` and ``1234567`` is written
    ``1.234567e+06``. Prometheus parses both to the same value; anything that
    matches on the raw text of a sample must allow for this form.
    """

    def __init__(self, store: MetricStore):
        self.store = store

    def collect(self) -> Iterator[Metric]:
        for family in self.store.snapshot():
            gauge = GaugeMetricFamily(
                family.spec.name,
                family.spec.documentation,
                labels=list(family.spec.label_names),
            )
            for labels, value in family.samples:
                gauge.add_metric(list(labels), value)
            yield gauge


def build_registry(store: MetricStore) -> CollectorRegistry:
    # A private registry keeps process/platform collectors out of the output.
    registry = CollectorRegistry()
    registry.register(StoreCollector(store))
    return registry


def encode(registry: CollectorRegistry) -> str:
    try:
        return generate_latest(registry).decode("utf-8")
    except Exception as exc:
        raise EncodeError(f"Failed to encode metrics: {exc}") from exc

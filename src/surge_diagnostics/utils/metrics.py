"""In-process counters for the analysis pipeline.

The invoker and analyzer record how many analyzer processes ran, how many
results were thrown away as stale, why invocations failed and how long each
attempt took. ``surge-diagnostics check --metrics`` dumps the summary.
"""

from __future__ import annotations

import statistics
import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import StrEnum
from threading import Lock
from typing import Any

LabelKey = tuple[tuple[str, str], ...]


class MetricType(StrEnum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass
class MetricValue:
    """One labelled sample, as exported."""

    name: str
    type: MetricType
    value: float
    labels: dict[str, str] = field(default_factory=dict)
    help_text: str = ""


def _key(labels: dict[str, str] | None) -> LabelKey:
    if not labels:
        return ()
    return tuple(sorted(labels.items()))


class _LabelledMetric:
    """Float values keyed by label set, guarded by a lock."""

    metric_type: MetricType

    def __init__(self, name: str, help_text: str = "") -> None:
        self.name = name
        self.help_text = help_text
        self._values: defaultdict[LabelKey, float] = defaultdict(float)
        self._lock = Lock()

    def _add(self, amount: float, labels: dict[str, str] | None) -> None:
        with self._lock:
            self._values[_key(labels)] += amount

    def get(self, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            return self._values.get(_key(labels), 0)

    def get_all(self) -> list[MetricValue]:
        with self._lock:
            snapshot = list(self._values.items())
        return [
            MetricValue(self.name, self.metric_type, value, dict(key), self.help_text)
            for key, value in snapshot
        ]

    def by_label(self, label: str) -> dict[str, float]:
        """Sum values grouped by one label; unlabelled samples are skipped."""
        totals: dict[str, float] = {}
        for sample in self.get_all():
            if label in sample.labels:
                name = sample.labels[label]
                totals[name] = totals.get(name, 0) + sample.value
        return totals


class Counter(_LabelledMetric):
    """Monotonic count, e.g. ``Counter("surge_analysis_runs_total").inc()``."""

    metric_type = MetricType.COUNTER

    def inc(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        if value < 0:
            raise ValueError("Counter can only increase")
        self._add(value, labels)


class Gauge(_LabelledMetric):
    metric_type = MetricType.GAUGE

    def inc(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        self._add(value, labels)

    def dec(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        self._add(-value, labels)


class Histogram:
    """Keeps raw observations and summarizes them on demand."""

    metric_type = MetricType.HISTOGRAM

    def __init__(self, name: str, help_text: str = "") -> None:
        self.name = name
        self.help_text = help_text
        self._observations: defaultdict[LabelKey, list[float]] = defaultdict(list)
        self._lock = Lock()

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        with self._lock:
            self._observations[_key(labels)].append(value)

    def get_stats(self, labels: dict[str, str] | None = None) -> dict[str, float]:
        """Summarize observations for one label set.

        Returns:
            count, sum, min, max, mean, p50 and p95; all zero when empty
        """
        with self._lock:
            values = sorted(self._observations.get(_key(labels), ()))

        if not values:
            return dict.fromkeys(("count", "sum", "min", "max", "mean", "p50", "p95"), 0)

        total = sum(values)
        return {
            "count": len(values),
            "sum": total,
            "min": values[0],
            "max": values[-1],
            "mean": total / len(values),
            "p50": statistics.median(values),
            "p95": values[min(len(values) - 1, int(len(values) * 0.95))],
        }


class MetricsRegistry:
    """Process-wide set of pipeline metrics.

    Tests call ``MetricsRegistry.reset()`` to start over from zero.
    """

    _instance: MetricsRegistry | None = None
    _lock = Lock()

    def __init__(self) -> None:
        self.started_at = time.monotonic()
        self.analysis_runs = Counter(
            "surge_analysis_runs_total", "Analyzer processes spawned"
        )
        self.analysis_discarded = Counter(
            "surge_analysis_discarded_total",
            "Results dropped because the document changed or closed",
        )
        self.analyzer_failures = Counter(
            "surge_analyzer_failures_total", "Spawn failures and error exits, by reason"
        )
        self.diagnostics_published = Counter(
            "surge_diagnostics_published_total", "Diagnostics handed to the editor"
        )
        self.in_flight = Gauge("surge_analysis_in_flight", "Analyzer processes running now")
        self.analysis_duration = Histogram(
            "surge_analysis_duration_seconds", "Wall time of one analysis attempt"
        )

    @classmethod
    def get_instance(cls) -> MetricsRegistry:
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._instance = None

    def get_uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    def get_all_metrics(self) -> dict[str, Any]:
        """JSON-serializable summary of every metric."""
        failures = self.analyzer_failures.by_label("reason")
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "analysis": {
                "runs": self.analysis_runs.get(),
                "discarded": self.analysis_discarded.get(),
                "failures": sum(failures.values()),
                "failures_by_reason": failures,
                "in_flight": self.in_flight.get(),
                "duration_stats": self.analysis_duration.get_stats(),
            },
            "diagnostics": {
                "published": self.diagnostics_published.get(),
            },
        }


def get_metrics() -> MetricsRegistry:
    return MetricsRegistry.get_instance()


class Timer:
    """Observe the duration of a ``with`` block into a histogram.

    The duration is recorded even when the block raises.
    """

    def __init__(self, histogram: Histogram, labels: dict[str, str] | None = None) -> None:
        self._histogram = histogram
        self._labels = labels
        self._started: float | None = None

    def __enter__(self) -> Timer:
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._started is None:
            return
        self._histogram.observe(time.perf_counter() - self._started, labels=self._labels)
        self._started = None

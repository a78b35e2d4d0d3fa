"""Processor counters: thread-safe totals for incoming, outgoing and dropped logs."""

import threading
from typing import Dict, Mapping, Optional, Tuple

METRIC_PREFIX = "processor_securityevent_"

INCOMING_LOGS = METRIC_PREFIX + "incoming_logs_total"
OUTGOING_LOGS = METRIC_PREFIX + "outgoing_logs_total"
DROPPED_LOGS = METRIC_PREFIX + "dropped_logs_total"
PROCESSING_ERRORS = METRIC_PREFIX + "processing_errors_total"

METRIC_DESCRIPTIONS: Dict[str, str] = {
    INCOMING_LOGS: "Total number of incoming logs processed",
    OUTGOING_LOGS: "Total number of outgoing logs produced",
    DROPPED_LOGS: "Total number of logs dropped during processing",
    PROCESSING_ERRORS: "Total number of processing errors",
}
METRIC_UNIT = "1"

SeriesKey = Tuple[Tuple[str, str], ...]


def _series_key(attributes: Optional[Mapping[str, str]]) -> SeriesKey:
    return tuple(sorted((attributes or {}).items()))


class ProcessorMetrics:
    """Monotonic counters for one processor instance."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[str, Dict[SeriesKey, int]] = {
            name: {} for name in METRIC_DESCRIPTIONS
        }

    def add(self, name: str, value: int, attributes: Optional[Mapping[str, str]] = None) -> None:
        """Add to a counter series.

        Args:
            name: One of the ``processor_securityevent_*`` metric names.
            value: Non-negative increment.
            attributes: Optional series attributes, e.g. ``{"error_type": "processing_error"}``.
        """
        if name not in self._counters:
            raise KeyError(f"Unknown metric: {name}")
        if value < 0:
            raise ValueError(f"Counter {name} cannot be decreased (got {value})")

        key = _series_key(attributes)
        with self._lock:
            series = self._counters[name]
            series[key] = series.get(key, 0) + value

    def value(self, name: str, attributes: Optional[Mapping[str, str]] = None) -> int:
        key = _series_key(attributes)
        with self._lock:
            return self._counters[name].get(key, 0)

    def total(self, name: str) -> int:
        """Sum of a counter over all attribute series."""
        with self._lock:
            return sum(self._counters[name].values())

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        """Return a point-in-time copy of every counter.

        Returns:
            Mapping of metric name to description, unit, total and per-series values.
        """
        with self._lock:
            return {
                name: {
                    "description": METRIC_DESCRIPTIONS[name],
                    "unit": METRIC_UNIT,
                    "total": sum(series.values()),
                    "series": [
                        {"attributes": dict(key), "value": count}
                        for key, count in series.items()
                    ],
                }
                for name, series in self._counters.items()
            }

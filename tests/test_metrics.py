"""Tests for processor counters."""

import threading

import pytest

from securityevent.metrics import (
    DROPPED_LOGS,
    INCOMING_LOGS,
    METRIC_DESCRIPTIONS,
    PROCESSING_ERRORS,
    ProcessorMetrics,
)


class TestProcessorMetrics:
    """Test cases for ProcessorMetrics."""

    def setup_method(self):
        """Set up test fixtures."""
        self.metrics = ProcessorMetrics()

    def test_names(self):
        """All counters share the processor prefix."""
        assert INCOMING_LOGS == "processor_securityevent_incoming_logs_total"
        assert set(METRIC_DESCRIPTIONS) == {
            "processor_securityevent_incoming_logs_total",
            "processor_securityevent_outgoing_logs_total",
            "processor_securityevent_dropped_logs_total",
            "processor_securityevent_processing_errors_total",
        }

    def test_add_and_read(self):
        """Values accumulate per series."""
        self.metrics.add(INCOMING_LOGS, 3)
        self.metrics.add(INCOMING_LOGS, 2)
        self.metrics.add(PROCESSING_ERRORS, 1, {"error_type": "processing_error"})

        assert self.metrics.value(INCOMING_LOGS) == 5
        assert self.metrics.value(PROCESSING_ERRORS) == 0
        assert self.metrics.value(PROCESSING_ERRORS, {"error_type": "processing_error"}) == 1
        assert self.metrics.total(PROCESSING_ERRORS) == 1
        assert self.metrics.value(DROPPED_LOGS) == 0

    def test_unknown_metric(self):
        """Unknown names are rejected."""
        with pytest.raises(KeyError):
            self.metrics.add("processor_securityevent_bogus_total", 1)

    def test_negative_increment(self):
        """Counters only go up."""
        with pytest.raises(ValueError):
            self.metrics.add(INCOMING_LOGS, -1)

    def test_snapshot(self):
        """Snapshots carry description, unit and series."""
        self.metrics.add(PROCESSING_ERRORS, 2, {"error_type": "processing_error"})

        snapshot = self.metrics.snapshot()

        entry = snapshot[PROCESSING_ERRORS]
        assert entry["unit"] == "1"
        assert entry["total"] == 2
        assert entry["series"] == [{"attributes": {"error_type": "processing_error"}, "value": 2}]
        assert snapshot[INCOMING_LOGS]["total"] == 0

    def test_concurrent_adds(self):
        """Concurrent increments are not lost."""
        def work():
            for _ in range(1000):
                self.metrics.add(INCOMING_LOGS, 1)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert self.metrics.value(INCOMING_LOGS) == 8000

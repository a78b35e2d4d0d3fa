"""Batch rewriting for the security event processor.

Each scope-level record list is handled in two passes. The first pass walks
the records in order and decides, per index, whether the record passes
through, is dropped, or is replaced by the security events it expands to.
The second pass runs only if something changed; it rebuilds the list in index
order and swaps it into the scope in a single assignment, so the list is never
mutated while it is being iterated.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from logbatch.schemas import LogBatch, LogRecord, ScopeLogs
from openreports.detection import is_openreports_log
from openreports.processor import OpenReportsProcessor

from .config import Config
from .metrics import (
    DROPPED_LOGS,
    INCOMING_LOGS,
    OUTGOING_LOGS,
    PROCESSING_ERRORS,
    ProcessorMetrics,
)

logger = logging.getLogger(__name__)


@dataclass
class BatchCounts:
    """Record counts for one processed batch."""
    incoming: int = 0
    outgoing: int = 0
    dropped: int = 0


class SecurityEventProcessor:
    """Replaces report records with security events inside a log batch."""

    def __init__(self, config: Config, metrics: Optional[ProcessorMetrics] = None):
        """Initialize the processor.

        Args:
            config: Processor configuration
            metrics: Counter sink; a private one is created when omitted.
        """
        self.config = config
        self.metrics = metrics or ProcessorMetrics()
        self.openreports: Optional[OpenReportsProcessor] = None

        if config.processors.openreports.enabled:
            self.openreports = OpenReportsProcessor(config.processors.openreports)
            logger.info("OpenReports processor enabled")

    def process_logs(self, batch: LogBatch) -> LogBatch:
        """Rewrite a batch in place and return it."""
        self.rewrite_batch(batch)
        return batch

    def rewrite_batch(self, batch: LogBatch) -> BatchCounts:
        """Rewrite a batch in place.

        Returns:
            Counts for this batch; the same numbers are added to the metrics.
        """
        counts = BatchCounts()
        logger.debug(f"Processing logs batch with {len(batch.resource_logs)} resource logs")

        for resource_logs in batch.resource_logs:
            for scope_index, scope_logs in enumerate(resource_logs.scope_logs):
                logger.debug(
                    f"Processing scope logs {scope_index} with {len(scope_logs.log_records)} records"
                )
                self._rewrite_scope_logs(scope_logs, counts)

        logger.debug(
            f"Batch processing completed: incoming={counts.incoming} "
            f"outgoing={counts.outgoing} dropped={counts.dropped}"
        )

        if counts.incoming:
            self.metrics.add(INCOMING_LOGS, counts.incoming)
        if counts.outgoing:
            self.metrics.add(OUTGOING_LOGS, counts.outgoing)
        if counts.dropped:
            self.metrics.add(DROPPED_LOGS, counts.dropped)

        return counts

    def _rewrite_scope_logs(self, scope_logs: ScopeLogs, counts: BatchCounts) -> None:
        records = scope_logs.log_records
        replacements: Dict[int, List[LogRecord]] = {}
        dropped: Set[int] = set()

        # Pass 1: decide what happens to every index
        for index, record in enumerate(records):
            counts.incoming += 1

            if self.openreports is None or not is_openreports_log(record.attributes):
                counts.outgoing += 1
                continue

            try:
                new_records = self.openreports.process_log_record(record)
            except Exception as e:
                logger.warning(f"Failed to process log record {index} with OpenReports processor, dropping it: {e}")
                self.metrics.add(PROCESSING_ERRORS, 1, {"error_type": "processing_error"})
                counts.dropped += 1
                dropped.add(index)
                continue

            if new_records:
                logger.debug(f"Log record {index} expanded into {len(new_records)} security events")
                replacements[index] = new_records
            else:
                # filtered or empty reports pass through as themselves
                logger.debug(f"Log record {index} matched but produced no events, passing through unchanged")
                counts.outgoing += 1

        if not replacements and not dropped:
            return

        # Pass 2: rebuild in original order and swap
        rebuilt: List[LogRecord] = []
        for index, record in enumerate(records):
            if index in replacements:
                rebuilt.extend(replacements[index])
                counts.outgoing += len(replacements[index])
            elif index not in dropped:
                rebuilt.append(record)

        scope_logs.log_records = rebuilt
        logger.debug(f"Log records replacement completed: {len(records)} -> {len(rebuilt)} records")

"""Pipeline host wiring for the security event processor."""

import logging
from typing import Any, Callable, Optional

from logbatch.schemas import LogBatch

from .config import Config, create_default_config
from .metrics import ProcessorMetrics
from .processor import SecurityEventProcessor

logger = logging.getLogger(__name__)

TYPE_STR = "securityevent"
STABILITY = "development"

LogsConsumer = Callable[[LogBatch], Any]


class LogsProcessor:
    """Pipeline stage that rewrites a batch and hands it to the next consumer."""

    mutates_data = True

    def __init__(self, processor: SecurityEventProcessor, next_consumer: LogsConsumer):
        self.processor = processor
        self.next_consumer = next_consumer

    @property
    def metrics(self) -> ProcessorMetrics:
        return self.processor.metrics

    def consume_logs(self, batch: LogBatch) -> Any:
        """Process a batch in place and forward it.

        Returns:
            Whatever the next consumer returns.
        """
        batch = self.processor.process_logs(batch)
        return self.next_consumer(batch)


def create_default_processor_config() -> Config:
    return create_default_config()


def create_logs_processor(
    config: Config,
    next_consumer: LogsConsumer,
    metrics: Optional[ProcessorMetrics] = None,
) -> LogsProcessor:
    """Build the logs stage for a pipeline host.

    Args:
        config: Processor configuration
        next_consumer: Callable receiving each processed batch
        metrics: Optional shared counter sink

    Raises:
        ValueError: If the configuration is invalid.
    """
    config.validate_config()
    processor = SecurityEventProcessor(config, metrics)
    logger.info(
        f"Created {TYPE_STR} logs processor ({STABILITY}), "
        f"openreports enabled={config.processors.openreports.enabled}"
    )
    return LogsProcessor(processor, next_consumer)

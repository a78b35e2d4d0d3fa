"""Per-record OpenReports processing.

The processor turns one report record into the list of security event records
it expands to. Batch-level bookkeeping (replacement, counting) lives with the
caller.
"""

import logging
from typing import List, Optional

from logbatch.schemas import LogRecord

from .config import OpenReportsConfig
from .detection import is_openreports_log
from .extraction import extract_results, parse_results
from .mapping import new_security_event, transform_to_security_event
from .schemas import ReportContext
from .workload import extract_workload_info

logger = logging.getLogger(__name__)


class ReportProcessingError(Exception):
    """Raised when a matched report record cannot be transformed."""


def _attribute_string(record: LogRecord, key: str) -> str:
    value = record.get_attribute(key)
    return value.as_string() if value is not None else ""


def build_report_context(record: LogRecord) -> ReportContext:
    """Collect report metadata and resolve the owning workload."""
    scope_name = _attribute_string(record, "scope.name")
    scope_namespace = _attribute_string(record, "scope.namespace")

    workload = extract_workload_info(record.attributes, scope_name, scope_namespace)
    if workload.name:
        logger.debug(
            f"Workload resolved: {workload.kind}/{workload.name} "
            f"(namespace={workload.namespace}, uid={workload.uid})"
        )
    else:
        logger.debug(f"No workload could be resolved for scope {scope_name!r}")

    return ReportContext(
        metadata_name=_attribute_string(record, "metadata.name"),
        metadata_namespace=_attribute_string(record, "metadata.namespace"),
        scope_name=scope_name,
        scope_namespace=scope_namespace,
        scope_kind=_attribute_string(record, "scope.kind"),
        scope_uid=_attribute_string(record, "scope.uid"),
        scope_api_version=_attribute_string(record, "scope.apiVersion"),
        workload=workload,
    )


class OpenReportsProcessor:
    """Transforms OpenReports report records into security events."""

    def __init__(self, config: Optional[OpenReportsConfig] = None):
        """Initialize the processor.

        Args:
            config: OpenReports settings; defaults allow every status.
        """
        self.config = config or OpenReportsConfig(enabled=True)

    def process_log_record(self, record: LogRecord) -> List[LogRecord]:
        """Expand one record into security events.

        Args:
            record: Source log record

        Returns:
            One new record per parsed, allowed result. Empty if the record is
            not a report, carries no results, or every result was filtered.

        Raises:
            ReportProcessingError: If a security event cannot be built.
        """
        if not is_openreports_log(record.attributes):
            logger.debug(f"Record is not an OpenReports report (trace_id={record.trace_id.hex()})")
            return []

        context = build_report_context(record)
        logger.debug(
            f"OpenReports report identified: metadata.name={context.metadata_name!r} "
            f"scope={context.scope_kind}/{context.scope_name}"
        )

        raw_results = extract_results(record.attributes)
        if not raw_results:
            logger.debug(f"Report {context.metadata_name!r} has no results to expand")
            return []

        if self.config.status_filter:
            logger.debug(f"Status filter active: {self.config.status_filter}")

        new_records = []
        filtered_count = 0
        for result in parse_results(raw_results):
            if not self.config.is_status_allowed(result.result):
                logger.debug(
                    f"Skipping result {result.policy}/{result.rule} with status "
                    f"{result.result!r} due to status filter"
                )
                filtered_count += 1
                continue

            event = new_security_event(record)
            try:
                transform_to_security_event(event, result, context, record.attributes)
            except (OverflowError, OSError, ValueError) as e:
                raise ReportProcessingError(
                    f"Cannot build security event for {result.policy}/{result.rule} "
                    f"in report {context.metadata_name!r}: {e}"
                ) from e
            new_records.append(event)

        logger.info(
            f"OpenReports report {context.metadata_name!r} processed: "
            f"{len(raw_results)} results, {filtered_count} filtered, "
            f"{len(new_records)} security events created"
        )
        return new_records

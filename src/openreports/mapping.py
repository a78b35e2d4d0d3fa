"""Field mapping from OpenReports results to security event records.

Each parsed result becomes one log record carrying a fixed set of event,
finding, compliance and risk attributes, the ``k8s.*`` attributes of the
source report, and a ``k8s.*`` overlay derived from the report scope and its
resolved workload.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Mapping

from logbatch.schemas import AnyValue, LogRecord

from .schemas import (
    EVENT_CATEGORY,
    EVENT_NAME,
    EVENT_TYPE,
    EVENT_VERSION,
    K8S_PREFIX,
    SMARTSCAPE_POD_TYPE,
    ComplianceStatus,
    ReportContext,
    Result,
    ResultTimestamp,
    RiskLevel,
)

NANOS_PER_SECOND = 1_000_000_000

SEVERITY_TO_RISK_LEVEL: Dict[str, RiskLevel] = {
    "critical": RiskLevel.CRITICAL,
    "high": RiskLevel.HIGH,
    "medium": RiskLevel.MEDIUM,
    "low": RiskLevel.LOW,
}

RISK_LEVEL_SCORES: Dict[str, float] = {
    RiskLevel.CRITICAL.value: 10.0,
    RiskLevel.HIGH.value: 8.9,
    RiskLevel.MEDIUM.value: 6.9,
    RiskLevel.LOW.value: 3.9,
}

RESULT_TO_COMPLIANCE_STATUS: Dict[str, ComplianceStatus] = {
    "pass": ComplianceStatus.PASSED,
    "fail": ComplianceStatus.FAILED,
    # errors need manual review
    "error": ComplianceStatus.MANUAL,
    "skip": ComplianceStatus.NOT_RELEVANT,
}

DESCRIPTION_TEMPLATES: Dict[str, str] = {
    "fail": "Policy violation on {scope} for rule {rule}",
    "pass": "Policy check passed on {scope} for rule {rule}",
    "error": "Policy check error on {scope} for rule {rule}",
    "skip": "Policy check skipped on {scope} for rule {rule}",
}
DEFAULT_DESCRIPTION_TEMPLATE = "Policy evaluation on {scope} for rule {rule}"

KIND_SPECIFIC_WORKLOAD_KEYS: Dict[str, str] = {
    "Deployment": "k8s.deployment.name",
    "StatefulSet": "k8s.statefulset.name",
    "DaemonSet": "k8s.daemonset.name",
}


def map_severity_to_risk_level(severity: str) -> str:
    """Map a result severity to a risk level; unknown or empty is MEDIUM."""
    return SEVERITY_TO_RISK_LEVEL.get(severity, RiskLevel.MEDIUM).value


def calculate_risk_score(risk_level: str) -> float:
    return RISK_LEVEL_SCORES.get(risk_level, 0.0)


def calculate_risk_score_from_severity(severity: str) -> float:
    """Score keyed on the raw severity; unknown or empty is 0.0, not MEDIUM."""
    risk_level = SEVERITY_TO_RISK_LEVEL.get(severity)
    if risk_level is None:
        return 0.0
    return calculate_risk_score(risk_level.value)


def map_result_to_compliance_status(result: str) -> str:
    return RESULT_TO_COMPLIANCE_STATUS.get(result, ComplianceStatus.MANUAL).value


def build_event_description(status: str, scope_name: str, rule: str) -> str:
    template = DESCRIPTION_TEMPLATES.get(status, DEFAULT_DESCRIPTION_TEMPLATE)
    return template.format(scope=scope_name, rule=rule or "unknown")


def format_result_time(timestamp: ResultTimestamp) -> str:
    """Render a result timestamp as RFC 3339 UTC with trimmed nanoseconds.

    Raises:
        OverflowError, OSError, ValueError: If the instant is outside the
            representable calendar range.
    """
    seconds, nanos = divmod(timestamp.seconds * NANOS_PER_SECOND + timestamp.nanos, NANOS_PER_SECOND)
    rendered = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    if nanos:
        rendered += "." + f"{nanos:09d}".rstrip("0")
    return rendered + "Z"


def new_security_event(source: LogRecord) -> LogRecord:
    """Create an empty event record seeded with the source record's envelope."""
    return LogRecord(
        time_unix_nano=source.time_unix_nano,
        observed_time_unix_nano=source.observed_time_unix_nano,
        severity_number=source.severity_number,
        severity_text=source.severity_text,
        trace_id=source.trace_id,
        span_id=source.span_id,
        flags=source.flags,
    )


def copy_k8s_fields(
    record: LogRecord,
    original_attributes: Mapping[str, AnyValue],
    context: ReportContext,
) -> None:
    """Copy ``k8s.*`` attributes, then overlay scope and workload fields."""
    for key, value in original_attributes.items():
        if len(key) > len(K8S_PREFIX) and key.startswith(K8S_PREFIX):
            record.put_value(key, value)

    record.put_str("k8s.pod.name", context.scope_name)
    record.put_str("k8s.namespace.name", context.scope_namespace)
    record.put_str("k8s.resource.kind", context.scope_kind)
    record.put_str("k8s.resource.uid", context.scope_uid)

    workload = context.workload
    if not workload.name:
        return

    kind_key = KIND_SPECIFIC_WORKLOAD_KEYS.get(workload.kind)
    if kind_key:
        record.put_str(kind_key, workload.name)
    record.put_str("k8s.workload.name", workload.name)
    record.put_str("k8s.workload.kind", workload.kind)
    if workload.namespace:
        record.put_str("k8s.workload.namespace", workload.namespace)
    if workload.uid:
        record.put_str("k8s.workload.uid", workload.uid)


def transform_to_security_event(
    record: LogRecord,
    result: Result,
    context: ReportContext,
    original_attributes: Mapping[str, AnyValue],
) -> None:
    """Populate ``record`` with the security event built from one result.

    Args:
        record: Event record, usually from :func:`new_security_event`
        result: Parsed result
        context: Metadata of the report the result came from
        original_attributes: Attributes of the source report record

    Raises:
        OverflowError, OSError, ValueError: If the result timestamp cannot be
            represented.
    """
    record.put_str("event.id", str(uuid.uuid4()))
    record.put_str("event.version", EVENT_VERSION)
    record.put_str("event.category", EVENT_CATEGORY)
    record.put_str("event.name", EVENT_NAME)
    record.put_str("event.type", EVENT_TYPE)
    record.put_str(
        "event.description",
        build_event_description(result.result, context.scope_name, result.rule),
    )

    record.put_str("product.name", "")
    record.put_str("product.vendor", "")

    if context.scope_kind == "Pod":
        record.put_str("smartscape.type", SMARTSCAPE_POD_TYPE)

    risk_level = map_severity_to_risk_level(result.severity)
    record.put_str("dt.security.risk.level", risk_level)
    record.put_double("dt.security.risk.score", calculate_risk_score(risk_level))

    if context.scope_uid:
        record.put_str("object.id", context.scope_uid)
    if context.scope_kind:
        record.put_str("object.type", context.scope_kind)

    record.put_str("finding.description", result.message)
    record.put_str("finding.id", str(uuid.uuid4()))
    if result.severity:
        record.put_str("finding.severity", risk_level)

    if result.timestamp.seconds > 0:
        created = format_result_time(result.timestamp)
        record.time_unix_nano = result.timestamp.seconds * NANOS_PER_SECOND + result.timestamp.nanos
        record.put_str("finding.time.created", created)

    if result.rule:
        record.put_str("finding.title", f"{result.policy} - {result.rule}")
    else:
        record.put_str("finding.title", result.policy)
    if result.policy:
        record.put_str("finding.type", result.policy)
    record.put_str("finding.url", "")

    if result.rule:
        record.put_str("compliance.control", result.rule)
    if result.policy:
        record.put_str("compliance.requirements", result.policy)
    if result.category:
        record.put_str("compliance.standards", result.category)
    record.put_str("compliance.status", map_result_to_compliance_status(result.result))

    copy_k8s_fields(record, original_attributes, context)

    record.body = AnyValue.of(result.message)

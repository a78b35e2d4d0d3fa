"""Tests for security event field mapping."""

import uuid

import pytest

from logbatch.schemas import AnyValue, LogRecord, ValueType
from openreports.mapping import (
    build_event_description,
    calculate_risk_score,
    calculate_risk_score_from_severity,
    copy_k8s_fields,
    format_result_time,
    map_result_to_compliance_status,
    map_severity_to_risk_level,
    new_security_event,
    transform_to_security_event,
)
from openreports.schemas import ReportContext, Result, ResultTimestamp, WorkloadInfo


def _str(record, key):
    value = record.get_attribute(key)
    assert value is not None, f"missing attribute {key}"
    assert value.type == ValueType.STR
    return value.value


class TestLookupTables:
    """Test cases for the severity, risk and status tables."""

    @pytest.mark.parametrize("severity,level", [
        ("critical", "CRITICAL"),
        ("high", "HIGH"),
        ("medium", "MEDIUM"),
        ("low", "LOW"),
        ("unknown", "MEDIUM"),
        ("", "MEDIUM"),
        ("HIGH", "MEDIUM"),
    ])
    def test_severity_to_risk_level(self, severity, level):
        """Known severities map directly; anything else is MEDIUM."""
        assert map_severity_to_risk_level(severity) == level

    def test_risk_scores(self):
        """Each risk level has a fixed score."""
        assert calculate_risk_score("CRITICAL") == 10.0
        assert calculate_risk_score("HIGH") == 8.9
        assert calculate_risk_score("MEDIUM") == 6.9
        assert calculate_risk_score("LOW") == 3.9
        assert calculate_risk_score("NONE") == 0.0

    def test_risk_score_from_severity(self):
        """Scoring a raw severity does not fall back to MEDIUM."""
        assert calculate_risk_score_from_severity("high") == 8.9
        assert calculate_risk_score_from_severity("unknown") == 0.0
        assert calculate_risk_score_from_severity("") == 0.0

    @pytest.mark.parametrize("result,status", [
        ("pass", "PASSED"),
        ("fail", "FAILED"),
        ("error", "MANUAL"),
        ("skip", "NOT_RELEVANT"),
        ("warn", "MANUAL"),
        ("", "MANUAL"),
    ])
    def test_compliance_status(self, result, status):
        """Result statuses map to compliance labels."""
        assert map_result_to_compliance_status(result) == status

    def test_event_description(self):
        """Descriptions depend on the result status."""
        assert build_event_description("fail", "pod-a", "r1") == "Policy violation on pod-a for rule r1"
        assert build_event_description("pass", "pod-a", "r1") == "Policy check passed on pod-a for rule r1"
        assert build_event_description("error", "pod-a", "r1") == "Policy check error on pod-a for rule r1"
        assert build_event_description("skip", "pod-a", "r1") == "Policy check skipped on pod-a for rule r1"
        assert build_event_description("warn", "pod-a", "") == "Policy evaluation on pod-a for rule unknown"


class TestFormatResultTime:
    """Test cases for RFC 3339 rendering."""

    def test_whole_seconds(self):
        """Whole seconds render without a fraction."""
        assert format_result_time(ResultTimestamp(seconds=1761122152)) == "2025-10-22T08:35:52Z"

    def test_fraction_is_trimmed(self):
        """Trailing zeros of the fraction are removed."""
        assert format_result_time(ResultTimestamp(seconds=0, nanos=500_000_000)) == "1970-01-01T00:00:00.5Z"
        assert format_result_time(ResultTimestamp(seconds=1, nanos=123)) == "1970-01-01T00:00:01.000000123Z"

    def test_out_of_range(self):
        """Instants beyond the calendar range raise."""
        with pytest.raises((OverflowError, OSError, ValueError)):
            format_result_time(ResultTimestamp(seconds=10 ** 15))


class TestTransformToSecurityEvent:
    """Test cases for building a complete security event."""

    def setup_method(self):
        """Set up test fixtures."""
        self.source = LogRecord(
            time_unix_nano=5,
            observed_time_unix_nano=6,
            severity_number=9,
            severity_text="INFO",
            trace_id=b"\x01" * 16,
            span_id=b"\x02" * 8,
            flags=1,
            body="report",
            attributes={
                "kind": "Report",
                "k8s.cluster.name": "prod",
                "k8s.cluster.uid": "cluster-uid",
                "k8s.": "too short",
                "k8s.labels": ["a", "b"],
                "other": "x",
            },
        )
        self.context = ReportContext(
            metadata_name="report-1",
            metadata_namespace="shop",
            scope_name="web-7d4b9c-abcde",
            scope_namespace="shop",
            scope_kind="Pod",
            scope_uid="pod-uid",
            scope_api_version="v1",
            workload=WorkloadInfo(name="web", kind="Deployment", namespace="shop", uid="deploy-uid"),
        )
        self.result = Result(
            timestamp=ResultTimestamp(seconds=1761122152, nanos=0),
            message="Privileged mode is disallowed.",
            policy="disallow-privileged",
            rule="privileged-containers",
            result="fail",
            severity="high",
            category="Pod Security Standards (Baseline)",
        )

    def _transform(self):
        event = new_security_event(self.source)
        transform_to_security_event(event, self.result, self.context, self.source.attributes)
        return event

    def test_envelope_copied(self):
        """Severity, ids and flags come from the source record."""
        event = new_security_event(self.source)

        assert event.severity_text == "INFO"
        assert event.severity_number == 9
        assert event.trace_id == self.source.trace_id
        assert event.span_id == self.source.span_id
        assert event.flags == 1
        assert event.attributes == {}

    def test_event_fields(self):
        """Fixed event fields are populated."""
        event = self._transform()

        assert _str(event, "event.version") == "1.309"
        assert _str(event, "event.category") == "COMPLIANCE"
        assert _str(event, "event.name") == "Compliance finding event"
        assert _str(event, "event.type") == "COMPLIANCE_FINDING"
        assert _str(event, "event.description") == "Policy violation on web-7d4b9c-abcde for rule privileged-containers"
        uuid.UUID(_str(event, "event.id"))
        uuid.UUID(_str(event, "finding.id"))

    def test_finding_and_compliance_fields(self):
        """Finding and compliance attributes reflect the result."""
        event = self._transform()

        assert _str(event, "finding.title") == "disallow-privileged - privileged-containers"
        assert _str(event, "finding.type") == "disallow-privileged"
        assert _str(event, "finding.severity") == "HIGH"
        assert _str(event, "finding.description") == "Privileged mode is disallowed."
        assert _str(event, "finding.time.created") == "2025-10-22T08:35:52Z"
        assert _str(event, "finding.url") == ""
        assert _str(event, "compliance.control") == "privileged-containers"
        assert _str(event, "compliance.requirements") == "disallow-privileged"
        assert _str(event, "compliance.standards") == "Pod Security Standards (Baseline)"
        assert _str(event, "compliance.status") == "FAILED"
        assert _str(event, "product.name") == ""
        assert _str(event, "product.vendor") == ""

    def test_risk_fields(self):
        """Risk level is a string and risk score a double."""
        event = self._transform()

        assert _str(event, "dt.security.risk.level") == "HIGH"
        score = event.get_attribute("dt.security.risk.score")
        assert score.type == ValueType.DOUBLE
        assert score.value == 8.9

    def test_object_and_smartscape(self):
        """Pods are tagged with their smartscape type and object id."""
        event = self._transform()

        assert _str(event, "smartscape.type") == "K8S_POD"
        assert _str(event, "object.id") == "pod-uid"
        assert _str(event, "object.type") == "Pod"

    def test_non_pod_scope_has_no_smartscape_type(self):
        """Only pod scopes carry a smartscape type."""
        self.context.scope_kind = "Deployment"
        event = self._transform()

        assert event.get_attribute("smartscape.type") is None
        assert _str(event, "object.type") == "Deployment"

    def test_timestamp_and_body(self):
        """The event time is the result time and the body is the message."""
        event = self._transform()

        assert event.time_unix_nano == 1761122152 * 1_000_000_000
        assert event.observed_time_unix_nano == 6
        assert event.body.value == "Privileged mode is disallowed."

    def test_zero_timestamp_keeps_source_time(self):
        """A result without a timestamp keeps the source record's time."""
        self.result.timestamp = ResultTimestamp()
        event = self._transform()

        assert event.time_unix_nano == 5
        assert event.get_attribute("finding.time.created") is None

    def test_optional_fields_omitted_when_empty(self):
        """Empty result fields leave their attributes unset."""
        self.result = Result(policy="only-policy", result="pass")
        event = self._transform()

        assert _str(event, "finding.title") == "only-policy"
        assert event.get_attribute("finding.severity") is None
        assert event.get_attribute("compliance.control") is None
        assert event.get_attribute("compliance.standards") is None
        assert _str(event, "dt.security.risk.level") == "MEDIUM"
        assert _str(event, "compliance.status") == "PASSED"

    def test_unknown_severity_still_labelled(self):
        """A non-empty unknown severity is reported as MEDIUM."""
        self.result.severity = "unknown"
        event = self._transform()

        assert _str(event, "finding.severity") == "MEDIUM"

    def test_k8s_fields(self):
        """k8s attributes are copied and overlaid with scope and workload."""
        event = self._transform()

        assert _str(event, "k8s.cluster.name") == "prod"
        assert _str(event, "k8s.cluster.uid") == "cluster-uid"
        assert event.get_attribute("k8s.labels").type == ValueType.SLICE
        assert event.get_attribute("k8s.") is None
        assert event.get_attribute("other") is None
        assert event.get_attribute("kind") is None
        assert _str(event, "k8s.pod.name") == "web-7d4b9c-abcde"
        assert _str(event, "k8s.namespace.name") == "shop"
        assert _str(event, "k8s.resource.kind") == "Pod"
        assert _str(event, "k8s.resource.uid") == "pod-uid"
        assert _str(event, "k8s.deployment.name") == "web"
        assert _str(event, "k8s.workload.name") == "web"
        assert _str(event, "k8s.workload.kind") == "Deployment"
        assert _str(event, "k8s.workload.namespace") == "shop"
        assert _str(event, "k8s.workload.uid") == "deploy-uid"

    def test_copied_values_are_independent(self):
        """Copied list attributes do not alias the source."""
        event = self._transform()
        event.get_attribute("k8s.labels").value.append(AnyValue.of("c"))

        assert len(self.source.get_attribute("k8s.labels").value) == 2

    def test_workload_without_name_writes_no_workload_fields(self):
        """Unresolved workloads add nothing beyond the scope overlay."""
        self.context.workload = WorkloadInfo(namespace="shop")
        record = LogRecord()
        copy_k8s_fields(record, {}, self.context)

        assert set(record.attributes) == {
            "k8s.pod.name", "k8s.namespace.name", "k8s.resource.kind", "k8s.resource.uid",
        }

    def test_kind_specific_key_only_for_known_kinds(self):
        """Jobs get the generic workload keys only."""
        self.context.workload = WorkloadInfo(name="backup", kind="Job", namespace="ops")
        record = LogRecord()
        copy_k8s_fields(record, {}, self.context)

        assert _str(record, "k8s.workload.name") == "backup"
        assert _str(record, "k8s.workload.kind") == "Job"
        assert record.get_attribute("k8s.job.name") is None
        assert record.get_attribute("k8s.workload.uid") is None

    def test_statefulset_key(self):
        """StatefulSets get their own name key."""
        self.context.workload = WorkloadInfo(name="db", kind="StatefulSet")
        record = LogRecord()
        copy_k8s_fields(record, {}, self.context)

        assert _str(record, "k8s.statefulset.name") == "db"
        assert record.get_attribute("k8s.workload.namespace") is None

    def test_out_of_range_timestamp_raises(self):
        """Unrepresentable result times surface as errors."""
        self.result.timestamp = ResultTimestamp(seconds=10 ** 15)
        with pytest.raises((OverflowError, OSError, ValueError)):
            self._transform()

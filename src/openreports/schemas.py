"""OpenReports result schemas and security event constants.

This module defines the Pydantic models for one policy evaluation result as it
is embedded in a report, the contextual metadata a report carries, and the
fixed attribute values every security event is stamped with.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet

from pydantic import BaseModel, Field, field_validator


# Report detection
REPORT_KIND = "Report"
REPORT_API_VERSION = "openreports.io/v1alpha1"

# Attribute keys read from a report record
RESULTS_KEY = "results"
OWNER_REFERENCES_KEY = "metadata.ownerReferences"

# Fixed security event fields
EVENT_VERSION = "1.309"
EVENT_CATEGORY = "COMPLIANCE"
EVENT_NAME = "Compliance finding event"
EVENT_TYPE = "COMPLIANCE_FINDING"
SMARTSCAPE_POD_TYPE = "K8S_POD"

K8S_PREFIX = "k8s."

WORKLOAD_KINDS: FrozenSet[str] = frozenset({
    "Deployment",
    "StatefulSet",
    "DaemonSet",
    "Job",
    "CronJob",
    "ReplicaSet",
})


class ResultStatus(str, Enum):
    """Canonical result statuses."""
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"
    SKIP = "skip"


class RiskLevel(str, Enum):
    """Risk level classifications written to dt.security.risk.level."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ComplianceStatus(str, Enum):
    """Normalized compliance.status labels."""
    PASSED = "PASSED"
    FAILED = "FAILED"
    MANUAL = "MANUAL"
    NOT_RELEVANT = "NOT_RELEVANT"


class ResultTimestamp(BaseModel):
    """Evaluation instant of a result."""
    seconds: int = 0
    nanos: int = 0

    @field_validator('seconds', 'nanos', mode='before')
    @classmethod
    def null_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class Result(BaseModel):
    """One policy evaluation result from a report's results array."""
    source: str = ""
    timestamp: ResultTimestamp = Field(default_factory=ResultTimestamp)
    message: str = ""
    policy: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    result: str = Field(default="", description="pass, fail, error or skip; not enforced")
    rule: str = ""
    scored: bool = False
    severity: str = Field(default="", description="critical, high, medium or low; not enforced")
    category: str = ""

    @field_validator('source', 'message', 'policy', 'result', 'rule', 'severity', 'category', mode='before')
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """JSON null leaves a string field empty."""
        return "" if v is None else v

    @field_validator('timestamp', 'properties', mode='before')
    @classmethod
    def null_as_empty_object(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator('scored', mode='before')
    @classmethod
    def null_as_false(cls, v: Any) -> Any:
        return False if v is None else v


class WorkloadInfo(BaseModel):
    """Workload that owns the resource a report is about.

    Empty strings mean the value could not be resolved.
    """
    name: str = ""
    kind: str = ""
    namespace: str = ""
    uid: str = ""


class ReportContext(BaseModel):
    """Report metadata shared by every event built from one report record."""
    metadata_name: str = ""
    metadata_namespace: str = ""
    scope_name: str = ""
    scope_namespace: str = ""
    scope_kind: str = ""
    scope_uid: str = ""
    scope_api_version: str = ""
    workload: WorkloadInfo = Field(default_factory=WorkloadInfo)
